import uuid
import enum
from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Enum, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from auth.utils import hash_password, verify_password
from .base import Base

class UserRole(enum.Enum):
    USER = "user"
    ADMIN = "admin"

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    is_verified = Column(Boolean, nullable=False, default=False)
    profile_pic = Column(Text, nullable=False, default="")

    # pending signup verification
    email_otp = Column(Text, nullable=True)
    email_otp_expires = Column(TIMESTAMP, nullable=True)

    # pending password reset
    reset_password_token = Column(Text, nullable=True, index=True)
    reset_password_expires = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    watchlist_items = relationship("WatchlistItem", back_populates="user", cascade="all, delete-orphan")

    def set_password(self, plaintext: str) -> None:
        """Hash and store a new password; the plaintext is never kept."""
        self.password_hash = hash_password(plaintext)

    def check_password(self, plaintext: str) -> bool:
        if not self.password_hash:
            return False
        return verify_password(plaintext, self.password_hash)

    @property
    def is_admin(self) -> bool:
        """Check if user is an admin"""
        return self.role == UserRole.ADMIN

    def profile_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "profilePic": self.profile_pic or "",
        }
