import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Uuid
from sqlalchemy.sql import func
from .base import Base

class Feedback(Base):
    __tablename__ = "feedbacks"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, index=True)
    message = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "message": self.message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
