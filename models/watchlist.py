import uuid
from sqlalchemy import Column, Integer, JSON, TIMESTAMP, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .base import Base

class WatchlistItem(Base):
    __tablename__ = "watchlist_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(Integer, nullable=False)  # TMDB movie id
    movie_data = Column(JSON, nullable=False)  # catalog snapshot, stored as given
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User", back_populates="watchlist_items")

    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_watchlist_user_movie"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "userId": str(self.user_id),
            "movieId": self.movie_id,
            "movieData": self.movie_data,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
