# services/admin_service.py
from sqlalchemy import func
from sqlalchemy.orm import sessionmaker

from db import session_scope
from models import Feedback, User, WatchlistItem
from services.account_service import parse_user_id
from services.exceptions import NotFound


class AdminService:
    """Read-only reporting for the admin dashboard."""

    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def stats(self) -> dict:
        with session_scope(self._sessions) as db:
            total_users = db.query(func.count(User.id)).scalar()
            total_items = db.query(func.count(WatchlistItem.id)).scalar()
            users = db.query(User.id, User.email, User.role).all()
            return {
                "totalUsers": total_users,
                "totalWatchlistItems": total_items,
                "users": [
                    {"id": str(uid), "email": email, "role": role.value}
                    for uid, email, role in users
                ],
            }

    def feedbacks(self) -> list:
        with session_scope(self._sessions) as db:
            rows = db.query(Feedback).order_by(Feedback.created_at.desc()).all()
            return [r.to_dict() for r in rows]

    def user_detail(self, user_id) -> dict:
        uid = parse_user_id(user_id)
        if uid is None:
            raise NotFound("User not found")

        with session_scope(self._sessions) as db:
            user = db.get(User, uid)
            if not user:
                raise NotFound("User not found")

            watchlist_count = (
                db.query(func.count(WatchlistItem.id))
                .filter(WatchlistItem.user_id == uid)
                .scalar()
            )
            feedbacks = (
                db.query(Feedback)
                .filter(Feedback.email == user.email)
                .order_by(Feedback.created_at.desc())
                .all()
            )
            return {
                "name": user.name,
                "email": user.email,
                "role": user.role.value,
                "createdAt": user.created_at.isoformat() if user.created_at else None,
                "watchlistCount": watchlist_count,
                "feedbacks": [f.to_dict() for f in feedbacks],
            }
