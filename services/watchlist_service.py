# services/watchlist_service.py
from __future__ import annotations
import logging
import re
from datetime import datetime
from typing import Any, Callable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from db import session_scope
from models import User, WatchlistItem
from services.account_service import parse_user_id
from services.exceptions import BadRequest, Conflict, NotFound, Unauthorized
from utils.clock import utcnow

logger = logging.getLogger(__name__)

_MOVIE_ID_RE = re.compile(r"-?[0-9]+")
# movie_id is a 32-bit INTEGER column
_MOVIE_ID_MIN, _MOVIE_ID_MAX = -(2 ** 31), 2 ** 31 - 1


def parse_movie_id(movie_id: Any) -> int:
    """TMDB ids arrive as JSON numbers or as route strings."""
    if isinstance(movie_id, bool):
        raise BadRequest("movieId must be an integer")
    if isinstance(movie_id, int):
        mid = movie_id
    elif isinstance(movie_id, str) and _MOVIE_ID_RE.fullmatch(movie_id.strip()):
        mid = int(movie_id.strip())
    else:
        raise BadRequest("movieId must be an integer")
    if not _MOVIE_ID_MIN <= mid <= _MOVIE_ID_MAX:
        raise BadRequest("movieId is out of range")
    return mid


class WatchlistService:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._sessions = session_factory
        self._clock = clock

    @staticmethod
    def _owner(user_id):
        uid = parse_user_id(user_id)
        if uid is None:
            raise Unauthorized("Invalid token")
        return uid

    def add(self, user_id, movie_id: Any, movie_data: Any) -> dict:
        uid = self._owner(user_id)
        if movie_id is None:
            raise BadRequest("movieId is required")
        mid = parse_movie_id(movie_id)
        if movie_data is None:
            raise BadRequest("movieData is required")

        with session_scope(self._sessions) as db:
            # a token can outlive its account; don't let the FK failure read as a duplicate
            if db.get(User, uid) is None:
                raise NotFound("User not found")

            exists = (
                db.query(WatchlistItem.id)
                .filter(WatchlistItem.user_id == uid, WatchlistItem.movie_id == mid)
                .first()
            )
            if exists:
                raise Conflict("Movie already in watchlist")

            db.add(WatchlistItem(
                user_id=uid, movie_id=mid, movie_data=movie_data, created_at=self._clock(),
            ))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise Conflict("Movie already in watchlist")

        logger.info(f"Movie {mid} added to watchlist of {uid}")
        return {"message": "Movie added to watchlist"}

    def list(self, user_id) -> List[dict]:
        """Entries in the order they were added."""
        uid = self._owner(user_id)
        with session_scope(self._sessions) as db:
            rows = (
                db.query(WatchlistItem)
                .filter(WatchlistItem.user_id == uid)
                .order_by(WatchlistItem.created_at, WatchlistItem.id)
                .all()
            )
            return [r.to_dict() for r in rows]

    def remove(self, user_id, movie_id: Any) -> dict:
        uid = self._owner(user_id)
        mid = parse_movie_id(movie_id)
        with session_scope(self._sessions) as db:
            deleted = (
                db.query(WatchlistItem)
                .filter(WatchlistItem.user_id == uid, WatchlistItem.movie_id == mid)
                .delete(synchronize_session=False)
            )
            db.commit()

        if deleted:
            logger.info(f"Movie {mid} removed from watchlist of {uid}")
        return {"message": "Movie removed from watchlist"}
