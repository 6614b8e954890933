# services/feedback_service.py
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from db import session_scope
from models import Feedback
from services.account_service import normalize_email, require_str
from services.exceptions import BadRequest
from utils.clock import utcnow

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._sessions = session_factory
        self._clock = clock

    def submit(self, email: Optional[str], message: Optional[str]) -> dict:
        email = normalize_email(email)
        message = (require_str(message, "message") or "").strip()
        if not email or not message:
            raise BadRequest("Email and message are required")

        with session_scope(self._sessions) as db:
            db.add(Feedback(email=email, message=message, created_at=self._clock()))
            db.commit()

        logger.info(f"Feedback received from {email}")
        return {"success": True, "message": "Feedback saved successfully"}
