# services/account_service.py
from __future__ import annotations
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from auth.token import TokenIssuer
from config import Settings
from db import session_scope
from models import User, UserRole
from services import otp_service
from services.email_service import reset_link_message, signup_otp_message
from services.exceptions import (
    BadRequest,
    Conflict,
    Expired,
    Forbidden,
    InvalidCredential,
    InvalidOrExpired,
    NotFound,
)
from services.storage_service import validate_image
from utils.clock import utcnow

logger = logging.getLogger(__name__)


# bcrypt only hashes the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def require_str(value, field: str) -> Optional[str]:
    """Body fields are optional at this point, but never anything other than text."""
    if value is None or isinstance(value, str):
        return value
    raise BadRequest(f"{field} must be a string")


def check_password_length(password: str) -> None:
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise BadRequest(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def normalize_email(email: Optional[str]) -> str:
    return (require_str(email, "email") or "").strip().lower()


def parse_user_id(user_id) -> Optional[uuid.UUID]:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except (TypeError, ValueError):
        return None


class AccountService:
    """
    Account lifecycle: signup with email OTP, login, profile maintenance
    and password reset.

    Every method opens its own session; store failures surface as
    ``Internal`` via ``session_scope``. Email delivery happens after the
    commit, so a ``DeliveryError`` leaves the pending OTP/reset state in
    place and the caller can simply retry.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        tokens: TokenIssuer,
        mailer,
        storage,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._sessions = session_factory
        self._tokens = tokens
        self._mailer = mailer
        self._storage = storage
        self._settings = settings
        self._clock = clock

    # ───────────── signup ──────────────────────────────────────────────
    def signup_request(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> dict:
        name = (require_str(name, "name") or "").strip()
        email = normalize_email(email)
        password = require_str(password, "password")
        if not all([name, email, password]):
            raise BadRequest("Name, email and password are required")
        check_password_length(password)

        otp = otp_service.generate_otp()
        ttl = self._settings.otp_expire_minutes
        expires = otp_service.expiry_from(self._clock(), ttl)

        with session_scope(self._sessions) as db:
            user = db.query(User).filter(User.email == email).first()
            if user and user.is_verified:
                raise Conflict("Email already registered and verified")

            if user is None:
                user = User(email=email, role=UserRole.USER, is_verified=False, profile_pic="")
                db.add(user)

            user.name = name
            user.set_password(password)
            user.email_otp = otp
            user.email_otp_expires = expires
            try:
                db.commit()
            except IntegrityError:
                # another request created the same email first
                db.rollback()
                raise Conflict("Email already registered")

        subject, body, html_body = signup_otp_message(otp, ttl)
        self._mailer.send(email, subject, body, html_body)
        logger.info(f"Signup OTP issued for {email}")
        return {"message": "OTP sent to email. Please verify to complete signup."}

    def verify_signup_otp(self, email: Optional[str], otp) -> dict:
        email = normalize_email(email)
        otp = str(otp).strip() if otp is not None else ""
        if not email or not otp:
            raise BadRequest("Email and OTP are required")

        with session_scope(self._sessions) as db:
            user = db.query(User).filter(User.email == email).first()
            if not user:
                raise NotFound("User not found")
            if user.is_verified:
                raise Conflict("User already verified")
            if user.email_otp is None or user.email_otp != otp:
                raise InvalidCredential("Invalid OTP")
            if user.email_otp_expires is None or self._clock() > user.email_otp_expires:
                raise Expired("OTP expired")

            user.is_verified = True
            user.email_otp = None
            user.email_otp_expires = None
            db.commit()

        logger.info(f"Email verified for {email}")
        return {"message": "Email verified successfully! You can now log in."}

    # ───────────── session ─────────────────────────────────────────────
    def login(self, email: Optional[str], password: Optional[str]) -> dict:
        email = normalize_email(email)
        password = require_str(password, "password")
        if not email or not password:
            raise BadRequest("Missing email or password")

        with session_scope(self._sessions) as db:
            user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.warning(f"Login failed for {email}: user not found")
            raise InvalidCredential("Invalid credentials")
        if not user.is_verified:
            raise Forbidden("Please verify your email before logging in.")
        if not user.check_password(password):
            logger.warning(f"Login failed for {email}: wrong password")
            raise InvalidCredential("Invalid credentials")

        token = self._tokens.create_access_token(str(user.id), user.email, user.role)
        logger.info(f"User {user.id} logged in")
        return {"token": token, **user.profile_dict()}

    # ───────────── profile ─────────────────────────────────────────────
    def _get_user(self, db, user_id) -> User:
        uid = parse_user_id(user_id)
        user = db.get(User, uid) if uid else None
        if not user:
            raise NotFound("User not found")
        return user

    def get_profile(self, user_id) -> dict:
        with session_scope(self._sessions) as db:
            return self._get_user(db, user_id).profile_dict()

    def update_profile(
        self,
        user_id,
        name: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> dict:
        name = require_str(name, "name")
        current_password = require_str(current_password, "currentPassword")
        new_password = require_str(new_password, "newPassword")
        if new_password:
            check_password_length(new_password)

        with session_scope(self._sessions) as db:
            user = self._get_user(db, user_id)

            if name and name.strip():
                user.name = name.strip()

            if new_password:
                if not current_password:
                    raise BadRequest("Current password required")
                if not user.check_password(current_password):
                    raise InvalidCredential("Incorrect current password")
                user.set_password(new_password)

            db.commit()

        return {"message": "Profile updated successfully"}

    def upload_profile_image(self, user_id, content_type: str, data: bytes) -> dict:
        validate_image(content_type, data)
        with session_scope(self._sessions) as db:
            user = self._get_user(db, user_id)
            path = self._storage.save(str(user.id), data, content_type)
            user.profile_pic = path
            db.commit()

        logger.info(f"Profile picture updated for {user_id}")
        return {"message": "Profile picture updated", "path": path}

    # ───────────── password reset ──────────────────────────────────────
    def forgot_password(self, email: Optional[str]) -> dict:
        email = normalize_email(email)
        if not email:
            raise BadRequest("Missing email")

        token = otp_service.generate_reset_token()
        ttl = self._settings.reset_token_expire_minutes

        with session_scope(self._sessions) as db:
            user = db.query(User).filter(User.email == email).first()
            if not user:
                raise NotFound("User not found")

            user.reset_password_token = token
            user.reset_password_expires = self._clock() + timedelta(minutes=ttl)
            db.commit()

        reset_link = f"{self._settings.reset_link_base.rstrip('/')}/{token}"
        subject, body, html_body = reset_link_message(reset_link, ttl)
        self._mailer.send(email, subject, body, html_body)
        logger.info(f"Password reset requested for {email}")
        return {"message": "Password reset email sent"}

    def reset_password(self, token: Optional[str], new_password: Optional[str]) -> dict:
        token = require_str(token, "token")
        new_password = require_str(new_password, "newPassword")
        if not token or not new_password:
            raise BadRequest("Token and new password are required")
        check_password_length(new_password)

        with session_scope(self._sessions) as db:
            user = (
                db.query(User)
                .filter(
                    User.reset_password_token == token,
                    User.reset_password_expires > self._clock(),
                )
                .first()
            )
            if not user:
                raise InvalidOrExpired("Invalid or expired token")

            user.set_password(new_password)
            user.reset_password_token = None
            user.reset_password_expires = None
            db.commit()

        logger.info("Password reset completed")
        return {"message": "Password reset successfully"}
