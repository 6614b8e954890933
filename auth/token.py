import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

import jwt
from jwt.exceptions import PyJWTError as JWTError

from models.user import UserRole
from utils.clock import utcnow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24


@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a session token."""
    user_id: str
    email: str
    role: UserRole


class TokenIssuer:
    """
    Signs and verifies session tokens.

    Tokens are HS256 JWTs carrying ``sub`` (account id), ``email`` and
    ``role``. There is no revocation list: a token stays valid until ``exp``.
    """

    def __init__(
        self,
        secret: Optional[str],
        expires_in: timedelta = timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
        clock: Callable[[], datetime] = utcnow,
    ):
        self._secret = secret
        self._expires_in = expires_in
        self._clock = clock

    def create_access_token(self, user_id: str, email: str, role: UserRole) -> str:
        if not self._secret:
            raise RuntimeError("JWT secret is not configured")
        now = self._clock()
        expire = now + self._expires_in
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "role": role.value,
            "iat": now,
            "exp": expire,
            "type": "access",
        }
        token = jwt.encode(to_encode, self._secret, algorithm=ALGORITHM)
        logger.debug(f"Access token created for {user_id} expiring at {expire}")
        return token

    def decode_token(self, token: str) -> Optional[dict]:
        if not self._secret:
            logger.error("JWT secret is not configured; rejecting token")
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except JWTError as e:
            logger.warning(f"Failed to decode JWT: {e}")
            return None
        if payload.get("type") != "access":
            logger.warning("Token is not an access token")
            return None
        return payload

    def verify(self, token: str) -> Optional[Identity]:
        payload = self.decode_token(token)
        if not payload:
            return None
        try:
            role = UserRole(payload.get("role"))
        except ValueError:
            logger.warning(f"Token carries unknown role {payload.get('role')!r}")
            return None
        return Identity(user_id=payload["sub"], email=payload.get("email", ""), role=role)
