# services/otp_service.py
import secrets
from datetime import datetime, timedelta

OTP_MIN = 100_000
OTP_MAX = 999_999


def generate_otp() -> str:
    """Six-digit code, uniform over [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def generate_reset_token() -> str:
    """64 hex chars, safe to embed in a URL path."""
    return secrets.token_hex(32)


def expiry_from(now: datetime, minutes: int) -> datetime:
    return now + timedelta(minutes=minutes)
