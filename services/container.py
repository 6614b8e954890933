# services/container.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from auth.token import TokenIssuer
from config import Settings
from db import create_db_engine, create_session_factory
from services.account_service import AccountService
from services.admin_service import AdminService
from services.email_service import EmailSender
from services.feedback_service import FeedbackService
from services.storage_service import build_storage
from services.watchlist_service import WatchlistService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    tokens: TokenIssuer
    accounts: AccountService
    watchlist: WatchlistService
    feedback: FeedbackService
    admin: AdminService


def build_services(
    settings: Settings,
    session_factory=None,
    mailer=None,
    storage=None,
    clock=None,
) -> Services:
    """Wire every collaborator from explicit settings; tests pass their own fakes."""
    if session_factory is None:
        session_factory = create_session_factory(create_db_engine(settings))
    mailer = mailer or EmailSender(settings)
    storage = storage or build_storage(settings)
    clock_kw = {"clock": clock} if clock else {}

    tokens = TokenIssuer(
        settings.jwt_secret,
        expires_in=timedelta(hours=settings.access_token_expire_hours),
    )
    if not settings.jwt_secret:
        logger.error("JWT_SECRET_KEY is not set; logins and authenticated routes will fail")

    return Services(
        settings=settings,
        tokens=tokens,
        accounts=AccountService(session_factory, tokens, mailer, storage, settings, **clock_kw),
        watchlist=WatchlistService(session_factory, **clock_kw),
        feedback=FeedbackService(session_factory, **clock_kw),
        admin=AdminService(session_factory),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services(Settings.from_env())
    return _services


def set_services(services: Optional[Services]) -> None:
    global _services
    _services = services
