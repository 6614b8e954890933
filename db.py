# db.py
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import Settings
from services.exceptions import Internal

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=1800,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables. Deployments use the Alembic migrations instead."""
    from models import Base

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Yield a session for one unit of work.

    Store failures are rolled back and re-raised as ``Internal`` so callers
    never see driver errors.
    """
    db = session_factory()
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database operation failed")
        raise Internal("Server error") from e
    finally:
        db.close()
