"""Database session management."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from prase.config import get_settings
from prase.errors import PersistenceError

logger = logging.getLogger("prase")

settings = get_settings()


def _connect_args(url: str, timeout: float) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}
    if url.startswith("postgresql"):
        return {"connect_timeout": int(timeout), "options": f"-c statement_timeout={int(timeout * 1000)}"}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS),
    **({} if settings.DATABASE_URL.startswith("sqlite") else {"pool_timeout": settings.DB_TIMEOUT_SECONDS}),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_operation(db: Session, operation: str) -> Iterator[Session]:
    """Run a unit of store work, rolling back and raising PersistenceError on failure.

    Callers that need to react to specific failures (e.g. IntegrityError on a
    unique column) catch those inside the block before they reach here.
    """
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Store operation '%s' failed: %s", operation, exc.__class__.__name__)
        raise PersistenceError(operation) from exc
