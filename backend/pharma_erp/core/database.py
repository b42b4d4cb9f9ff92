"""SQLModel database engine, session management and the retrying transaction runner."""
from __future__ import annotations

from typing import Callable, Optional, TypeVar

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError
from sqlmodel import SQLModel, create_engine, Session

from pharma_erp.core.config import settings
from pharma_erp.core.errors import DatabaseUnavailable, TransientConflict

# Import models so SQLModel.metadata knows about all tables
import pharma_erp.models.party  # noqa: F401
import pharma_erp.models.inventory  # noqa: F401
import pharma_erp.models.sales  # noqa: F401

T = TypeVar("T")


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # timeout = seconds to wait on a locked database before failing
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    return {"connect_timeout": int(settings.DB_TIMEOUT_SECONDS)}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=False,
)


def create_db_and_tables(target: Optional[Engine] = None) -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(target or engine)


def get_engine() -> Engine:
    """FastAPI dependency: the engine that write services run their transactions on."""
    return engine


def get_session():
    """FastAPI dependency: yields a SQLModel session."""
    with Session(engine) as session:
        yield session


class StaleRecord(Exception):
    """A guarded write found the row changed since it was read in this transaction."""


def _is_lock_error(exc: OperationalError) -> bool:
    text = str(exc.orig).lower()
    return "locked" in text or "busy" in text or "deadlock" in text


def run_transaction(
    db_engine: Engine,
    work: Callable[[Session], T],
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run work(session) and commit it as one unit.

    Each attempt gets a fresh session, so a retried attempt re-reads current
    rows and re-validates them. Attempts that lose a race (StaleRecord,
    StaleDataError, locked database) are rolled back and re-run; any other
    exception propagates after rollback. Sessions are opened with
    expire_on_commit=False, so ORM instances returned by work() keep their
    loaded attributes readable after the session closes.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            with Session(db_engine, expire_on_commit=False) as session:
                result = work(session)
                session.commit()
                return result
        except (StaleRecord, StaleDataError) as exc:
            logger.warning(f"transaction conflict (attempt {attempt}/{attempts}): {exc}")
        except OperationalError as exc:
            if not _is_lock_error(exc):
                logger.error(f"database error: {exc.orig}")
                raise DatabaseUnavailable(str(exc.orig)) from exc
            logger.warning(f"database busy (attempt {attempt}/{attempts}): {exc.orig}")
    raise TransientConflict(attempts)
