"""Database session management."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from siades_api.settings import get_settings

settings = get_settings()


def create_db_engine(url: str) -> Engine:
    """Create an engine with pool options suited to the backend."""
    if url.startswith("sqlite"):
        # Sessions on other threads share the file; writers wait on the busy timeout
        return create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


engine = create_db_engine(settings.database_url_computed)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a unit of work: commit on success, roll back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def apply_statement_timeout(db: Session, timeout_ms: int) -> None:
    """Bound the current transaction's statements (PostgreSQL only)."""
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))


# query_canceled (statement_timeout), lock_not_available (lock_timeout)
POSTGRES_TIMEOUT_CODES = frozenset({"57014", "55P03"})


def is_lock_timeout(error: OperationalError) -> bool:
    """Check whether a driver error is a lock wait or statement timeout."""
    pgcode = getattr(error.orig, "pgcode", None)
    if pgcode is not None:
        return pgcode in POSTGRES_TIMEOUT_CODES
    # SQLite reports busy-timeout expiry as "database is locked" or "database table is locked"
    return "is locked" in str(error.orig)
