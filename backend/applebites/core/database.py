"""
database.py — Database Session & Connection Management

Purpose:
- Create and provide access to the database that stores assessments.
- Manage SQLAlchemy Engine + Session lifecycle.
- Expose FastAPI dependencies: `get_db()` yields a session per-request,
  `get_session_factory()` hands background tasks a factory so they can open
  their own session after the response is sent.
- Provide the shared declarative `Base` for ORM models.

Key Characteristics:
- Synchronous SQLAlchemy engine.
- No Alembic migrations — `init_db()` creates missing tables at startup.

This module does NOT:
- Define ORM models (see applebites/models/*).
- Perform any queries or business logic.
"""

from typing import Callable, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from applebites.core.config import settings
from applebites.core.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy Engine
# -----------------------------------------------------------------------------


def normalize_database_url(db_url: str) -> str:
    """
    Use the psycopg (v3) driver for bare postgresql:// URLs.

    Example:
        postgresql://u:p@host/db → postgresql+psycopg://u:p@host/db
    """
    db_url = db_url.strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        db_url = db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    db_url = normalize_database_url(db_url)
    if db_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(
        db_url,
        pool_pre_ping=True  # Ensures connections are valid before use
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables for the registered models."""
    # Import models so they register with Base.metadata
    from applebites.models import assessment  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database tables ensured on %s", target.url.render_as_string(hide_password=True))

# -----------------------------------------------------------------------------
# FastAPI Dependencies
# -----------------------------------------------------------------------------


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: yields a database session for the duration of the request.

    Usage in API endpoint:
        def endpoint(db: Session = Depends(get_db)):
            db.query(...)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """FastAPI dependency: session factory for work done in background tasks."""
    return SessionLocal
