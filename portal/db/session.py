# portal/db/session.py
"""
SQLAlchemy engine and session factory for the transactional store.

The hosted backend is Postgres; local runs and tests use sqlite. Every service
call gets its own session through ``get_db``.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from portal.core.config import settings
from portal.db.base import Base


def _engine_kwargs(url: str) -> dict:
    kwargs = {"future": True, "echo": False, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db() -> None:
    """Create missing tables. Hosted Postgres already owns its schema; this is for local sqlite."""
    from portal.db import models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Yields a SQLAlchemy session. Use as dependency:
        db = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
