"""SQLAlchemy session handling utilities."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from lms_api.core.config import settings

SessionFactory = Callable[[], Session]

# The engine is created once and reused for all requests.
db_url = make_url(settings.database_url)
connect_args = {}
if db_url.drivername.startswith("postgresql+psycopg"):
    connect_args["sslmode"] = "require"
elif db_url.drivername.startswith("sqlite"):
    # Scheduler jobs run on their own threads.
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    future=True,
    pool_pre_ping=True,
    connect_args=connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """FastAPI dependency that yields a scoped session."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory: SessionFactory = SessionLocal) -> Iterator[Session]:
    """Commit-or-rollback session for jobs and scripts."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
