"""
Database engine, session factory and declarative base.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from budgeting.config import settings
from budgeting.errors import PersistenceError


def _engine_kwargs(url: str) -> dict:
    # The recurring processors use sessions from their own threads
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create the data directory (for file-based SQLite) and all tables."""
    # Import models so they register on Base.metadata
    import budgeting.models  # noqa: F401

    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    Base.metadata.create_all(bind=engine)


def commit_or_raise(db: Session, message: str) -> None:
    """Commit the session; on failure roll back and raise PersistenceError."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(message) from e
