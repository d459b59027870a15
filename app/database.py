"""SQLAlchemy engine, session factory and declarative base.

Only the ``sql`` storage backend touches the database; the JSON and
in-memory backends never import a session.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import get_settings

Base = declarative_base()


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(get_settings().DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind: Engine | None = None) -> None:
    """Create every table registered on ``Base`` if it does not exist yet."""
    import app.models  # noqa: F401  (populates the mapper registry)

    Base.metadata.create_all(bind=bind or engine)
