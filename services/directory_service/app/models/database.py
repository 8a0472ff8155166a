"""Relational store handles.

The application builds exactly one store at startup and hands it to the
request dependencies. ``DatabaseStore`` wraps a live engine;
``UnavailableStore`` stands in when no connection string is configured.
"""

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_options(url: str, pool_size: int, max_overflow: int, pool_recycle: int) -> dict:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            # One shared connection, otherwise every session sees an empty database.
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_recycle": pool_recycle,
    }


class DatabaseStore:
    available = True

    def __init__(self, url: str, pool_size: int = 10, max_overflow: int = 5, pool_recycle: int = 300):
        self.engine = create_engine(url, **_engine_options(url, pool_size, max_overflow, pool_recycle))
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self._sessionmaker()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self):
        return f"<DatabaseStore(url='{self.engine.url.render_as_string(hide_password=True)}')>"


class UnavailableStore:
    available = False

    def session(self) -> Session:
        raise StoreUnavailableError("Database is not configured")

    def create_all(self) -> None:
        logger.warning("DATABASE_URL is not set; skipping schema creation")

    def ping(self) -> None:
        raise StoreUnavailableError("Database is not configured")

    def dispose(self) -> None:
        pass

    def __repr__(self):
        return "<UnavailableStore()>"


def build_store(url: Optional[str], **engine_kwargs):
    if not url:
        logger.warning("DATABASE_URL is not set; the directory runs in degraded mode")
        return UnavailableStore()
    return DatabaseStore(url, **engine_kwargs)


def get_db(request: Request) -> Iterator[Optional[Session]]:
    """Yield a session bound to the application's store, or None when degraded."""
    store = request.app.state.store
    if not store.available:
        yield None
        return
    db = store.session()
    try:
        yield db
    finally:
        db.close()
