"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import Connection, Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from zcorp_launcher.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import zcorp_launcher.models  # noqa: E402,F401

def use_immediate_transactions(sqlite_engine: Engine) -> Engine:
    """Make every SQLite transaction take the write lock up front.

    Deferred transactions that upgrade from a read lock can fail with
    SQLITE_BUSY instead of waiting, which loses concurrent increments.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


_url = settings.effective_database_url
_connect_args: dict[str, Any] = {}
if _url.startswith("sqlite"):
    # FastAPI runs sync endpoints on a threadpool.
    _connect_args = {"check_same_thread": False, "timeout": 30}

engine = create_engine(
    _url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
    connect_args=_connect_args,
)
if engine.dialect.name == "sqlite":
    use_immediate_transactions(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
