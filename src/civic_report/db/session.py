"""Engine, session factory and request-scoped session dependency."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from civic_report.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Models register themselves on Base.metadata when imported.
import civic_report.models  # noqa: E402,F401


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str, **kwargs: Any) -> Engine:
    """Build an engine for ``url``.

    SQLite connections are shared across the threads FastAPI runs sync work on
    and enforce foreign keys, matching PostgreSQL's referential behaviour.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        engine = create_engine(url, connect_args=connect_args, echo=settings.sql_debug, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True, echo=settings.sql_debug, **kwargs)


engine = make_engine(settings.database_url_sync)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection.

    Anything left uncommitted when the request ends is rolled back.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine | None = None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    Base.metadata.drop_all(bind=bind or engine)
