# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from civic_report.core.security import Principal, Role, create_access_token
from civic_report.db.session import Base, create_tables, drop_tables, make_engine
from civic_report.db.session import get_db as app_get_session
from civic_report.main import app as fastapi_app
from civic_report.services.lifecycle import IssueView, LifecycleEngine

TEST_DB_URL = "sqlite://"

# Lower Manhattan; listing tests measure distances from here.
NYC = (-74.006, 40.7128)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = make_engine(TEST_DB_URL, poolclass=StaticPool)
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session shared by the test body and every request it makes.

    The lifecycle engine commits for real, so tables are emptied afterwards.
    """
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def lifecycle(db_session: Session) -> LifecycleEngine:
    """Engine with the default policies (threshold 5, permissive transitions)."""
    return LifecycleEngine(db_session)


@pytest.fixture()
def citizen() -> Principal:
    return Principal(id="citizen-1", role=Role.CITIZEN)


@pytest.fixture()
def other_citizen() -> Principal:
    return Principal(id="citizen-2", role=Role.CITIZEN)


@pytest.fixture()
def agent() -> Principal:
    return Principal(id="agent-1", role=Role.AGENT)


@pytest.fixture()
def admin() -> Principal:
    return Principal(id="admin-1", role=Role.ADMIN)


def auth_headers(principal: Principal) -> dict[str, str]:
    """Return authorization headers carrying ``principal``'s id and role."""
    token = create_access_token(principal.id, principal.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for() -> Callable[[Principal], dict[str, str]]:
    return auth_headers


@pytest.fixture()
def make_citizens() -> Callable[..., list[Principal]]:
    """Factory for distinct citizen principals, e.g. to file several flags."""

    def _make(count: int, prefix: str = "flagger") -> list[Principal]:
        return [Principal(id=f"{prefix}-{i}", role=Role.CITIZEN) for i in range(count)]

    return _make


@pytest.fixture()
def citizen_headers(citizen: Principal) -> dict[str, str]:
    return auth_headers(citizen)


@pytest.fixture()
def other_citizen_headers(other_citizen: Principal) -> dict[str, str]:
    return auth_headers(other_citizen)


@pytest.fixture()
def agent_headers(agent: Principal) -> dict[str, str]:
    return auth_headers(agent)


@pytest.fixture()
def admin_headers(admin: Principal) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def make_issue(lifecycle: LifecycleEngine, citizen: Principal) -> Callable[..., IssueView]:
    """Factory reporting an issue through the engine; keywords override defaults."""

    def _make(**overrides: Any) -> IssueView:
        reporter = overrides.pop("principal", citizen)
        fields: dict[str, Any] = {
            "title": "Pothole on Main Street",
            "description": "Large pothole near the crosswalk damaging tyres.",
            "category": "Road & Transportation",
            "longitude": NYC[0],
            "latitude": NYC[1],
        }
        fields.update(overrides)
        return lifecycle.create_issue(reporter, **fields)

    return _make


@pytest.fixture()
def issue(make_issue: Callable[..., IssueView]) -> IssueView:
    """A visible Reported issue at ``NYC``."""
    return make_issue()
