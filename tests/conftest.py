"""Fixtures compartilhadas: repositórios em memória, SQLite em memória e app."""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from portaal.core.settings import Settings
from portaal.db import models_registry  # noqa: F401
from portaal.db.base import Base
from portaal.db.session import build_engine, build_session_factory
from portaal.main import create_app
from portaal.repositories import MemoryRepositories, RepositoryProvider, SqlRepositories
from portaal.utils.storage_client import StorageClient


def make_dealer(repos, **overrides):
    suffix = uuid.uuid4().hex[:8]
    data = {
        "name": f"Dealer {suffix}",
        "email": f"dealer-{suffix}@example.com",
        "role": "dealer",
        "status": "active",
        "is_active": True,
    }
    data.update(overrides)
    return repos.dealers.create(data)


@pytest.fixture
def repos() -> MemoryRepositories:
    return MemoryRepositories()


@pytest.fixture
def demo_repos() -> MemoryRepositories:
    from portaal.repositories import build_demo_repositories

    return build_demo_repositories()


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_repos(sql_engine):
    session = build_session_factory(sql_engine)()
    yield SqlRepositories(session)
    session.close()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        REALTIME_BACKEND="polling",
        POLL_INTERVAL_SECONDS=0.05,
        LOG_LEVEL="WARNING",
        _env_file=None,
    )


@pytest.fixture
def provider(app_settings):
    prov = RepositoryProvider(app_settings)
    prov.create_schema()
    yield prov
    prov.dispose()


@pytest.fixture
def client(app_settings, provider):
    app = create_app(app_settings, repositories=provider, storage=StorageClient(app_settings))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seeded(provider):
    """Um admin e dois dealers no SQLite do app."""
    with provider.open() as r:
        admin = make_dealer(r, name="Anna Admin", role="admin")
        alice = make_dealer(r, name="Alice")
        bob = make_dealer(r, name="Bob")
    return {"admin": admin, "alice": alice, "bob": bob}


def as_dealer(dealer) -> dict[str, str]:
    return {"X-Dealer-Id": dealer.id}
