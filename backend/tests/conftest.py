from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from lost_loot.core.config import Settings
from lost_loot.db.init_db import init_db
from lost_loot.main import create_app
from lost_loot.services.game_session import GameSessionService
from lost_loot.services.team_cache import TeamStateCache
from lost_loot.services.team_store import SqlTeamStateStore, create_engine


class FakeMonotonic:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FrozenClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@asynccontextmanager
async def _open_service(
    database_url: str,
    *,
    ttl_seconds: float = 300,
    clock=None,
) -> AsyncIterator[GameSessionService]:
    engine = create_engine(database_url)
    await init_db(engine)
    cache = TeamStateCache(ttl_seconds)
    kwargs = {"clock": clock} if clock is not None else {}
    service = GameSessionService(SqlTeamStateStore.from_engine(engine), cache, **kwargs)
    try:
        yield service
    finally:
        await cache.close()
        await engine.dispose()


@pytest.fixture()
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def fake_monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture()
def open_game_service(database_url):
    def _open(**kwargs):
        return _open_service(database_url, **kwargs)

    return _open


@pytest.fixture()
def client(database_url) -> Generator[TestClient, None, None]:
    settings = Settings(
        environment="test",
        database_url=database_url,
        cors_origins=["*"],
        log_level="DEBUG",
    )
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def limited_client(database_url) -> Generator[TestClient, None, None]:
    settings = Settings(
        environment="test",
        database_url=database_url,
        rate_limit="3 per minute",
    )
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client
