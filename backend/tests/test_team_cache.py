import asyncio
from datetime import UTC, datetime

import pytest

from lost_loot.schemas.team_state import TeamState
from lost_loot.services.team_cache import TeamStateCache

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _state(team_id: str) -> TeamState:
    return TeamState(
        team_id=team_id,
        start_time=NOW,
        unlocked_checkpoints=frozenset({1}),
        created_at=NOW,
        updated_at=NOW,
    )


def test_cache_returns_stored_snapshot_until_expiry(fake_monotonic):
    async def run() -> None:
        clock = fake_monotonic
        cache = TeamStateCache(30, clock=clock)
        await cache.set("team-a", _state("team-a"))

        clock.advance(29.9)
        assert await cache.get("team-a") == _state("team-a")

        clock.advance(0.1)
        assert await cache.get("team-a") is None
        assert len(cache) == 0

    asyncio.run(run())


def test_cache_per_entry_ttl_override(fake_monotonic):
    async def run() -> None:
        clock = fake_monotonic
        cache = TeamStateCache(300, clock=clock)
        await cache.set("team-a", _state("team-a"), ttl_seconds=5)
        await cache.set("team-b", _state("team-b"))

        clock.advance(6)
        assert await cache.get("team-a") is None
        assert await cache.get("team-b") is not None

    asyncio.run(run())


def test_cache_set_refreshes_expiry(fake_monotonic):
    async def run() -> None:
        clock = fake_monotonic
        cache = TeamStateCache(10, clock=clock)
        await cache.set("team-a", _state("team-a"))
        clock.advance(8)
        await cache.set("team-a", _state("team-a"))
        clock.advance(8)
        assert await cache.get("team-a") is not None

    asyncio.run(run())


def test_cache_delete_and_flush():
    async def run() -> None:
        cache = TeamStateCache(60)
        await cache.set("team-a", _state("team-a"))
        await cache.set("team-b", _state("team-b"))

        await cache.delete("team-a")
        await cache.delete("never-cached")
        assert await cache.get("team-a") is None
        assert await cache.get("team-b") is not None

        await cache.flush()
        assert await cache.get("team-b") is None

    asyncio.run(run())


def test_cache_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        TeamStateCache(0)


def test_cached_snapshot_cannot_be_mutated():
    async def run() -> None:
        cache = TeamStateCache(60)
        await cache.set("team-a", _state("team-a"))
        cached = await cache.get("team-a")
        with pytest.raises(ValueError):
            cached.end_time = NOW

    asyncio.run(run())
