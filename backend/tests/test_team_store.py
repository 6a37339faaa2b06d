import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from lost_loot.core.errors import PersistenceFailure
from lost_loot.db.init_db import init_db
from lost_loot.schemas.team_state import TeamState
from lost_loot.services.team_store import (
    SqlTeamStateStore,
    TeamStateConflict,
    TeamStateMissing,
    create_engine,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _new_state(team_id: str) -> TeamState:
    return TeamState(
        team_id=team_id,
        start_time=NOW,
        unlocked_checkpoints=frozenset({1}),
        created_at=NOW,
        updated_at=NOW,
    )


def test_store_create_and_get_round_trip(database_url):
    async def run() -> None:
        engine = create_engine(database_url)
        await init_db(engine)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            assert await store.get("team-store") is None
            await store.create(_new_state("team-store"))

            stored = await store.get("team-store")
            assert stored == _new_state("team-store")
            assert stored.start_time.tzinfo is not None
        finally:
            await engine.dispose()

    asyncio.run(run())


def test_store_create_rejects_existing_team(database_url):
    async def run() -> None:
        engine = create_engine(database_url)
        await init_db(engine)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            await store.create(_new_state("team-dupe"))
            with pytest.raises(TeamStateConflict):
                await store.create(_new_state("team-dupe"))
        finally:
            await engine.dispose()

    asyncio.run(run())


def test_store_partial_update_only_touches_named_fields(database_url):
    async def run() -> None:
        engine = create_engine(database_url)
        await init_db(engine)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            await store.create(_new_state("team-partial"))
            later = NOW + timedelta(minutes=5)
            await store.update_partial(
                "team-partial",
                {"keys_collected": frozenset({4, 1}), "updated_at": later},
            )

            stored = await store.get("team-partial")
            assert stored.keys_collected == {1, 4}
            assert stored.unlocked_checkpoints == {1}
            assert stored.completed_checkpoints == frozenset()
            assert stored.end_time is None
            assert stored.updated_at == later
            assert stored.created_at == NOW
        finally:
            await engine.dispose()

    asyncio.run(run())


def test_store_partial_update_on_missing_team(database_url):
    async def run() -> None:
        engine = create_engine(database_url)
        await init_db(engine)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            with pytest.raises(TeamStateMissing):
                await store.update_partial("team-ghost", {"end_time": NOW})
        finally:
            await engine.dispose()

    asyncio.run(run())


def test_store_rejects_immutable_fields(database_url):
    async def run() -> None:
        engine = create_engine(database_url)
        await init_db(engine)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            await store.create(_new_state("team-immutable"))
            with pytest.raises(ValueError):
                await store.update_partial("team-immutable", {"start_time": NOW})
        finally:
            await engine.dispose()

    asyncio.run(run())


def test_store_wraps_database_errors(database_url):
    async def run() -> None:
        # Schema never created, so every statement fails inside the driver.
        engine = create_engine(database_url)
        store = SqlTeamStateStore.from_engine(engine)
        try:
            with pytest.raises(PersistenceFailure) as excinfo:
                await store.get("team-broken")
            assert excinfo.value.__cause__ is not None
            assert "team_states" not in excinfo.value.detail

            with pytest.raises(PersistenceFailure):
                await store.update_partial("team-broken", {"end_time": NOW})
        finally:
            await engine.dispose()

    asyncio.run(run())
