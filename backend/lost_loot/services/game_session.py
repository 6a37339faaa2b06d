"""Game lifecycle for a team: start, complete checkpoints, end.

This is the only code that mutates team state. Reads go cache first, then the
store (refilling the cache on a store hit). Writes go to the store first and
then overwrite the cache, so the cache never holds a state the store rejected.

Mutations for one team are serialized by an in-process lock keyed on the team
identifier. Several API processes sharing one database are not coordinated by
this lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from lost_loot.core.errors import CheckpointUnavailable, GameNotCompletable, TeamNotFound
from lost_loot.core.rules import DEFAULT_RULES, RuleTable
from lost_loot.schemas.team_state import TeamState
from lost_loot.services import progression
from lost_loot.services.team_cache import TeamStateCache
from lost_loot.services.team_store import TeamStateConflict, TeamStateMissing, TeamStateStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class StartResult:
    state: TeamState
    is_new: bool


class TeamLocks:
    """Keyed asyncio locks, dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, team_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(team_id, asyncio.Lock())
        self._users[team_id] = self._users.get(team_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[team_id] -= 1
            if not self._users[team_id]:
                self._users.pop(team_id, None)
                self._locks.pop(team_id, None)

    def __len__(self) -> int:
        return len(self._locks)


class GameSessionService:
    def __init__(
        self,
        store: TeamStateStore,
        cache: TeamStateCache,
        *,
        rules: RuleTable = DEFAULT_RULES,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.cache = cache
        self.rules = rules
        self._clock = clock
        self._locks = TeamLocks()

    def _next_timestamp(self, previous: datetime | None = None) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            return previous + timedelta(microseconds=1)
        return now

    async def get_status(self, team_id: str) -> TeamState | None:
        cached = await self.cache.get(team_id)
        if cached is not None:
            return cached

        stored = await self.store.get(team_id)
        if stored is not None:
            await self.cache.set(team_id, stored)
        return stored

    async def _require_state(self, team_id: str) -> TeamState:
        state = await self.get_status(team_id)
        if state is None:
            raise TeamNotFound()
        return state

    async def _apply_update(self, state: TeamState, **changes) -> TeamState:
        fields = dict(changes)
        if "updated_at" not in fields:
            fields["updated_at"] = self._next_timestamp(state.updated_at)
        try:
            await self.store.update_partial(state.team_id, fields)
        except TeamStateMissing as exc:
            await self.cache.delete(state.team_id)
            raise TeamNotFound() from exc

        updated = state.model_copy(update=fields)
        await self.cache.set(state.team_id, updated)
        return updated

    async def start_game(self, team_id: str) -> StartResult:
        async with self._locks.hold(team_id):
            existing = await self.get_status(team_id)
            if existing is not None:
                return StartResult(state=existing, is_new=False)

            logger.info("No existing game for team, creating one", extra={"team_id": team_id})
            now = self._next_timestamp()
            state = TeamState(
                team_id=team_id,
                start_time=now,
                end_time=None,
                completed_checkpoints=frozenset(),
                unlocked_checkpoints=frozenset({self.rules.initial_checkpoint}),
                keys_collected=frozenset(),
                created_at=now,
                updated_at=now,
            )
            try:
                await self.store.create(state)
            except TeamStateConflict:
                # Another process created the team between our read and write.
                stored = await self.store.get(team_id)
                if stored is None:
                    raise
                await self.cache.set(team_id, stored)
                return StartResult(state=stored, is_new=False)

            await self.cache.set(team_id, state)
            return StartResult(state=state, is_new=True)

    async def complete_checkpoint(self, team_id: str, checkpoint_id: int) -> TeamState:
        async with self._locks.hold(team_id):
            state = await self._require_state(team_id)

            if state.end_time is not None:
                raise CheckpointUnavailable("Game has already ended.")
            if checkpoint_id in state.completed_checkpoints:
                raise CheckpointUnavailable("Checkpoint has already been completed.")
            if checkpoint_id not in state.unlocked_checkpoints:
                raise CheckpointUnavailable("Checkpoint is not yet unlocked.")

            completed = state.completed_checkpoints | {checkpoint_id}
            keys = state.keys_collected
            if progression.awards_key(checkpoint_id, rules=self.rules):
                keys = keys | {checkpoint_id}
            unlocked = progression.next_unlocked(
                checkpoint_id,
                state.unlocked_checkpoints,
                completed,
                rules=self.rules,
            )

            updated = await self._apply_update(
                state,
                completed_checkpoints=completed,
                keys_collected=keys,
                unlocked_checkpoints=unlocked,
            )

        logger.info(
            "Checkpoint completed",
            extra={"team_id": team_id, "checkpoint_id": checkpoint_id},
        )
        return updated

    async def end_game(self, team_id: str) -> TeamState:
        async with self._locks.hold(team_id):
            state = await self._require_state(team_id)

            if state.end_time is not None:
                logger.warning(
                    "Team attempted to end a game that was already finished",
                    extra={"team_id": team_id},
                )
                return state

            if not progression.can_end(state, rules=self.rules):
                raise GameNotCompletable()

            end_time = self._next_timestamp(state.updated_at)
            final = await self._apply_update(state, end_time=end_time, updated_at=end_time)

        logger.info("Game ended", extra={"team_id": team_id})
        return final
