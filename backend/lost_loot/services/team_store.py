"""Durable, authoritative storage of team state.

One row per team in ``team_states``. Every call opens its own session, so a
call is atomic for its row and nothing spans teams.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lost_loot.core.errors import PersistenceFailure
from lost_loot.db.models import TeamStateRecord
from lost_loot.schemas.team_state import TeamState

logger = logging.getLogger(__name__)

_SET_FIELDS = frozenset({"completed_checkpoints", "unlocked_checkpoints", "keys_collected"})
_UPDATABLE_FIELDS = _SET_FIELDS | {"end_time", "updated_at"}


class TeamStateConflict(Exception):
    """A record for the team already exists."""


class TeamStateMissing(Exception):
    """A partial update matched no record."""


class TeamStateStore(Protocol):
    async def get(self, team_id: str) -> TeamState | None: ...

    async def create(self, state: TeamState) -> None: ...

    async def update_partial(self, team_id: str, fields: Mapping[str, Any]) -> None: ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_state(record: TeamStateRecord) -> TeamState:
    return TeamState(
        team_id=record.team_id,
        start_time=_as_utc(record.start_time),
        end_time=_as_utc(record.end_time) if record.end_time is not None else None,
        completed_checkpoints=frozenset(record.completed_checkpoints),
        unlocked_checkpoints=frozenset(record.unlocked_checkpoints),
        keys_collected=frozenset(record.keys_collected),
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
    )


def _column_values(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    return {
        name: sorted(value) if name in _SET_FIELDS else value
        for name, value in fields.items()
    }


class SqlTeamStateStore:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> SqlTeamStateStore:
        return cls(async_sessionmaker(engine, expire_on_commit=False))

    async def get(self, team_id: str) -> TeamState | None:
        try:
            async with self._session_maker() as db:
                record = await db.scalar(
                    select(TeamStateRecord).where(TeamStateRecord.team_id == team_id)
                )
        except SQLAlchemyError as exc:
            logger.exception("Failed to read team state", extra={"team_id": team_id})
            raise PersistenceFailure() from exc

        if record is None:
            logger.debug("No stored team state", extra={"team_id": team_id})
            return None
        return _to_state(record)

    async def create(self, state: TeamState) -> None:
        record = TeamStateRecord(
            team_id=state.team_id,
            start_time=state.start_time,
            end_time=state.end_time,
            completed_checkpoints=sorted(state.completed_checkpoints),
            unlocked_checkpoints=sorted(state.unlocked_checkpoints),
            keys_collected=sorted(state.keys_collected),
            created_at=state.created_at,
            updated_at=state.updated_at,
        )
        try:
            async with self._session_maker() as db:
                db.add(record)
                await db.commit()
        except IntegrityError as exc:
            raise TeamStateConflict(state.team_id) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to create team state", extra={"team_id": state.team_id})
            raise PersistenceFailure() from exc

        logger.info("Created team state", extra={"team_id": state.team_id})

    async def update_partial(self, team_id: str, fields: Mapping[str, Any]) -> None:
        values = _column_values(fields)
        try:
            async with self._session_maker() as db:
                result = await db.execute(
                    update(TeamStateRecord)
                    .where(TeamStateRecord.team_id == team_id)
                    .values(**values)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update team state", extra={"team_id": team_id})
            raise PersistenceFailure() from exc

        if result.rowcount == 0:
            raise TeamStateMissing(team_id)
        logger.info(
            "Updated team state fields %s",
            ", ".join(sorted(values)),
            extra={"team_id": team_id},
        )


def create_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, pool_pre_ping=True)
