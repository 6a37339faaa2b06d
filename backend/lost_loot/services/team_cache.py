from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from lost_loot.schemas.team_state import TeamState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    state: TeamState
    expires_at: float


class TeamStateCache:
    """Short-lived in-memory copy of recently used team states.

    Only a latency optimization: the store stays authoritative. A change made
    to the store behind this process's back is visible here only once the
    entry expires, so readers may see a snapshot up to ``ttl_seconds`` old.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        logger.info("Team state cache initialized with a TTL of %ss", ttl_seconds)

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    async def get(self, team_id: str) -> TeamState | None:
        async with self._lock:
            entry = self._entries.get(team_id)
            if entry is not None and entry.expires_at <= self._clock():
                del self._entries[team_id]
                entry = None

        if entry is None:
            logger.debug("Cache miss", extra={"team_id": team_id})
            return None
        logger.debug("Cache hit", extra={"team_id": team_id})
        return entry.state

    async def set(self, team_id: str, state: TeamState, ttl_seconds: float | None = None) -> None:
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        async with self._lock:
            self._entries[team_id] = _Entry(state=state, expires_at=self._clock() + ttl)
        logger.debug("Cache set with TTL %ss", ttl, extra={"team_id": team_id})

    async def delete(self, team_id: str) -> None:
        async with self._lock:
            self._entries.pop(team_id, None)
        logger.debug("Cache delete", extra={"team_id": team_id})

    async def flush(self) -> None:
        async with self._lock:
            self._entries.clear()
        logger.info("Team state cache flushed")

    async def close(self) -> None:
        await self.flush()

    def __len__(self) -> int:
        return len(self._entries)
