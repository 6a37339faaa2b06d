from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from lost_loot.core.rules import TEAM_ID_PATTERN


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamState(CamelModel):
    """Snapshot of one team's progress. Instances are immutable values."""

    model_config = ConfigDict(frozen=True)

    team_id: str
    start_time: datetime
    end_time: datetime | None = None
    completed_checkpoints: frozenset[int] = frozenset()
    unlocked_checkpoints: frozenset[int] = frozenset()
    keys_collected: frozenset[int] = frozenset()
    created_at: datetime
    updated_at: datetime

    @field_serializer("completed_checkpoints", "unlocked_checkpoints", "keys_collected")
    def _serialize_checkpoint_set(self, value: frozenset[int]) -> list[int]:
        return sorted(value)


class GameStartRequest(CamelModel):
    team_id: str = Field(pattern=TEAM_ID_PATTERN)


class GameEndRequest(CamelModel):
    team_id: str = Field(pattern=TEAM_ID_PATTERN)


class CheckpointCompleteRequest(CamelModel):
    team_id: str = Field(pattern=TEAM_ID_PATTERN)
    # Upper bound is checked against the active rule table in the endpoint.
    checkpoint_id: int = Field(ge=1, strict=True)


class HealthRead(BaseModel):
    status: str
    version: str
    timestamp: datetime
