from typing import Annotated

from fastapi import APIRouter, Path

from lost_loot.api.deps import GameSessions
from lost_loot.core.errors import TeamNotFound
from lost_loot.core.rules import TEAM_ID_PATTERN
from lost_loot.schemas.team_state import TeamState

router = APIRouter(prefix="/team", tags=["team"])


@router.get("/status/{team_id}", response_model=TeamState)
async def get_team_status(
    team_id: Annotated[str, Path(pattern=TEAM_ID_PATTERN)],
    game_sessions: GameSessions,
) -> TeamState:
    state = await game_sessions.get_status(team_id)
    if state is None:
        raise TeamNotFound()
    return state
