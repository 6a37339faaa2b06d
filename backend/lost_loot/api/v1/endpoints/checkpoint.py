from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError

from lost_loot.api.deps import GameSessions, Rules
from lost_loot.schemas.team_state import CheckpointCompleteRequest, TeamState

router = APIRouter(prefix="/checkpoint", tags=["checkpoint"])


@router.post("/complete", response_model=TeamState)
async def complete_checkpoint(
    payload: CheckpointCompleteRequest,
    game_sessions: GameSessions,
    rules: Rules,
) -> TeamState:
    if payload.checkpoint_id > rules.max_checkpoint_id:
        raise RequestValidationError(
            [
                {
                    "type": "less_than_equal",
                    "loc": ("body", "checkpointId"),
                    "msg": (
                        "Checkpoint ID must be an integer between 1 and "
                        f"{rules.max_checkpoint_id}."
                    ),
                    "input": payload.checkpoint_id,
                }
            ]
        )
    return await game_sessions.complete_checkpoint(payload.team_id, payload.checkpoint_id)
