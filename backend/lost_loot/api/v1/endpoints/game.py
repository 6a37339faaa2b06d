import logging

from fastapi import APIRouter, Response, status

from lost_loot.api.deps import GameSessions
from lost_loot.schemas.team_state import GameEndRequest, GameStartRequest, TeamState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["game"])


@router.post(
    "/start",
    response_model=TeamState,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_201_CREATED: {"description": "New game session created"}},
)
async def start_game(
    payload: GameStartRequest,
    response: Response,
    game_sessions: GameSessions,
) -> TeamState:
    result = await game_sessions.start_game(payload.team_id)
    if result.is_new:
        response.status_code = status.HTTP_201_CREATED
        logger.info("New game session created", extra={"team_id": payload.team_id})
    else:
        logger.info("Existing game session retrieved", extra={"team_id": payload.team_id})
    return result.state


@router.post("/end", response_model=TeamState)
async def end_game(payload: GameEndRequest, game_sessions: GameSessions) -> TeamState:
    return await game_sessions.end_game(payload.team_id)
