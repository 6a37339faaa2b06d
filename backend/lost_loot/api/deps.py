from typing import Annotated

from fastapi import Depends, Request

from lost_loot.core.rules import RuleTable
from lost_loot.services.game_session import GameSessionService


def get_game_sessions(request: Request) -> GameSessionService:
    return request.app.state.game_sessions


def get_rules(request: Request) -> RuleTable:
    return request.app.state.game_sessions.rules


GameSessions = Annotated[GameSessionService, Depends(get_game_sessions)]
Rules = Annotated[RuleTable, Depends(get_rules)]
