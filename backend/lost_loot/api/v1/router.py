from fastapi import APIRouter

from lost_loot.api.v1.endpoints import checkpoint, game, health, team

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(game.router)
api_router.include_router(team.router)
api_router.include_router(checkpoint.router)
