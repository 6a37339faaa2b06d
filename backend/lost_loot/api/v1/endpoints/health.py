from datetime import UTC, datetime

from fastapi import APIRouter, Request

from lost_loot.schemas.team_state import HealthRead

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthRead)
async def health(request: Request) -> HealthRead:
    return HealthRead(
        status="healthy",
        version=request.app.state.settings.version,
        timestamp=datetime.now(UTC),
    )
