from sqlalchemy.ext.asyncio import AsyncEngine

from lost_loot.db import models  # noqa: F401
from lost_loot.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
