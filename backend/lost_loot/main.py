from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from lost_loot.api.errors import register_exception_handlers
from lost_loot.api.rate_limit import build_limiter, handle_rate_limit_exceeded
from lost_loot.api.request_logging import log_requests
from lost_loot.api.security_headers import add_security_headers
from lost_loot.api.v1.router import api_router
from lost_loot.core.config import Settings, get_settings
from lost_loot.core.logging import configure_logging
from lost_loot.core.rules import DEFAULT_RULES, RuleTable
from lost_loot.db.init_db import init_db
from lost_loot.services.game_session import GameSessionService
from lost_loot.services.team_cache import TeamStateCache
from lost_loot.services.team_store import SqlTeamStateStore, create_engine


def create_app(settings: Settings | None = None, *, rules: RuleTable = DEFAULT_RULES) -> FastAPI:
    app_settings = settings or get_settings()
    configure_logging(app_settings.log_level, json_output=app_settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine(app_settings.database_url)
        cache = TeamStateCache(app_settings.cache_ttl_seconds)
        app.state.engine = engine
        app.state.settings = app_settings
        app.state.team_cache = cache
        app.state.game_sessions = GameSessionService(
            SqlTeamStateStore.from_engine(engine),
            cache,
            rules=rules,
        )
        await init_db(engine)
        yield
        await cache.close()
        await engine.dispose()

    app = FastAPI(title=app_settings.app_name, version=app_settings.version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.limiter = build_limiter(app_settings)
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(log_requests)
    app.middleware("http")(add_security_headers)
    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit_exceeded)

    app.include_router(api_router, prefix=app_settings.api_v1_prefix)

    return app


app = create_app()
