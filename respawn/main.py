import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from respawn.api import auth, friends, health, history, notifications
from respawn.core.config import Settings, settings as default_settings
from respawn.core.errors import CooldownActive, RespawnError
from respawn.db.models import Base
from respawn.db.session import build_engine, build_session_factory
from respawn.scheduler import start_scheduler, stop_scheduler
from respawn.services.auth import AuthService
from respawn.services.cooldowns import CooldownLedger
from respawn.services.friends import FriendService
from respawn.services.notifications import NotificationService
from respawn.utils.auth.token_store import SessionTokenStore
from respawn.utils.concurrency import LocalPairLocks, RedisPairLocks
from respawn.utils.messaging.push import WebPushDispatcher
from respawn.utils.redis_pool import RedisPool

log = logging.getLogger("respawn")
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


def _build_locks(settings: Settings, redis_pool: RedisPool):
    if settings.COOLDOWN_LOCK_BACKEND == "redis":
        return RedisPairLocks(redis_pool.client, timeout=settings.COOLDOWN_LOCK_TIMEOUT_SECONDS)
    return LocalPairLocks()


async def respawn_error_handler(request: Request, exc: RespawnError) -> JSONResponse:
    headers = None
    if isinstance(exc, CooldownActive):
        retry_after = max(int((exc.available_at - datetime.now(timezone.utc)).total_seconds()), 1)
        headers = {"Retry-After": str(retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app(settings: Settings = default_settings) -> FastAPI:
    engine = build_engine(settings.DB_URL)
    session_factory = build_session_factory(engine)
    redis_pool = RedisPool(settings.REDIS_URL)
    token_store = SessionTokenStore(
        ttl=timedelta(days=settings.SESSION_TTL_DAYS),
        sweep_interval=settings.SESSION_SWEEP_INTERVAL_SECONDS,
    )
    ledger = CooldownLedger(locks=_build_locks(settings, redis_pool))
    dispatcher = WebPushDispatcher(settings.VAPID_PRIVATE_KEY, settings.VAPID_EMAIL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DB_CREATE_ALL:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        await token_store.start()
        start_scheduler(
            session_factory,
            ledger,
            settings.COOLDOWN_SWEEP_INTERVAL_SECONDS,
            enabled=settings.COOLDOWN_SWEEP_ENABLED,
        )
        try:
            yield
        finally:
            stop_scheduler()
            await token_store.shutdown()
            await redis_pool.close()
            await engine.dispose()

    app = FastAPI(title="respawn", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.redis_pool = redis_pool
    app.state.token_store = token_store
    app.state.ledger = ledger
    app.state.auth_service = AuthService(token_store, settings)
    app.state.friend_service = FriendService(ledger, settings)
    app.state.notification_service = NotificationService(ledger, dispatcher, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RespawnError, respawn_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(friends.router)
    app.include_router(notifications.router)
    app.include_router(history.router)
    return app


app = create_app()
