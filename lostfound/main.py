"""
Lost & Found API — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator

from lostfound.api import admin, auth, guard, health, items, messages, reports, users
from lostfound.api.items import UPLOAD_URL_PREFIX
from lostfound.core.config import Settings, get_settings
from lostfound.core.errors import register_error_handlers
from lostfound.core.logging_config import configure_logging
from lostfound.core.redis_client import close_redis, create_redis
from lostfound.core.security import PasswordHasher, TokenCodec
from lostfound.db.database import Database
from lostfound.middleware.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (schema changes are applied out of band in production)
    await app.state.database.create_all()
    logger.info("%s %s started", app.state.settings.SERVICE_NAME, app.state.settings.SERVICE_VERSION)
    yield
    # Shutdown
    await close_redis(app.state.redis)
    await app.state.database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Campus Lost & Found API",
        description="Lost and found items, messaging and moderation for a campus community.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.database = Database(
        settings.database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        echo=settings.DEBUG,
    )
    app.state.token_codec = TokenCodec(settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.redis = create_redis(settings) if settings.RATE_LIMIT_ENABLED else None

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Rate Limiting (active only with a Redis client) ───────────────────────
    app.add_middleware(SlidingWindowRateLimiter, settings=settings)

    # ── Prometheus Metrics ────────────────────────────────────────────────────
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    register_error_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────────
    for module in (auth, users, items, messages, reports, guard, admin):
        app.include_router(module.router, prefix=settings.API_PREFIX)
    app.include_router(health.router)

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/")
    async def root():
        return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "lostfound.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
