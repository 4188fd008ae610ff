"""
FastAPI application factory.

* Registers routes for locks and admin.
* Pre-loads the unlock script into the Redis script cache on startup and
  closes the connection pool on shutdown.
* Maps store failures to 503 and malformed script replies to 502.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from scriptlock.api.middleware import limiter
from scriptlock.api.routes import admin, locks
from scriptlock.config import settings
from scriptlock.domain.errors import UnexpectedReplyError
from scriptlock.infrastructure.locks import UNLOCK_SCRIPT
from scriptlock.infrastructure.redis_client import close_redis, get_redis

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def warm_scripts(client) -> None:
    """SCRIPT LOAD everything the lock path evaluates."""
    sha = await UNLOCK_SCRIPT.load(client)
    logger.info("Unlock script cached as %s", sha)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warm the script cache on startup; close the pool on shutdown."""
    if settings.warm_scripts_on_startup:
        try:
            await warm_scripts(await get_redis())
        except RedisError:
            # EVALSHA falls back to EVAL, so a cold cache only costs bandwidth
            logger.exception("Could not pre-load scripts")
    yield
    await close_redis()


async def _redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    logger.error("Redis error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Redis error: {exc}"})


async def _unexpected_reply_handler(
    request: Request, exc: UnexpectedReplyError
) -> JSONResponse:
    logger.error("Malformed reply on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="scriptlock",
        description=(
            "Distributed locks on Redis.  Acquire is a single SET NX EX; "
            "release is an atomic compare-and-delete Lua script, so a holder "
            "whose lease expired can never delete somebody else's lock."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Store failures
    app.add_exception_handler(RedisError, _redis_error_handler)
    app.add_exception_handler(UnexpectedReplyError, _unexpected_reply_handler)

    # Routers
    app.include_router(locks.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
