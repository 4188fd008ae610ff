"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- PING Redis
"""

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Request
from redis.exceptions import RedisError

from scriptlock.api.dependencies import get_store
from scriptlock.api.middleware import limiter
from scriptlock.api.schemas import ErrorResponse, HealthResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Check that Redis answers",
    responses={503: {"model": ErrorResponse}},
)
@limiter.limit("100/minute")
async def health(
    request: Request,
    store: aioredis.Redis = Depends(get_store),
):
    try:
        await store.ping()
    except RedisError as exc:
        raise HTTPException(status_code=503, detail=f"Redis unavailable: {exc}")
    return HealthResponse()
