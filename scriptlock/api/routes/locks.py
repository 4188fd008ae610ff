"""
Lock endpoints
==============

POST /api/v1/locks/{name}/acquire -- try once to take a lock (409 if held)
POST /api/v1/locks/{name}/release -- release a lock you still own
GET  /api/v1/locks/{name}         -- current holder and remaining lease
"""

import uuid
from typing import Annotated, Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse

from scriptlock.api.dependencies import get_store
from scriptlock.api.middleware import limiter
from scriptlock.api.schemas import (
    LOCK_NAME_PATTERN,
    AcquireRequest,
    AcquireResponse,
    ErrorResponse,
    LockStatusResponse,
    ReleaseRequest,
    ReleaseResponse,
)
from scriptlock.config import settings
from scriptlock.infrastructure.locks import acquire_lock, inspect_lock, release_lock

router = APIRouter(prefix="/locks", tags=["locks"])

LockName = Annotated[
    str, Path(pattern=LOCK_NAME_PATTERN, description="Lock name / Redis key")
]


@router.post(
    "/{name}/acquire",
    response_model=AcquireResponse,
    summary="Try to acquire a lock",
    responses={
        409: {"model": AcquireResponse, "description": "Lock is held by another owner."},
        503: {"model": ErrorResponse},
    },
)
@limiter.limit("100/minute")
async def acquire(
    request: Request,
    name: LockName,
    body: Optional[AcquireRequest] = None,
    store: aioredis.Redis = Depends(get_store),
):
    body = body or AcquireRequest()
    owner = body.owner or uuid.uuid4().hex
    ttl = body.ttl_seconds or settings.lock_ttl_seconds

    acquired = await acquire_lock(store, name, owner, ttl)
    result = AcquireResponse(name=name, owner=owner, acquired=acquired, ttl_seconds=ttl)
    if not acquired:
        return JSONResponse(status_code=409, content=result.model_dump())
    return result


@router.post(
    "/{name}/release",
    response_model=ReleaseResponse,
    summary="Release a lock if the owner token still matches",
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
@limiter.limit("100/minute")
async def release(
    request: Request,
    name: LockName,
    body: ReleaseRequest,
    store: aioredis.Redis = Depends(get_store),
):
    released = await release_lock(store, name, body.owner)
    return ReleaseResponse(name=name, owner=body.owner, released=released)


@router.get(
    "/{name}",
    response_model=LockStatusResponse,
    summary="Inspect a lock",
)
@limiter.limit("100/minute")
async def status(
    request: Request,
    name: LockName,
    store: aioredis.Redis = Depends(get_store),
):
    info = await inspect_lock(store, name)
    return LockStatusResponse(
        name=info.name,
        state=info.state.value,
        owner=info.owner,
        ttl_seconds=info.ttl_seconds,
    )
