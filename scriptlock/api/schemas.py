"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

LOCK_NAME_PATTERN = r"^[A-Za-z0-9._:-]{1,128}$"


# ── Requests ──────────────────────────────────────────────────────────


class AcquireRequest(BaseModel):
    owner: Optional[str] = Field(
        None,
        min_length=1,
        max_length=256,
        description="Owner token. Generated when omitted; keep it to release.",
    )
    ttl_seconds: Optional[int] = Field(None, ge=1, le=3600)


class ReleaseRequest(BaseModel):
    owner: str = Field(..., min_length=1, max_length=256)


# ── Responses ─────────────────────────────────────────────────────────


class AcquireResponse(BaseModel):
    name: str
    owner: str
    acquired: bool
    ttl_seconds: int


class ReleaseResponse(BaseModel):
    name: str
    owner: str
    released: bool


class LockStatusResponse(BaseModel):
    name: str
    state: str
    owner: Optional[str] = None
    ttl_seconds: Optional[int] = None


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
