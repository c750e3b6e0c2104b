"""Response envelopes shared by the read endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    total_count: int | None = None
    source: str | None = None
    cached: bool | None = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ApiError(BaseModel):
    error: ErrorDetail


def wrap_response(
    data: Any,
    *,
    total_count: int | None = None,
    source: str | None = None,
    cached: bool | None = None,
) -> dict[str, Any]:
    """Build a {data, meta} response dict, dropping unset meta fields."""
    meta = {"total_count": total_count, "source": source, "cached": cached}
    return {
        "data": data,
        "meta": {k: v for k, v in meta.items() if v is not None},
    }


def error_response(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return {"error": err}
