"""Dashboard read endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from statdash_shared.exceptions import ConfigurationMissing
from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

from statdash_api.dependencies import get_sync
from statdash_api.responses import error_response, wrap_response
from statdash_api.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _store_unavailable(exc: ConfigurationMissing) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content=error_response("STORE_NOT_CONFIGURED", exc.message, details=exc.context),
    )


@router.get("/nav")
async def get_nav(sync: IndicatorSync = Depends(get_sync)):
    """Categories with at least one active indicator, for the navbar."""
    try:
        nav = await dashboard_service.get_nav(sync)
    except ConfigurationMissing as exc:
        return _store_unavailable(exc)
    return wrap_response(nav, total_count=len(nav))


@router.get("/{slug}")
async def get_dashboard(slug: str, sync: IndicatorSync = Depends(get_sync)):
    """Indicator metadata and filtered Data rows for one category."""
    try:
        return await dashboard_service.get_dashboard(sync, slug)
    except ConfigurationMissing as exc:
        return _store_unavailable(exc)
