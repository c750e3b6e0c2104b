"""Sync workflow endpoints, driven by the admin panel."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

from statdash_api.dependencies import get_sync
from statdash_api.services import sync_service

router = APIRouter(prefix="/sync", tags=["sync"])


class RunRequest(BaseModel):
    only: list[str] | None = None
    resume: bool = False


@router.post("/init")
async def init_sync(sync: IndicatorSync = Depends(get_sync)):
    """Read the catalog and return the queue of active indicators."""
    return await sync_service.init_sync(sync)


@router.post("/items/{indicator_id}")
async def process_item(indicator_id: str, sync: IndicatorSync = Depends(get_sync)):
    """Sync one indicator. Failures are reported in the body, not the status code."""
    return await sync_service.process_item(sync, indicator_id)


@router.post("/finish")
async def finish_sync(sync: IndicatorSync = Depends(get_sync)):
    return await sync_service.finish_sync(sync)


@router.post("/run")
async def run_sync(
    body: RunRequest | None = None,
    sync: IndicatorSync = Depends(get_sync),
):
    """Run the whole sync in one request and return the report."""
    body = body or RunRequest()
    return await sync_service.run_sync(sync, only=body.only, resume=body.resume)
