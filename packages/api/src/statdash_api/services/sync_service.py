"""Sync workflow service.

Maps IndicatorSync's three-phase surface and whole-run task onto the
plain {success, ...} payloads the admin panel consumes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

log = structlog.get_logger(__name__)


async def init_sync(sync: IndicatorSync) -> dict[str, Any]:
    try:
        queue = await sync.init()
    except Exception as exc:
        return {"success": False, "error": str(exc) or type(exc).__name__}
    return {"success": True, "queue": [item.to_dict() for item in queue]}


async def process_item(sync: IndicatorSync, indicator_id: str) -> dict[str, Any]:
    result = await sync.process_one(indicator_id)
    return result.to_dict()


async def finish_sync(sync: IndicatorSync) -> dict[str, Any]:
    await sync.finish()
    return {"success": True}


async def run_sync(
    sync: IndicatorSync,
    *,
    only: Sequence[str] | None = None,
    resume: bool = False,
) -> dict[str, Any]:
    report = await sync.run(only=only, resume=resume)
    log.info("api_sync_run", state=report.state.value, total=report.total)
    return report.to_dict()
