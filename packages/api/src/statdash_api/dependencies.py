"""Shared FastAPI dependencies.

One IndicatorSync per process: the store client and resolved header maps
are reused across requests. Tests replace get_sync via
app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache

from statdash_shared.config import settings
from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

from statdash_api.utils.cache import dashboard_cache


@lru_cache(maxsize=1)
def get_sync() -> IndicatorSync:
    return IndicatorSync.from_settings(settings, invalidators=[dashboard_cache.clear])


__all__ = ["get_sync"]
