"""Dashboard read service.

Joins the catalog's active indicators for one category with their Data
rows, applying each indicator's DataFilter/FilterTahun. Results are cached
until the next sync finishes.
"""

from __future__ import annotations

from typing import Any

import polars as pl
import structlog

from statdash_shared.constants import COL_INDICATOR_ID, DATA_COLUMNS
from statdash_shared.models import Indicator
from statdash_pipeline.loaders.store import HeaderMap, StoreRow
from statdash_pipeline.pipelines.indicator_sync import IndicatorSync
from statdash_pipeline.transforms.filters import apply_indicator_filters

from statdash_api.utils.cache import dashboard_cache

log = structlog.get_logger(__name__)

VARIABLE_NAME = "variable_name"


def category_slug(category: str) -> str:
    return category.strip().lower()


def nav_label(category: str) -> str:
    """Display form of a category: 'eKONOMI ' → 'Ekonomi'."""
    category = category.strip()
    return category[:1].upper() + category[1:].lower()


async def get_nav(sync: IndicatorSync) -> list[str]:
    """Sorted, capitalised categories that have at least one active indicator."""
    cached = dashboard_cache.get("nav")
    if cached is not None:
        return cached

    indicators = await sync.catalog().active()
    nav = sorted({nav_label(ind.category) for ind in indicators if ind.category.strip()})
    dashboard_cache.set("nav", nav)
    return nav


def rows_to_frame(rows: list[StoreRow], hmap: HeaderMap) -> pl.DataFrame:
    """Data rows keyed by logical column names, every value as text."""
    records = [
        {
            name: None if row.get(hmap.column(name)) is None else str(row.get(hmap.column(name)))
            for name in DATA_COLUMNS
        }
        for row in rows
    ]
    return pl.DataFrame(records, schema={name: pl.String for name in DATA_COLUMNS})


def _indicator_rows(df: pl.DataFrame, indicator: Indicator) -> pl.DataFrame:
    subset = df.filter(pl.col(COL_INDICATOR_ID).str.strip_chars() == indicator.id)
    subset = apply_indicator_filters(subset, indicator)
    return subset.with_columns(pl.lit(indicator.label).alias(VARIABLE_NAME))


async def get_dashboard(sync: IndicatorSync, slug: str) -> dict[str, Any]:
    """
    {meta: [indicator metadata], data: [rows + variable_name]} for a category.

    An unknown category yields empty lists.
    """
    cache_key = f"dashboard:{category_slug(slug)}"
    cached = dashboard_cache.get(cache_key)
    if cached is not None:
        return cached

    indicators = [
        ind
        for ind in await sync.catalog().active()
        if category_slug(ind.category) == category_slug(slug)
    ]

    data: list[dict[str, Any]] = []
    if indicators:
        store = sync.store()
        table = sync.data_table
        hmap = HeaderMap.resolve(table, await store.load_headers(table), DATA_COLUMNS)
        df = rows_to_frame(await store.get_all_rows(table), hmap)
        frames = [_indicator_rows(df, ind) for ind in indicators]
        data = pl.concat(frames).to_dicts() if frames else []

    result = {"meta": [ind.to_meta_dict() for ind in indicators], "data": data}
    dashboard_cache.set(cache_key, result)
    log.debug("dashboard_loaded", slug=slug, indicators=len(indicators), rows=len(data))
    return result
