"""
loaders/catalog.py — Indicator catalog (Konfig table) access.

The catalog decides what the sync pipeline processes (active entries, in
table order) and how the dashboard filters rows for display.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from statdash_shared.constants import CONFIG_COLUMNS
from statdash_shared.models import Indicator
from statdash_pipeline.loaders.store import HeaderMap, StoreRow, TabularStore

log = structlog.get_logger(__name__)


class IndicatorCatalog:
    """Reads and updates indicator entries in the config table."""

    def __init__(self, store: TabularStore, table: str = "Konfig") -> None:
        self._store = store
        self._table = table
        self._headers: HeaderMap | None = None

    async def header_map(self) -> HeaderMap:
        if self._headers is None:
            headers = await self._store.load_headers(self._table)
            self._headers = HeaderMap.resolve(self._table, headers, CONFIG_COLUMNS)
        return self._headers

    async def _rows(self) -> list[tuple[StoreRow, Indicator]]:
        hmap = await self.header_map()
        pairs: list[tuple[StoreRow, Indicator]] = []
        for row in await self._store.get_all_rows(self._table):
            indicator = Indicator.from_db_row(row.values, hmap.columns)
            if indicator.id:
                pairs.append((row, indicator))
        return pairs

    async def load(self) -> list[Indicator]:
        """Every catalog entry with a non-empty Id, in table order."""
        indicators = [ind for _, ind in await self._rows()]
        log.debug("catalog_loaded", table=self._table, count=len(indicators))
        return indicators

    async def active(self) -> list[Indicator]:
        return [ind for ind in await self.load() if ind.active]

    async def get(self, indicator_id: str) -> Indicator | None:
        for indicator in await self.load():
            if indicator.id == indicator_id:
                return indicator
        return None

    async def update(self, indicator_id: str, fields: Mapping[str, Any]) -> bool:
        """
        Update catalog columns (logical names, e.g. {"Status": "Aktif"}).

        Returns:
            False if no entry has that Id.
        """
        hmap = await self.header_map()
        for row, indicator in await self._rows():
            if indicator.id == indicator_id:
                await self._store.update_row(
                    row, {hmap.column(name): value for name, value in fields.items()}
                )
                log.info("catalog_updated", indicator_id=indicator_id, fields=list(fields))
                return True
        return False
