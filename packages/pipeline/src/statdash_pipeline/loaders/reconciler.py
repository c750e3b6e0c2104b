"""
loaders/reconciler.py — Replace-semantics writes of DataPoints.

replace(indicator_id, rows) deletes every Data row tagged with the
indicator, then inserts the fresh set:

  1. Read the whole table (backends page internally; a partial scan would
     leave stale rows behind).
  2. Delete matching rows one at a time from the highest index to the
     lowest, so earlier indices stay valid while rows shift up.
  3. Insert the new rows in chunks of `chunk_size`.

The two phases are not wrapped in a transaction. If the insert phase
fails, the indicator has zero rows until the next successful sync.

Usage:
    reconciler = StoreReconciler(store, table="Data")
    result = await reconciler.replace("43", decoded.rows)
    print(result.deleted, result.inserted)
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from statdash_shared.constants import COL_INDICATOR_ID, DATA_COLUMNS
from statdash_shared.exceptions import ReconcileFailed
from statdash_shared.models import DataPoint
from statdash_pipeline.loaders.store import HeaderMap, TabularStore

log = structlog.get_logger(__name__)

INSERT_CHUNK_SIZE = 200


@dataclass
class ReplaceResult:
    """Summary of one replace() call."""

    indicator_id: str
    deleted: int = 0
    inserted: int = 0
    duration_ms: int = 0


class StoreReconciler:
    """Deletes-then-reinserts the full row set of one indicator."""

    def __init__(
        self,
        store: TabularStore,
        *,
        table: str = "Data",
        chunk_size: int = INSERT_CHUNK_SIZE,
        header_map: HeaderMap | None = None,
    ) -> None:
        self._store = store
        self._table = table
        self._chunk_size = chunk_size
        self._headers = header_map

    async def header_map(self) -> HeaderMap:
        """Resolve Data table headers once per reconciler and reuse them."""
        if self._headers is None:
            headers = await self._store.load_headers(self._table)
            self._headers = HeaderMap.resolve(self._table, headers, DATA_COLUMNS)
        return self._headers

    async def replace(self, indicator_id: str, rows: Sequence[DataPoint]) -> ReplaceResult:
        """
        Make the store hold exactly *rows* for *indicator_id*.

        Raises:
            ReconcileFailed: reading, deleting or inserting failed. The
                `phase` attribute says which.
        """
        result = ReplaceResult(indicator_id=str(indicator_id))
        rec_log = log.bind(table=self._table, indicator_id=result.indicator_id)
        t0 = time.monotonic()

        try:
            hmap = await self.header_map()
            existing = await self._store.get_all_rows(self._table)
        except Exception as exc:
            rec_log.error("reconcile_read_failed", error=str(exc), exc_info=True)
            raise ReconcileFailed(
                "Could not read existing rows",
                phase="read",
                context={"indicator_id": result.indicator_id, "table": self._table},
                original_exception=exc,
            ) from exc

        id_col = hmap.column(COL_INDICATOR_ID)
        stale = [
            row
            for row in existing
            if str(row.get(id_col, "")).strip() == result.indicator_id
        ]
        rec_log.info("reconcile_start", existing=len(existing), stale=len(stale), fresh=len(rows))

        try:
            for row in sorted(stale, key=lambda r: r.index, reverse=True):
                await self._store.delete_row(row)
                result.deleted += 1
        except Exception as exc:
            rec_log.error(
                "reconcile_delete_failed",
                deleted=result.deleted,
                remaining=len(stale) - result.deleted,
                error=str(exc),
                exc_info=True,
            )
            raise ReconcileFailed(
                "Deleting stale rows failed",
                phase="delete",
                context={"indicator_id": result.indicator_id, "deleted": result.deleted},
                original_exception=exc,
            ) from exc

        payload = [point.to_insert_dict(hmap.columns) for point in rows]
        try:
            if payload:
                result.inserted = await self._store.add_rows(
                    self._table, payload, self._chunk_size
                )
        except Exception as exc:
            rec_log.error(
                "reconcile_insert_failed",
                deleted=result.deleted,
                error=str(exc),
                exc_info=True,
            )
            raise ReconcileFailed(
                "Inserting fresh rows failed",
                phase="insert",
                context={"indicator_id": result.indicator_id, "deleted": result.deleted},
                original_exception=exc,
            ) from exc

        result.duration_ms = int((time.monotonic() - t0) * 1000)
        rec_log.info(
            "reconcile_complete",
            deleted=result.deleted,
            inserted=result.inserted,
            duration_ms=result.duration_ms,
        )
        return result
