"""
loaders/supabase_store.py — Supabase backend for the tabular store.

Each table is a Postgres table exposed through PostgREST with a surrogate
primary key column (default "id"). PostgREST caps every select at its
max-rows setting (1000 by default), so get_all_rows() pages with
.range() until a short page comes back.

Usage:
    from statdash_shared.db import build_supabase_client

    store = SupabaseStore(build_supabase_client(settings))
    rows = await store.get_all_rows("Data")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from statdash_pipeline.loaders.store import StoreRow, iter_batches

log = structlog.get_logger(__name__)


class SupabaseStore:
    """TabularStore backed by Supabase tables."""

    def __init__(
        self,
        client: Any,
        *,
        page_size: int = 1000,
        id_column: str = "id",
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._id_column = id_column

    async def load_headers(self, table: str) -> list[str]:
        result = self._client.table(table).select("*").limit(1).execute()
        if not result.data:
            return []
        return [k for k in result.data[0].keys() if k != self._id_column]

    async def get_all_rows(self, table: str) -> list[StoreRow]:
        rows: list[StoreRow] = []
        start = 0
        while True:
            result = (
                self._client.table(table)
                .select("*")
                .order(self._id_column)
                .range(start, start + self._page_size - 1)
                .execute()
            )
            page = result.data or []
            for offset, record in enumerate(page):
                rows.append(
                    StoreRow(
                        table=table,
                        index=start + offset,
                        values={k: v for k, v in record.items() if k != self._id_column},
                        row_id=record.get(self._id_column),
                    )
                )
            if len(page) < self._page_size:
                break
            start += self._page_size

        log.debug("supabase_rows_read", table=table, rows=len(rows))
        return rows

    async def add_rows(
        self, table: str, rows: Sequence[Mapping[str, Any]], chunk_size: int
    ) -> int:
        written = 0
        for batch in iter_batches(rows, chunk_size):
            self._client.table(table).insert([dict(r) for r in batch]).execute()
            written += len(batch)
            log.debug("supabase_rows_inserted", table=table, batch_size=len(batch))
        return written

    async def delete_row(self, row: StoreRow) -> None:
        if row.row_id is None:
            raise ValueError(f"Row {row.index} of '{row.table}' has no {self._id_column}")
        self._client.table(row.table).delete().eq(self._id_column, row.row_id).execute()

    async def update_row(self, row: StoreRow, fields: Mapping[str, Any]) -> None:
        if row.row_id is None:
            raise ValueError(f"Row {row.index} of '{row.table}' has no {self._id_column}")
        self._client.table(row.table).update(dict(fields)).eq(
            self._id_column, row.row_id
        ).execute()
