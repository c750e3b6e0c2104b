"""
loaders/store.py — The tabular store contract and header resolution.

Every backend (Google Sheets, Supabase) exposes the same narrow, async
row-level interface. Callers never assume exact header spelling: logical
column names are resolved against the store's real headers once per
session, case-insensitively and ignoring surrounding whitespace, and the
resulting HeaderMap is passed around as an immutable value.

Usage:
    headers = await store.load_headers("Data")
    hmap = HeaderMap.resolve("Data", headers, DATA_COLUMNS)
    hmap.column("id_variable")          # e.g. " ID_Variable " as stored
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoreRow:
    """
    One data row as read from a store.

    index is the 0-based position among data rows (header excluded) at
    read time; row_id is the backend primary key where one exists.
    """

    table: str
    index: int
    values: Mapping[str, Any] = field(default_factory=dict)
    row_id: Any = None

    def get(self, column: str, default: Any = None) -> Any:
        return self.values.get(column, default)


@runtime_checkable
class TabularStore(Protocol):
    """Row-level contract shared by all store backends."""

    async def load_headers(self, table: str) -> list[str]: ...

    async def get_all_rows(self, table: str) -> list[StoreRow]:
        """Return every data row. Must page internally until exhausted."""
        ...

    async def add_rows(
        self, table: str, rows: Sequence[Mapping[str, Any]], chunk_size: int
    ) -> int: ...

    async def delete_row(self, row: StoreRow) -> None: ...

    async def update_row(self, row: StoreRow, fields: Mapping[str, Any]) -> None: ...


# ---------------------------------------------------------------------------
# Header resolution
# ---------------------------------------------------------------------------

def normalize_header(name: str) -> str:
    return str(name).strip().lower()


def resolve_column(headers: Sequence[str], logical: str) -> str:
    """
    Return the store header matching *logical*, or *logical* itself.

    The fallback writes/reads a column named exactly like the logical
    field, which silently misses data if the store spells it differently.
    """
    target = normalize_header(logical)
    for header in headers:
        if normalize_header(header) == target:
            return header
    return logical


@dataclass(frozen=True)
class HeaderMap:
    """Immutable logical-name → store-header mapping for one table."""

    table: str
    columns: Mapping[str, str]
    unresolved: tuple[str, ...] = ()

    @classmethod
    def resolve(
        cls, table: str, headers: Sequence[str], logical_names: Sequence[str]
    ) -> "HeaderMap":
        columns: dict[str, str] = {}
        unresolved: list[str] = []
        for name in logical_names:
            resolved = resolve_column(headers, name)
            columns[name] = resolved
            if resolved not in headers:
                unresolved.append(name)
        if unresolved:
            log.warning(
                "headers_unresolved",
                table=table,
                columns=unresolved,
                store_headers=list(headers),
            )
        return cls(
            table=table,
            columns=MappingProxyType(columns),
            unresolved=tuple(unresolved),
        )

    def column(self, logical: str) -> str:
        return self.columns.get(logical, logical)


def iter_batches(rows: Sequence[Any], batch_size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most *batch_size* rows."""
    if batch_size < 1:
        raise ValueError(f"batch size must be >= 1, got {batch_size}")
    n_batches = math.ceil(len(rows) / batch_size)
    for batch_idx in range(n_batches):
        start = batch_idx * batch_size
        yield rows[start : start + batch_size]
