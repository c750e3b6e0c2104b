"""
tests/conftest.py — Shared pytest fixtures for the pipeline test suite.

Provides:
  fixture_path        — resolves paths to tests/fixtures/
  load_fixture        — parsed JSON fixture by file name
  provider_config     — ProviderConfig pointing at a fake BPS host
  mock_supabase_client — MagicMock of the supabase.Client interface
  memory_store        — factory for an in-memory TabularStore
  make_konfig_row     — catalog row builder (all CONFIG_COLUMNS present)
  make_data_row       — Data row builder
  mock_http           — configured respx router for faking HTTP responses
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import respx

from statdash_shared.config import ProviderConfig
from statdash_shared.constants import CONFIG_COLUMNS, DATA_COLUMNS
from statdash_pipeline.loaders.store import StoreRow, iter_batches

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BPS_BASE = "https://bps.test/v1/api"
BPS_KEY = "test-key"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_fixture() -> Callable[[str], dict]:
    def _load(name: str) -> dict:
        return json.loads((FIXTURES_DIR / name).read_text())

    return _load


# ---------------------------------------------------------------------------
# Provider config
# ---------------------------------------------------------------------------

@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        base_url=BPS_BASE,
        api_key=BPS_KEY,
        domain_id="7601",
        headers=(
            ("User-Agent", "statdash-tests"),
            ("Referer", "https://webapi.bps.go.id/developer/"),
            ("Origin", "https://webapi.bps.go.id"),
        ),
        timeout=5.0,
        period_chunk_size=2,
        max_discovery_pages=20,
    )


@pytest.fixture
def bps_urls() -> dict[str, Callable[..., str]]:
    """URL builders matching BPSSource for the fake host."""
    return {
        "periods": lambda var, page: (
            f"{BPS_BASE}/list/model/th/domain/7601/var/{var}/page/{page}/key/{BPS_KEY}/"
        ),
        "data": lambda var, ids: (
            f"{BPS_BASE}/list/model/data/domain/7601/var/{var}/th/{':'.join(ids)}/key/{BPS_KEY}/"
        ),
    }


# ---------------------------------------------------------------------------
# Supabase client mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """
    A MagicMock that simulates the supabase.Client interface.

    Write chains (.insert/.update/.delete) return empty data by default.
    Override in individual tests: mock_supabase_client.table.return_value...
    """
    client = MagicMock()

    default_result = MagicMock()
    default_result.data = []
    default_result.count = 0

    table = client.table.return_value
    table.select.return_value.limit.return_value.execute.return_value = default_result
    table.insert.return_value.execute.return_value = default_result
    table.update.return_value.eq.return_value.execute.return_value = default_result
    table.delete.return_value.eq.return_value.execute.return_value = default_result

    return client


# ---------------------------------------------------------------------------
# In-memory tabular store
# ---------------------------------------------------------------------------

class MemoryStore:
    """
    TabularStore over plain lists, with call recording and fault injection.

    tables: table name → (headers, list of row dicts keyed by header).
    fail:   method name → exception raised on every call to that method.
    """

    def __init__(
        self,
        tables: Mapping[str, tuple[Sequence[str], Sequence[Mapping[str, Any]]]] | None = None,
    ) -> None:
        self.headers: dict[str, list[str]] = {}
        self.rows: dict[str, list[dict[str, Any]]] = {}
        for name, (headers, rows) in (tables or {}).items():
            self.headers[name] = list(headers)
            self.rows[name] = [dict(r) for r in rows]
        self.fail: dict[str, Exception] = {}
        self.calls: list[tuple[str, Any]] = []

    def _check(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    async def load_headers(self, table: str) -> list[str]:
        self._check("load_headers")
        self.calls.append(("load_headers", table))
        return list(self.headers.get(table, []))

    async def get_all_rows(self, table: str) -> list[StoreRow]:
        self._check("get_all_rows")
        self.calls.append(("get_all_rows", table))
        return [
            StoreRow(table=table, index=i, values=dict(r))
            for i, r in enumerate(self.rows.get(table, []))
        ]

    async def add_rows(
        self, table: str, rows: Sequence[Mapping[str, Any]], chunk_size: int
    ) -> int:
        self._check("add_rows")
        headers = self.headers.setdefault(table, list(rows[0].keys()) if rows else [])
        written = 0
        for batch in iter_batches(rows, chunk_size):
            self.calls.append(("add_rows", len(batch)))
            for row in batch:
                self.rows.setdefault(table, []).append({h: row.get(h, "") for h in headers})
            written += len(batch)
        return written

    async def delete_row(self, row: StoreRow) -> None:
        self._check("delete_row")
        self.calls.append(("delete_row", row.index))
        del self.rows[row.table][row.index]

    async def update_row(self, row: StoreRow, fields: Mapping[str, Any]) -> None:
        self._check("update_row")
        self.calls.append(("update_row", row.index))
        self.rows[row.table][row.index].update(
            {k: v for k, v in fields.items() if k in self.headers[row.table]}
        )

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


def konfig_row(
    id: str,
    label: str = "",
    category: str = "Kemiskinan",
    status: str = "Aktif",
    **extra: str,
) -> dict[str, str]:
    row = {name: "" for name in CONFIG_COLUMNS}
    row.update({"Id": id, "Label": label or f"Indikator {id}", "Kategori": category, "Status": status})
    row.update(extra)
    return row


def data_row(indicator_id: str, year: str, value: Any, kategori: str = "Majene") -> dict[str, Any]:
    return {
        "id_domain": "7601",
        "kategori": kategori,
        "Tahun": year,
        "Periode": 0,
        "Pilih Tahun": f"01/00/{year}",
        "id_variable": indicator_id,
        "Nama Variabel": f"Indikator {indicator_id}",
        "Nilai": value,
        "Satuan": "Persen",
    }


@pytest.fixture
def memory_store() -> Callable[..., MemoryStore]:
    """
    Build a MemoryStore with Konfig and Data tables.

        store = memory_store(konfig=[konfig_row("43")], data=[...])
    """

    def _make(
        konfig: Sequence[Mapping[str, Any]] = (),
        data: Sequence[Mapping[str, Any]] = (),
        konfig_headers: Sequence[str] = CONFIG_COLUMNS,
        data_headers: Sequence[str] = DATA_COLUMNS,
    ) -> MemoryStore:
        return MemoryStore(
            {"Konfig": (konfig_headers, konfig), "Data": (data_headers, data)}
        )

    return _make


@pytest.fixture
def make_konfig_row() -> Callable[..., dict[str, str]]:
    return konfig_row


@pytest.fixture
def make_data_row() -> Callable[..., dict[str, Any]]:
    return data_row


# ---------------------------------------------------------------------------
# respx HTTP mock router
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """
    Activate the respx mock router for all httpx requests.

    Usage in tests:
        def test_something(mock_http):
            mock_http.get("https://...").mock(return_value=httpx.Response(200, json={...}))
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
