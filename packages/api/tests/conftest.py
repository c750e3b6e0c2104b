"""Shared test fixtures for statdash-api."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from statdash_shared.config import ProviderConfig
from statdash_shared.constants import CONFIG_COLUMNS, DATA_COLUMNS
from statdash_pipeline.loaders.store import StoreRow
from statdash_pipeline.pipelines.indicator_sync import IndicatorSync
from statdash_pipeline.sources.bps import BPSSource

PROVIDER = ProviderConfig(
    base_url="https://bps.test/v1/api",
    api_key="k",
    domain_id="7601",
    headers=(("User-Agent", "tests"),),
)


class InMemoryStore:
    """Minimal TabularStore: table → header list + row dicts."""

    def __init__(self, konfig: list[dict], data: list[dict]) -> None:
        self.headers = {"Konfig": list(CONFIG_COLUMNS), "Data": list(DATA_COLUMNS)}
        self.tables = {"Konfig": konfig, "Data": data}
        self.reads = 0

    async def load_headers(self, table: str) -> list[str]:
        return list(self.headers[table])

    async def get_all_rows(self, table: str) -> list[StoreRow]:
        self.reads += 1
        return [StoreRow(table=table, index=i, values=r) for i, r in enumerate(self.tables[table])]

    async def add_rows(self, table: str, rows, chunk_size: int) -> int:
        self.tables[table].extend(dict(r) for r in rows)
        return len(rows)

    async def delete_row(self, row: StoreRow) -> None:
        del self.tables[row.table][row.index]

    async def update_row(self, row: StoreRow, fields) -> None:
        self.tables[row.table][row.index].update(fields)


class CannedSource(BPSSource):
    """BPSSource serving prepared payloads instead of calling BPS."""

    def __init__(self, payloads: dict[str, list[dict]]) -> None:
        super().__init__(PROVIDER)
        self.payloads = payloads

    async def discover_periods(self, indicator_id: str) -> list[str]:
        return ["121"] if self.payloads.get(indicator_id) else []

    async def fetch_chunks(self, indicator_id: str, period_ids: list[str]) -> list[dict[str, Any]]:
        return self.payloads.get(indicator_id, [])


def konfig(id: str, label: str, category: str, status: str = "Aktif", **extra: str) -> dict:
    row = {name: "" for name in CONFIG_COLUMNS}
    row.update({"Id": id, "Label": label, "Kategori": category, "Status": status, **extra})
    return row


def data(indicator_id: str, kategori: str, year: str, value: str) -> dict:
    return {
        "id_domain": "7601",
        "kategori": kategori,
        "Tahun": year,
        "Periode": "0",
        "Pilih Tahun": f"01/00/{year}",
        "id_variable": indicator_id,
        "Nama Variabel": "",
        "Nilai": value,
        "Satuan": "Persen",
    }


def bps_payload(var: str) -> dict:
    return {
        "status": "OK",
        "var": [{"val": int(var), "label": f"Indikator {var}", "unit": "Persen"}],
        "vervar": [{"val": 7601, "label": "Majene"}],
        "tahun": [{"val": 121, "label": "2021"}],
        "turtahun": [{"val": 0, "label": "Tahun"}],
        "datacontent": {f"7601{var}01210": 9.5},
    }


@pytest.fixture(autouse=True)
def _clear_caches():
    """Clear the dashboard cache between tests."""
    from statdash_api.utils.cache import dashboard_cache

    yield
    dashboard_cache.clear()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore(
        konfig=[
            konfig("43", "Penduduk Miskin", "kemiskinan", Deskripsi="Persen penduduk miskin"),
            konfig("44", "Garis Kemiskinan", "Kemiskinan ", FilterTahun="2023"),
            konfig("88", "Inflasi", "ekonomi", DataFilter="!Total"),
            konfig("12", "IPM", "Sosial", status="Non-Aktif"),
        ],
        data=[
            data("43", "Majene", "2022", "15.1"),
            data("43", "Majene", "2023", "14.9"),
            data("44", "Majene", "2022", "401000"),
            data("44", "Majene", "2023", "415000"),
            data("88", "Total", "2023", "2.1"),
            data("88", "Makanan", "2023", "3.4"),
            data("12", "Majene", "2023", "66.2"),
        ],
    )


@pytest.fixture()
def sync(store) -> IndicatorSync:
    from statdash_api.utils.cache import dashboard_cache

    source = CannedSource({"43": [bps_payload("43")], "88": [bps_payload("88")]})
    return IndicatorSync(store, source=source, invalidators=[dashboard_cache.clear])


@pytest.fixture()
def app(sync):
    """Create test FastAPI app with the sync dependency overridden."""
    from statdash_api.app import create_app
    from statdash_api.dependencies import get_sync

    app = create_app()
    app.dependency_overrides[get_sync] = lambda: sync
    return app


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)
