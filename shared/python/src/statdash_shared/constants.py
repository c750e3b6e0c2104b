"""
constants.py — shared constants used across the pipeline and API.

Table schemas (logical column names), catalog status values and the BPS
sub-period table are defined here so they stay in sync between packages.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Data table: one row per decoded cell
# ---------------------------------------------------------------------------
COL_DOMAIN: Final = "id_domain"
COL_CATEGORY: Final = "kategori"
COL_YEAR: Final = "Tahun"
COL_PERIOD: Final = "Periode"
COL_DATE: Final = "Pilih Tahun"
COL_INDICATOR_ID: Final = "id_variable"
COL_INDICATOR_LABEL: Final = "Nama Variabel"
COL_VALUE: Final = "Nilai"
COL_UNIT: Final = "Satuan"

DATA_COLUMNS: Final[tuple[str, ...]] = (
    COL_DOMAIN,
    COL_CATEGORY,
    COL_YEAR,
    COL_PERIOD,
    COL_DATE,
    COL_INDICATOR_ID,
    COL_INDICATOR_LABEL,
    COL_VALUE,
    COL_UNIT,
)

# ---------------------------------------------------------------------------
# Config (catalog) table: one row per indicator
# ---------------------------------------------------------------------------
CONFIG_COLUMNS: Final[tuple[str, ...]] = (
    "Id",
    "Label",
    "Kategori",
    "Status",
    "Deskripsi",
    "TipeGrafik",
    "Warna",
    "TrendLogic",
    "ShowOnHome",
    "TargetRPJMD",
    "DataFilter",
    "FilterTahun",
)

STATUS_ACTIVE: Final = "Aktif"
STATUS_INACTIVE: Final = "Non-Aktif"

DEFAULT_CHART_TYPE: Final = "line"
DEFAULT_COLOR: Final = "blue"
DEFAULT_TREND: Final = "UpIsGood"

# ---------------------------------------------------------------------------
# BPS sub-period labels (turtahun) → numeric code. 0 = whole year.
# ---------------------------------------------------------------------------
PERIOD_CODES: Final[dict[str, int]] = {
    "januari": 1,
    "februari": 2,
    "maret": 3,
    "april": 4,
    "mei": 5,
    "juni": 6,
    "juli": 7,
    "agustus": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "desember": 12,
    "tahun": 0,
}

ANNUAL_PERIOD_CODE: Final = 0

NO_DATA_MESSAGE: Final = "No data found from BPS API. Check Variable ID."
