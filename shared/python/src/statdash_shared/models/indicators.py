"""
models/indicators.py — Pydantic model for the indicator catalog (Konfig) rows.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from statdash_shared.constants import (
    DEFAULT_CHART_TYPE,
    DEFAULT_COLOR,
    DEFAULT_TREND,
    STATUS_ACTIVE,
)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class Indicator(BaseModel):
    """One catalog entry. Consumed read-only by the sync pipeline."""

    id: str
    label: str
    category: str = ""
    status: str = ""
    description: str = ""
    chart_type: str = DEFAULT_CHART_TYPE
    color_theme: str = DEFAULT_COLOR
    trend_polarity: str = DEFAULT_TREND
    show_on_home: bool = False
    target: str | None = None
    category_filter: str | None = None
    year_filter: str | None = None

    @property
    def active(self) -> bool:
        return self.status.strip().lower() == STATUS_ACTIVE.lower()

    @classmethod
    def from_db_row(
        cls,
        row: Mapping[str, Any],
        columns: Mapping[str, str] | None = None,
    ) -> "Indicator":
        """
        Build an Indicator from a catalog row.

        Args:
            row:     Raw row values keyed by the store's actual headers.
            columns: Logical column name → actual header. Missing entries
                     fall back to the logical name.
        """
        cols = columns or {}

        def get(name: str) -> str:
            return _text(row.get(cols.get(name, name)))

        return cls(
            id=get("Id"),
            label=get("Label") or get("Id"),
            category=get("Kategori"),
            status=get("Status"),
            description=get("Deskripsi"),
            chart_type=get("TipeGrafik") or DEFAULT_CHART_TYPE,
            color_theme=get("Warna") or DEFAULT_COLOR,
            trend_polarity=get("TrendLogic") or DEFAULT_TREND,
            show_on_home=get("ShowOnHome").upper() == "TRUE",
            target=get("TargetRPJMD") or None,
            category_filter=get("DataFilter") or None,
            year_filter=get("FilterTahun") or None,
        )

    def to_meta_dict(self) -> dict[str, Any]:
        """Shape used by the dashboard read API."""
        return {
            "Id": self.id,
            "Label": self.label,
            "Kategori": self.category,
            "Status": self.status,
            "Deskripsi": self.description,
            "TipeGrafik": self.chart_type,
            "Warna": self.color_theme,
            "TrendLogic": self.trend_polarity,
            "ShowOnHome": self.show_on_home,
            "TargetRPJMD": self.target or "",
        }
