"""
models/data_points.py — One decoded cell of a BPS response, as stored in
the Data table.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from statdash_shared.constants import (
    COL_CATEGORY,
    COL_DATE,
    COL_DOMAIN,
    COL_INDICATOR_ID,
    COL_INDICATOR_LABEL,
    COL_PERIOD,
    COL_UNIT,
    COL_VALUE,
    COL_YEAR,
)


class DataPoint(BaseModel):
    """
    Matches one Data table row.

    `value` is carried exactly as the provider returned it; missing cells
    are never represented (no row is produced).
    """

    model_config = ConfigDict(frozen=True)

    domain_id: str
    kategori: str
    year: str
    sub_period_code: int
    date_string: str
    indicator_id: str
    indicator_label: str
    value: int | float | str
    unit: str = ""

    def to_insert_dict(
        self, columns: Mapping[str, str] | None = None
    ) -> dict[str, Any]:
        """
        Serialise to a store row.

        Args:
            columns: Logical column name → actual store header. Missing
                     entries fall back to the logical name.
        """
        cols = columns or {}
        logical = {
            COL_DOMAIN: self.domain_id,
            COL_CATEGORY: self.kategori,
            COL_YEAR: self.year,
            COL_PERIOD: self.sub_period_code,
            COL_DATE: self.date_string,
            COL_INDICATOR_ID: self.indicator_id,
            COL_INDICATOR_LABEL: self.indicator_label,
            COL_VALUE: self.value,
            COL_UNIT: self.unit,
        }
        return {cols.get(name, name): value for name, value in logical.items()}
