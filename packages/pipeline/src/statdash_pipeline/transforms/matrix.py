"""
transforms/matrix.py — Decode a BPS data response into flat DataPoint rows.

A BPS response describes a data cube by its dimension lists and a sparse
map of the cells that actually hold data:

    var        [{"val": 43, "label": "...", "unit": "%"}]     indicator
    vervar     [{"val": 1, "label": "Majene"}, ...]           categories
    turvar     [{"val": 0, "label": "Tidak ada"}]             sub-indicator (optional)
    tahun      [{"val": 121, "label": "2021"}, ...]           years
    turtahun   [{"val": 0, "label": "Tahun"}, ...]            sub-periods
    datacontent {"1430121" + "0": 5.34, ...}

The cell key is the plain string concatenation

    category.val + var.val + turvar.val + tahun.val + turtahun.val

with turvar.val defaulting to 0 when the response has no turvar list.
This layout is the provider's wire format and must match byte-for-byte.

Sub-period labels outside PERIOD_CODES (e.g. quarters) are skipped and
counted, not raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from statdash_shared.models import DataPoint
from statdash_shared.time_utils import period_code, period_date_string

log = structlog.get_logger(__name__)


@dataclass
class DecodeResult:
    """Rows decoded from one or more responses plus what was skipped."""

    rows: list[DataPoint] = field(default_factory=list)
    skipped: int = 0
    unknown_labels: list[str] = field(default_factory=list)
    duplicates: int = 0

    def extend(self, other: "DecodeResult") -> None:
        self.rows.extend(other.rows)
        self.skipped += other.skipped
        self.duplicates += other.duplicates
        for label in other.unknown_labels:
            if label not in self.unknown_labels:
                self.unknown_labels.append(label)


def cell_key(
    category_id: Any,
    indicator_id: Any,
    sub_indicator_id: Any,
    year_id: Any,
    period_id: Any,
) -> str:
    """Build the datacontent key for one cell."""
    return (
        f"{category_id}{indicator_id}{sub_indicator_id}{year_id}{period_id}"
    )


def decode_response(payload: Mapping[str, Any], *, domain_id: str) -> DecodeResult:
    """
    Decode one response into DataPoint rows.

    Iterates categories × years × sub-periods and emits one row per key
    present in datacontent. Pure: the payload is only read.

    Args:
        payload:   Parsed BPS data response.
        domain_id: BPS domain the request was made for (stored on each row).

    Returns:
        DecodeResult. len(rows) <= |vervar| * |tahun| * |turtahun|.
    """
    result = DecodeResult()

    var_list = payload.get("var") or []
    content = payload.get("datacontent") or {}
    if not var_list or not content:
        return result

    var_info = var_list[0]
    turvar = payload.get("turvar") or []
    sub_indicator_id = turvar[0]["val"] if turvar else 0

    categories = payload.get("vervar") or []
    years = payload.get("tahun") or []
    periods = payload.get("turtahun") or []

    indicator_id = str(var_info.get("val", ""))
    indicator_label = str(var_info.get("label", ""))
    unit = str(var_info.get("unit") or "")

    for category in categories:
        for year in years:
            year_label = str(year.get("label", ""))
            for period in periods:
                label = str(period.get("label", ""))
                code = period_code(label)
                if code is None:
                    result.skipped += 1
                    if label not in result.unknown_labels:
                        result.unknown_labels.append(label)
                    continue

                key = cell_key(
                    category.get("val"),
                    var_info.get("val"),
                    sub_indicator_id,
                    year.get("val"),
                    period.get("val"),
                )
                value = content.get(key)
                # a null cell counts as absent: no row, not a row with an empty value
                if value is None:
                    continue

                result.rows.append(
                    DataPoint(
                        domain_id=str(domain_id),
                        kategori=str(category.get("label", "")),
                        year=year_label,
                        sub_period_code=code,
                        date_string=period_date_string(code, year_label),
                        indicator_id=indicator_id,
                        indicator_label=indicator_label,
                        value=value,
                        unit=unit,
                    )
                )

    if result.skipped:
        log.warning(
            "unknown_period_labels",
            indicator_id=indicator_id,
            labels=result.unknown_labels,
            skipped_cells=result.skipped,
        )
    return result


def decode_responses(
    payloads: Iterable[Mapping[str, Any]], *, domain_id: str
) -> DecodeResult:
    """
    Decode several responses (one per fetched chunk) into one result.

    Discovery pages may overlap, so the same period can be fetched in two
    chunks. Only the first row per (indicator, kategori, year, sub-period)
    is kept; later ones are counted in DecodeResult.duplicates.
    """
    combined = DecodeResult()
    seen: set[tuple[str, str, str, int]] = set()
    for payload in payloads:
        decoded = decode_response(payload, domain_id=domain_id)
        unique: list[DataPoint] = []
        for point in decoded.rows:
            key = (point.indicator_id, point.kategori, point.year, point.sub_period_code)
            if key in seen:
                decoded.duplicates += 1
                continue
            seen.add(key)
            unique.append(point)
        decoded.rows = unique
        combined.extend(decoded)

    if combined.duplicates:
        log.info("duplicate_cells_dropped", count=combined.duplicates)
    return combined
