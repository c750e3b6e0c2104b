"""
time_utils.py — BPS period helpers.

BPS labels sub-periods (turtahun) with Indonesian month names, or "Tahun"
for a whole-year value. The dashboard stores each cell with a
"DD/MM/YYYY"-shaped string anchored to the first of the month; whole-year
values use month "00".

Usage:
    from statdash_shared.time_utils import period_code, period_date_string

    period_code("Januari")              # 1
    period_code("Tahun")                # 0
    period_code("Triwulan I")           # None
    period_date_string(3, "2023")       # "01/03/2023"
    parse_period_date("01/00/2023")     # (2023, 0)
"""

from __future__ import annotations

import re

from statdash_shared.constants import ANNUAL_PERIOD_CODE, PERIOD_CODES

_DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")


def period_code(label: str) -> int | None:
    """Map a turtahun label to its numeric code, or None if unrecognised."""
    if not isinstance(label, str):
        return None
    return PERIOD_CODES.get(label.lower())


def is_annual(code: int) -> bool:
    return code == ANNUAL_PERIOD_CODE


def period_date_string(code: int, year_label: str | int) -> str:
    """Build the "01/MM/YYYY" string stored in the Pilih Tahun column."""
    return f"01/{code:02d}/{year_label}"


def parse_period_date(raw: str) -> tuple[int, int] | None:
    """
    Parse a stored date string back into (year, sub_period_code).

    Returns None if the string is not in "DD/MM/YYYY" shape.
    """
    if not raw:
        return None
    m = _DATE_RE.fullmatch(raw.strip())
    if not m:
        return None
    return int(m.group(3)), int(m.group(2))
