"""
transforms/filters.py — Per-indicator row filters for the dashboard read side.

Catalog entries can narrow what a chart shows:

  DataFilter  (category_filter) — comma-separated category labels.
      "Total"                keep only rows whose kategori is "Total"
      "!Total"               drop rows whose kategori is "Total"
      "Laki-laki,Perempuan"  keep either
  FilterTahun (year_filter) — comma-separated years, e.g. "2023" or "2022,2023".

Matching is case-insensitive and whitespace-trimmed. Filters never touch
the stored rows; they are applied when rows are read for display.
"""

from __future__ import annotations

import polars as pl

from statdash_shared.constants import COL_CATEGORY, COL_YEAR
from statdash_shared.models import Indicator


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def category_filter_expr(raw: str | None, column: str = COL_CATEGORY) -> pl.Expr | None:
    """Build a polars predicate from a DataFilter string, or None for no-op."""
    terms = _split(raw)
    if not terms:
        return None

    include = [t.lower() for t in terms if not t.startswith("!")]
    exclude = [t[1:].strip().lower() for t in terms if t.startswith("!")]
    normalized = pl.col(column).cast(pl.String).str.strip_chars().str.to_lowercase()

    expr: pl.Expr | None = None
    if include:
        expr = normalized.is_in(include)
    if exclude:
        excl = ~normalized.is_in(exclude)
        expr = excl if expr is None else expr & excl
    return expr


def year_filter_expr(raw: str | None, column: str = COL_YEAR) -> pl.Expr | None:
    """Build a polars predicate from a FilterTahun string, or None for no-op."""
    years = _split(raw)
    if not years:
        return None
    return pl.col(column).cast(pl.String).str.strip_chars().is_in(years)


def apply_indicator_filters(df: pl.DataFrame, indicator: Indicator) -> pl.DataFrame:
    """Apply an indicator's category and year filters to its Data rows."""
    for expr in (
        category_filter_expr(indicator.category_filter),
        year_filter_expr(indicator.year_filter),
    ):
        if expr is not None and not df.is_empty():
            df = df.filter(expr)
    return df
