"""
statdash_shared.models — Pydantic models for the store tables.

These models are used by:
- packages/pipeline: build rows before writing to the store
- packages/api: serialize catalog and data rows into API responses
"""

from statdash_shared.models.data_points import DataPoint
from statdash_shared.models.indicators import Indicator

__all__ = [
    "DataPoint",
    "Indicator",
]
