"""
statdash_pipeline.sources — data source adapters.

  BPSSource — BPS WebAPI: paginated period discovery and chunked data fetch
"""

from statdash_pipeline.sources.bps import BPSSource, chunk_periods

__all__ = [
    "BPSSource",
    "chunk_periods",
]
