"""
statdash_pipeline — indicator synchronization pipeline for the statdash
dashboard.

Architecture:
  sources/     — BPS WebAPI adapter: period discovery + chunked data fetch
  transforms/  — sparse matrix decoding, indicator row filters
  loaders/     — tabular store backends (Google Sheets, Supabase),
                 header resolution, catalog access, replace reconciler
  pipelines/   — the init / process-one / finish sync orchestrator
  utils/       — structlog configuration, retry decorator, checkpoints

Quick start:
    import asyncio
    from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

    sync = IndicatorSync.from_settings()
    report = asyncio.run(sync.run())

CLI:
    statdash sync
    statdash sync --only 43 --only 41
    statdash sync-one 43
    statdash periods 43
"""

__version__ = "0.1.0"
