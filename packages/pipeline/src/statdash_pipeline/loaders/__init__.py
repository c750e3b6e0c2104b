"""
statdash_pipeline.loaders — tabular store backends and the writers on top.

  create_store()     — build the configured backend from Settings
  IndicatorCatalog   — reads/updates the Konfig table
  StoreReconciler    — replace-all-rows-for-indicator writes to the Data table
"""

from __future__ import annotations

from statdash_shared.config import Settings
from statdash_shared.db import build_sheets_service, build_supabase_client
from statdash_pipeline.loaders.store import TabularStore


def create_store(cfg: Settings) -> TabularStore:
    """
    Build the store backend selected by cfg.store_backend.

    Raises:
        ConfigurationMissing: the backend's identifier or credentials are absent.
    """
    if cfg.store_backend == "supabase":
        from statdash_pipeline.loaders.supabase_store import SupabaseStore

        return SupabaseStore(
            build_supabase_client(cfg), page_size=cfg.store_read_page_size
        )

    from statdash_pipeline.loaders.sheets_store import GoogleSheetsStore

    return GoogleSheetsStore(
        build_sheets_service(cfg),
        cfg.google_sheet_id,
        page_size=cfg.store_read_page_size,
    )
