"""
db.py — Client factories for the tabular store backends.

Each call builds a fresh client from an explicit Settings object; callers
build one per process (CLI invocation, API app) and inject it.

Usage:
    from statdash_shared.config import settings
    from statdash_shared.db import build_sheets_service, build_supabase_client

    service = build_sheets_service(settings)     # Google Sheets v4 resource
    client = build_supabase_client(settings)     # supabase.Client
"""

from __future__ import annotations

from typing import Any

import structlog
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from supabase import Client, create_client

from statdash_shared.config import Settings
from statdash_shared.exceptions import ConfigurationMissing

logger = structlog.get_logger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def _sheets_credentials(cfg: Settings) -> Credentials:
    if cfg.google_service_account_email and cfg.google_private_key:
        info = {
            "type": "service_account",
            "client_email": cfg.google_service_account_email,
            "private_key": cfg.google_private_key_pem,
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        return Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    if cfg.google_service_account_file:
        return Credentials.from_service_account_file(
            cfg.google_service_account_file, scopes=SHEETS_SCOPES
        )
    raise ConfigurationMissing(
        "Google service account credentials are not set. Set "
        "GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY, or "
        "GOOGLE_SERVICE_ACCOUNT_FILE, in .env."
    )


def build_sheets_service(cfg: Settings) -> Any:
    """
    Return a Google Sheets v4 service resource.

    Raises:
        ConfigurationMissing: GOOGLE_SHEET_ID or credentials are absent.
    """
    if not cfg.google_sheet_id:
        raise ConfigurationMissing("GOOGLE_SHEET_ID is missing")
    creds = _sheets_credentials(cfg)
    service = build("sheets", "v4", credentials=creds, cache_discovery=False)
    logger.info("sheets_service_created", sheet_id=cfg.google_sheet_id)
    return service


def build_supabase_client(cfg: Settings) -> Client:
    """
    Return a service-role Supabase client.

    Raises:
        ConfigurationMissing: SUPABASE_SERVICE_KEY is absent.
    """
    if not cfg.supabase_service_key:
        raise ConfigurationMissing(
            "SUPABASE_SERVICE_KEY is not set. Set it in .env before using "
            "the supabase store backend."
        )
    client = create_client(cfg.supabase_url, cfg.supabase_service_key)
    logger.info("supabase_client_created", url=cfg.supabase_url)
    return client
