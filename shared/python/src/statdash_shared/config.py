"""
config.py — pydantic-settings Settings class.

All environment variables for statdash are declared here. Both the
pipeline and the API import `settings` from this module; components that
talk to the outside world receive explicit config/client objects built
from it (see provider_config() and statdash_shared.db).

Usage:
    from statdash_shared.config import settings
    print(settings.bps_domain_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class ProviderConfig:
    """Everything BPSSource needs to build and authenticate a request."""

    base_url: str
    api_key: str
    domain_id: str
    headers: tuple[tuple[str, str], ...]
    timeout: float = 30.0
    period_chunk_size: int = 2
    max_discovery_pages: int = 20


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # BPS WebAPI
    # -------------------------------------------------------------------------
    bps_base_url: str = Field(default="https://webapi.bps.go.id/v1/api")
    bps_api_key: str = Field(default="")
    bps_domain_id: str = Field(default="7601")
    bps_referer: str = Field(default="https://webapi.bps.go.id/developer/")
    bps_origin: str = Field(default="https://webapi.bps.go.id")
    bps_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        )
    )
    bps_timeout: float = Field(default=30.0)
    bps_period_chunk_size: int = Field(default=2, ge=1)
    bps_max_discovery_pages: int = Field(default=20, ge=1)

    # -------------------------------------------------------------------------
    # Tabular store
    # -------------------------------------------------------------------------
    store_backend: Literal["sheets", "supabase"] = Field(default="sheets")
    config_table: str = Field(default="Konfig")
    data_table: str = Field(default="Data")
    store_insert_chunk_size: int = Field(default=200, ge=1)
    store_read_page_size: int = Field(default=1000, ge=1)

    # Google Sheets
    google_sheet_id: str = Field(default="")
    google_service_account_email: str = Field(default="")
    google_private_key: str = Field(default="")
    google_service_account_file: str = Field(default="")

    # Supabase
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_service_key: str = Field(default="")

    # -------------------------------------------------------------------------
    # Sync workflow
    # -------------------------------------------------------------------------
    checkpoint_dir: str = Field(default="./data/cache")

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:3000")
    dashboard_cache_ttl: float = Field(default=300.0)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def google_private_key_pem(self) -> str:
        """Private key with literal '\\n' sequences turned into newlines."""
        return self.google_private_key.replace("\\n", "\n")

    @field_validator("bps_base_url", "supabase_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            base_url=self.bps_base_url,
            api_key=self.bps_api_key,
            domain_id=self.bps_domain_id,
            headers=(
                ("User-Agent", self.bps_user_agent),
                ("Referer", self.bps_referer),
                ("Origin", self.bps_origin),
            ),
            timeout=self.bps_timeout,
            period_chunk_size=self.bps_period_chunk_size,
            max_discovery_pages=self.bps_max_discovery_pages,
        )


# ---------------------------------------------------------------------------
# Module-level singleton — import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
