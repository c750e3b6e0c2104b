"""
sources/base.py — Abstract base class for data source adapters.

Each concrete source must implement:
  extract()      — fetch raw provider payloads
  transform()    — decode raw payloads into DataPoint rows
  get_metadata() — return dict with source info for logging

The run() method orchestrates extract → transform and handles
timing/logging automatically.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

import structlog

from statdash_pipeline.transforms.matrix import DecodeResult

log = structlog.get_logger(__name__)


class BaseSource(ABC):
    """Abstract base for statdash data source adapters."""

    # Override in subclass — used for logging
    name: str = "unknown"

    def __init__(self) -> None:
        self._log = log.bind(source_name=self.name)

    # ------------------------------------------------------------------
    # Abstract interface — subclasses must implement all three
    # ------------------------------------------------------------------

    @abstractmethod
    async def extract(self, **kwargs: Any) -> list[dict[str, Any]]:
        """
        Fetch raw payloads from the external source.

        Implementations must degrade to an empty list instead of raising
        when the provider has nothing usable.
        """
        ...

    @abstractmethod
    def transform(self, raw: list[dict[str, Any]]) -> DecodeResult:
        """Decode raw payloads into DataPoint rows. Must be pure."""
        ...

    @abstractmethod
    async def get_metadata(self) -> dict[str, Any]:
        """Return source-level metadata for observability."""
        ...

    # ------------------------------------------------------------------
    # Orchestration — pipelines call this
    # ------------------------------------------------------------------

    async def run(self, **kwargs: Any) -> DecodeResult:
        """
        Extract + transform in sequence with timing and structured logging.

        Args:
            **kwargs: Forwarded to extract().

        Returns:
            DecodeResult with the decoded rows and the skipped-cell count.
        """
        run_log = self._log.bind(**{k: str(v) for k, v in kwargs.items()})
        run_log.info("source_run_start")

        t0 = time.monotonic()
        try:
            raw = await self.extract(**kwargs)
            run_log.info(
                "extract_complete",
                responses=len(raw),
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

            result = self.transform(raw)
            run_log.info(
                "source_run_complete",
                rows=len(result.rows),
                skipped=result.skipped,
                total_duration_ms=int((time.monotonic() - t0) * 1000),
            )
            return result

        except Exception as exc:
            run_log.error(
                "source_run_failed",
                error=str(exc),
                duration_ms=int((time.monotonic() - t0) * 1000),
                exc_info=True,
            )
            raise
