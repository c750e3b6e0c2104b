"""
exceptions.py — Error taxonomy for the indicator sync pipeline.

    SyncError (base)
    ├── ConfigurationMissing   — fatal to the whole run
    ├── DiscoveryUnavailable   — no periods for an indicator
    ├── ChunkFetchFailed       — one batch request failed (swallowed)
    └── ReconcileFailed        — store delete/insert failed for one indicator

Unknown sub-period labels are not an exception; the decoder counts them
(DecodeResult.skipped).
"""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base for all pipeline errors. Carries a structured context dict."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        super().__init__(message)
        if original_exception is not None:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        if self.original_exception is not None:
            return f"{self.message}: {self.original_exception}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "original_error": (
                str(self.original_exception) if self.original_exception else None
            ),
        }


class ConfigurationMissing(SyncError):
    """A required setting (store identifier, credentials) is absent."""


class DiscoveryUnavailable(SyncError):
    """The provider returned no periods for an indicator."""


class ChunkFetchFailed(SyncError):
    """A single period batch could not be fetched or parsed."""


class ReconcileFailed(SyncError):
    """The store rejected the delete or insert phase of a replace."""

    def __init__(
        self,
        message: str,
        *,
        phase: str,
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["phase"] = phase
        super().__init__(message, ctx, original_exception)
        self.phase = phase
