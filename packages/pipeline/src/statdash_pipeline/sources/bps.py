"""
sources/bps.py — BPS WebAPI source adapter.

Two endpoints are used, both authenticated by an API key in the path and
a fixed set of browser-like headers:

  Period list (paginated):
    GET {base}/list/model/th/domain/{domain}/var/{var}/page/{page}/key/{key}/
    → {"status": "OK", "data-availability": "available",
       "data": [{"page": 1, "pages": 2, ...}, [{"th_id": 121, "th": "2021"}, ...]]}

  Data (one or more period ids, colon-joined):
    GET {base}/list/model/data/domain/{domain}/var/{var}/th/{a:b}/key/{key}/
    → {"status": "OK", "var": [...], "vervar": [...], "turvar": [...],
       "tahun": [...], "turtahun": [...], "datacontent": {key: value}}

Every failure at this boundary (non-2xx, empty body, invalid JSON,
transport errors after retries) degrades to "no data"; nothing raises
past discover_periods() or fetch_chunks().

Usage:
    source = BPSSource()
    periods = await source.discover_periods("43")
    responses = await source.fetch_chunks("43", periods)
    decoded = source.transform(responses)
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from statdash_shared.config import ProviderConfig, settings
from statdash_shared.exceptions import ChunkFetchFailed
from statdash_pipeline.sources.base import BaseSource
from statdash_pipeline.transforms.matrix import DecodeResult, decode_responses
from statdash_pipeline.utils.retry import with_retry

log = structlog.get_logger(__name__)


def chunk_periods(period_ids: list[str], size: int) -> list[list[str]]:
    """Split period ids into consecutive batches of at most *size*."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [period_ids[i : i + size] for i in range(0, len(period_ids), size)]


class BPSSource(BaseSource):
    """Discovers periods and fetches indicator values from BPS WebAPI."""

    name = "BPS"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        super().__init__()
        self._config = config or settings.provider_config()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------

    def _period_list_url(self, indicator_id: str, page: int) -> str:
        c = self._config
        return (
            f"{c.base_url}/list/model/th/domain/{c.domain_id}"
            f"/var/{indicator_id}/page/{page}/key/{c.api_key}/"
        )

    def _data_url(self, indicator_id: str, period_ids: list[str]) -> str:
        c = self._config
        return (
            f"{c.base_url}/list/model/data/domain/{c.domain_id}"
            f"/var/{indicator_id}/th/{':'.join(period_ids)}/key/{c.api_key}/"
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    @with_retry(max_attempts=3, base_delay=1.0, retry_on=(httpx.TransportError,))
    async def _get(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._config.timeout,
            headers=dict(self._config.headers),
            follow_redirects=True,
        ) as client:
            return await client.get(url)

    async def _get_json(self, url: str) -> dict[str, Any] | None:
        """GET *url* and parse a JSON object, or return None on any failure."""
        try:
            response = await self._get(url)
        except httpx.HTTPError as exc:
            self._log.warning("bps_request_failed", error=str(exc))
            return None

        if not response.is_success:
            self._log.warning("bps_bad_status", status=response.status_code)
            return None

        text = response.text
        if not text or not text.strip():
            self._log.warning("bps_empty_body", status=response.status_code)
            return None

        try:
            payload = json.loads(text)
        except ValueError as exc:
            self._log.warning("bps_invalid_json", error=str(exc))
            return None

        if not isinstance(payload, dict):
            self._log.warning("bps_unexpected_payload", kind=type(payload).__name__)
            return None
        return payload

    # ------------------------------------------------------------------
    # Period discovery
    # ------------------------------------------------------------------

    async def discover_periods(self, indicator_id: str) -> list[str]:
        """
        Return every period id (th_id) the provider lists for an indicator.

        Pages are fetched until the page count declared by page 1 is
        reached or max_discovery_pages is hit. A bad page ends the loop and
        keeps what was accumulated. Duplicates across pages are kept here;
        decode_responses drops the repeated rows.
        """
        disc_log = self._log.bind(indicator_id=indicator_id)
        period_ids: list[str] = []
        page = 1
        total_pages = 1
        ceiling = self._config.max_discovery_pages

        while page <= total_pages and page <= ceiling:
            payload = await self._get_json(self._period_list_url(indicator_id, page))
            if (
                payload is None
                or payload.get("status") != "OK"
                or payload.get("data-availability") != "available"
            ):
                disc_log.info("discovery_page_unavailable", page=page)
                break

            data = payload.get("data") or []
            try:
                if page == 1:
                    total_pages = int(data[0]["pages"])
                items = data[1] if len(data) > 1 and data[1] else []
                period_ids.extend(str(item["th_id"]) for item in items)
            except (IndexError, KeyError, TypeError, ValueError) as exc:
                disc_log.warning("discovery_page_malformed", page=page, error=str(exc))
                break

            page += 1

        if total_pages > ceiling:
            disc_log.warning(
                "discovery_page_ceiling_hit",
                declared_pages=total_pages,
                ceiling=ceiling,
            )
        disc_log.info("periods_discovered", count=len(period_ids), pages=page - 1)
        return period_ids

    # ------------------------------------------------------------------
    # Chunked fetch
    # ------------------------------------------------------------------

    async def fetch_chunk(self, indicator_id: str, period_ids: list[str]) -> dict[str, Any]:
        """
        Fetch one batch of periods.

        Raises:
            ChunkFetchFailed: the response was unusable.
        """
        payload = await self._get_json(self._data_url(indicator_id, period_ids))
        if payload is None:
            raise ChunkFetchFailed(
                "BPS data request failed",
                {"indicator_id": indicator_id, "periods": period_ids},
            )
        if payload.get("status") != "OK" or not payload.get("datacontent"):
            raise ChunkFetchFailed(
                "BPS data response has no datacontent",
                {
                    "indicator_id": indicator_id,
                    "periods": period_ids,
                    "status": payload.get("status"),
                },
            )
        return payload

    async def fetch_chunks(
        self, indicator_id: str, period_ids: list[str]
    ) -> list[dict[str, Any]]:
        """
        Fetch all periods in fixed-size batches, one request per batch.

        Partial success: a failed batch is logged and skipped, the rest are
        returned in batch order.
        """
        chunks = chunk_periods(period_ids, self._config.period_chunk_size)
        responses: list[dict[str, Any]] = []
        failed = 0
        for idx, chunk in enumerate(chunks):
            try:
                responses.append(await self.fetch_chunk(indicator_id, chunk))
            except ChunkFetchFailed as exc:
                failed += 1
                self._log.warning(
                    "chunk_fetch_failed",
                    indicator_id=indicator_id,
                    chunk=idx + 1,
                    n_chunks=len(chunks),
                    **exc.context,
                )
        self._log.info(
            "chunks_fetched",
            indicator_id=indicator_id,
            n_chunks=len(chunks),
            failed=failed,
        )
        return responses

    # ------------------------------------------------------------------
    # BaseSource interface
    # ------------------------------------------------------------------

    async def extract(self, *, indicator_id: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Discover periods and fetch them. Empty list if nothing is available."""
        period_ids = await self.discover_periods(indicator_id)
        if not period_ids:
            return []
        return await self.fetch_chunks(indicator_id, period_ids)

    def transform(self, raw: list[dict[str, Any]]) -> DecodeResult:
        return decode_responses(raw, domain_id=self._config.domain_id)

    async def get_metadata(self) -> dict[str, Any]:
        return {
            "source_name": self.name,
            "base_url": self._config.base_url,
            "domain_id": self._config.domain_id,
            "description": "BPS WebAPI — dimensional indicator data",
            "period_chunk_size": self._config.period_chunk_size,
        }
