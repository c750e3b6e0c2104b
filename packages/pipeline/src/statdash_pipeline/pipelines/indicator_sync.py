"""
pipelines/indicator_sync.py — Sync BPS indicators into the tabular store.

Orchestrates, for each active catalog entry:
  1. Period discovery (BPSSource.discover_periods)
  2. Chunked data fetch (BPSSource.fetch_chunks)
  3. Matrix decode → DataPoint rows (BPSSource.transform)
  4. Replace the indicator's Data rows (StoreReconciler.replace)

Three-phase surface, used by the admin UI which drives the loop itself:
    queue = await sync.init()                 # active indicators, in order
    result = await sync.process_one("43")     # never raises
    await sync.finish()                       # invalidates cached views

Or the whole run as one task with a progress callback:
    report = await sync.run(progress=lambda p: print(p.percent))

Items are processed strictly one after another; a failing indicator is
reported in its ItemResult and the loop moves on. Only initialization
failures (store unreachable, configuration missing) fail the run.

Usage:
    from statdash_pipeline.pipelines.indicator_sync import IndicatorSync
    sync = IndicatorSync.from_settings()
    report = await sync.run(resume=True)
"""

from __future__ import annotations

import inspect
import math
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from statdash_shared.config import Settings, settings
from statdash_shared.constants import NO_DATA_MESSAGE
from statdash_shared.exceptions import DiscoveryUnavailable
from statdash_pipeline.loaders import create_store
from statdash_pipeline.loaders.catalog import IndicatorCatalog
from statdash_pipeline.loaders.reconciler import INSERT_CHUNK_SIZE, StoreReconciler
from statdash_pipeline.loaders.store import TabularStore
from statdash_pipeline.sources.bps import BPSSource
from statdash_pipeline.utils.checkpoint import CheckpointStore
from statdash_pipeline.utils.logging import get_logger

log = get_logger(__name__, pipeline="indicator_sync")

JOB_NAME = "indicator_sync"


class SyncState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    PROCESSING = "processing"
    FINISHING = "finishing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueItem:
    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


@dataclass
class ItemResult:
    """Outcome of process_one() for a single indicator."""

    id: str
    success: bool
    count: int | None = None
    error: str | None = None
    skipped: int = 0
    deleted: int = 0

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.success:
            out["count"] = self.count
        else:
            out["error"] = self.error
        if self.skipped:
            out["skipped"] = self.skipped
        return out


@dataclass
class SyncJob:
    """Queue and results of one orchestrated run."""

    queue: list[QueueItem]
    current_index: int = 0
    results: list[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        self.results.append(result)
        self.current_index += 1


@dataclass(frozen=True)
class SyncProgress:
    """Reported after every item, successful or not."""

    done: int
    total: int
    percent: int
    item: QueueItem
    result: ItemResult


@dataclass
class RunReport:
    state: SyncState
    total: int = 0
    results: list[ItemResult] = field(default_factory=list)
    error: str | None = None
    resumed_from: int = 0
    duration_ms: int = 0

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "success": self.state is SyncState.DONE,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "resumed_from": self.resumed_from,
            "results": [r.to_dict() for r in self.results],
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


def progress_percent(done: int, total: int) -> int:
    """round(done / total * 100), halves rounded up."""
    if total <= 0:
        return 100
    return int(math.floor(done / total * 100 + 0.5))


ProgressCallback = Callable[[SyncProgress], Any]


class IndicatorSync:
    """Drives indicators through discovery → fetch → decode → replace."""

    def __init__(
        self,
        store: TabularStore | None = None,
        *,
        source: BPSSource | None = None,
        store_factory: Callable[[], TabularStore] | None = None,
        config_table: str = "Konfig",
        data_table: str = "Data",
        insert_chunk_size: int = INSERT_CHUNK_SIZE,
        checkpoints: CheckpointStore | None = None,
        invalidators: Iterable[Callable[[], Any]] = (),
    ) -> None:
        if store is None and store_factory is None:
            raise ValueError("IndicatorSync needs a store or a store_factory")
        self._store = store
        self._store_factory = store_factory
        self._source = source or BPSSource()
        self._config_table = config_table
        self._data_table = data_table
        self._insert_chunk_size = insert_chunk_size
        self._checkpoints = checkpoints
        self._invalidators: list[Callable[[], Any]] = list(invalidators)
        self._catalog: IndicatorCatalog | None = None
        self._reconciler: StoreReconciler | None = None
        self._state = SyncState.IDLE
        self._job: SyncJob | None = None

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = settings,
        *,
        invalidators: Iterable[Callable[[], Any]] = (),
    ) -> "IndicatorSync":
        """Wire a sync from Settings. The store is built on first use."""
        return cls(
            store_factory=lambda: create_store(cfg),
            source=BPSSource(cfg.provider_config()),
            config_table=cfg.config_table,
            data_table=cfg.data_table,
            insert_chunk_size=cfg.store_insert_chunk_size,
            checkpoints=CheckpointStore(cfg.checkpoint_dir),
            invalidators=invalidators,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def job(self) -> SyncJob | None:
        return self._job

    @property
    def source(self) -> BPSSource:
        return self._source

    @property
    def data_table(self) -> str:
        return self._data_table

    def register_invalidator(self, fn: Callable[[], Any]) -> None:
        self._invalidators.append(fn)

    def store(self) -> TabularStore:
        """The store, built from store_factory on first call."""
        if self._store is None:
            assert self._store_factory is not None
            self._store = self._store_factory()
        return self._store

    def catalog(self) -> IndicatorCatalog:
        if self._catalog is None:
            self._catalog = IndicatorCatalog(self.store(), table=self._config_table)
        return self._catalog

    def reconciler(self) -> StoreReconciler:
        if self._reconciler is None:
            self._reconciler = StoreReconciler(
                self.store(),
                table=self._data_table,
                chunk_size=self._insert_chunk_size,
            )
        return self._reconciler

    # ------------------------------------------------------------------
    # Three-phase workflow
    # ------------------------------------------------------------------

    async def init(self) -> list[QueueItem]:
        """
        Read the catalog and queue its active indicators in table order.

        Raises:
            ConfigurationMissing: store identifier/credentials absent.
            Exception: anything the store raises while reading the catalog.
        """
        queue = await self._load_queue()
        self._job = SyncJob(queue=queue)
        return queue

    async def _load_queue(self) -> list[QueueItem]:
        self._state = SyncState.INITIALIZING
        try:
            indicators = await self.catalog().active()
        except Exception as exc:
            self._state = SyncState.FAILED
            log.error("sync_init_failed", error=str(exc), exc_info=True)
            raise

        queue = [QueueItem(id=ind.id, label=ind.label) for ind in indicators]
        self._state = SyncState.PROCESSING
        log.info("sync_initialized", queue_size=len(queue))
        return queue

    async def process_one(self, indicator_id: str) -> ItemResult:
        """
        Sync one indicator end to end. Never raises.

        Returns:
            ItemResult(success=True, count=n) or ItemResult(success=False, error=...).
        """
        result = await self._sync_item(indicator_id)
        if self._job is not None:
            self._job.record(result)
        return result

    async def _sync_item(self, indicator_id: str) -> ItemResult:
        indicator_id = str(indicator_id or "").strip()
        if not indicator_id:
            return ItemResult(id="", success=False, error="Missing variable ID.")

        item_log = log.bind(indicator_id=indicator_id)
        t0 = time.monotonic()
        try:
            periods = await self._source.discover_periods(indicator_id)
            if not periods:
                raise DiscoveryUnavailable(NO_DATA_MESSAGE, {"indicator_id": indicator_id})

            responses = await self._source.fetch_chunks(indicator_id, periods)
            decoded = self._source.transform(responses)
            if not decoded.rows:
                raise DiscoveryUnavailable(
                    NO_DATA_MESSAGE,
                    {
                        "indicator_id": indicator_id,
                        "periods": len(periods),
                        "responses": len(responses),
                        "skipped": decoded.skipped,
                    },
                )

            replaced = await self.reconciler().replace(indicator_id, decoded.rows)
        except DiscoveryUnavailable as exc:
            item_log.warning("indicator_no_data", **exc.context)
            result = ItemResult(id=indicator_id, success=False, error=exc.message)
        except Exception as exc:
            item_log.error("indicator_sync_failed", error=str(exc), exc_info=True)
            result = ItemResult(
                id=indicator_id, success=False, error=str(exc) or "Unknown error"
            )
        else:
            result = ItemResult(
                id=indicator_id,
                success=True,
                count=len(decoded.rows),
                skipped=decoded.skipped,
                deleted=replaced.deleted,
            )
            item_log.info(
                "indicator_synced",
                rows=result.count,
                deleted=result.deleted,
                skipped=result.skipped,
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

        return result

    async def finish(self) -> None:
        """Invalidate downstream cached views. Safe to call repeatedly."""
        self._state = SyncState.FINISHING
        for fn in self._invalidators:
            try:
                outcome = fn()
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                log.warning("cache_invalidation_failed", error=str(exc))
        self._state = SyncState.DONE
        log.info("sync_finished", invalidators=len(self._invalidators))

    # ------------------------------------------------------------------
    # Whole run
    # ------------------------------------------------------------------

    async def run(
        self,
        progress: ProgressCallback | None = None,
        *,
        only: Sequence[str] | None = None,
        resume: bool = False,
    ) -> RunReport:
        """
        init → process_one for each queued indicator → finish.

        The run keeps its own SyncJob, so an init() from another caller
        during the run does not touch its results.

        Args:
            progress: Called after every item with a SyncProgress.
            only:     Restrict the queue to these indicator ids (queue order kept).
            resume:   Skip items an interrupted run with the same queue
                      already processed.

        Returns:
            RunReport. state is FAILED only when init() failed.
        """
        t0 = time.monotonic()
        try:
            queue = await self._load_queue()
        except Exception as exc:
            return RunReport(
                state=SyncState.FAILED,
                error=str(exc) or type(exc).__name__,
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

        if only:
            wanted = {str(i).strip() for i in only}
            missing = wanted - {item.id for item in queue}
            if missing:
                log.warning("sync_ids_not_active", ids=sorted(missing))
            queue = [item for item in queue if item.id in wanted]

        ids = [item.id for item in queue]
        start = 0
        if resume and self._checkpoints is not None:
            start = self._checkpoints.load(JOB_NAME, ids)
        job = SyncJob(queue=queue, current_index=start)

        total = len(queue)
        log.info("sync_run_start", total=total, resumed_from=start)
        for i in range(start, total):
            item = queue[i]
            result = await self._sync_item(item.id)
            job.record(result)
            if self._checkpoints is not None:
                self._checkpoints.save(JOB_NAME, ids, i + 1)
            if progress is not None:
                outcome = progress(
                    SyncProgress(
                        done=i + 1,
                        total=total,
                        percent=progress_percent(i + 1, total),
                        item=item,
                        result=result,
                    )
                )
                if inspect.isawaitable(outcome):
                    await outcome

        await self.finish()
        if self._checkpoints is not None:
            self._checkpoints.clear(JOB_NAME)

        report = RunReport(
            state=SyncState.DONE,
            total=total,
            results=list(job.results),
            resumed_from=start,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        log.info(
            "sync_run_complete",
            total=total,
            succeeded=report.succeeded,
            failed=report.failed,
            duration_ms=report.duration_ms,
        )
        return report
