"""
tests/test_pipelines/test_indicator_sync.py — End-to-end tests for IndicatorSync.

BPS is mocked with respx; the store is the in-memory MemoryStore from conftest.
"""

from __future__ import annotations

import httpx
import pytest

from statdash_shared.config import Settings
from statdash_shared.constants import NO_DATA_MESSAGE
from statdash_pipeline.pipelines.indicator_sync import (
    JOB_NAME,
    IndicatorSync,
    SyncState,
    progress_percent,
)
from statdash_pipeline.sources.bps import BPSSource
from statdash_pipeline.utils.checkpoint import CheckpointStore

PERIODS = [121, 122]


def periods_page(ids: list[int], page: int = 1, pages: int = 1) -> dict:
    return {
        "status": "OK",
        "data-availability": "available",
        "data": [{"page": page, "pages": pages}, [{"th_id": i, "th": str(1900 + i)} for i in ids]],
    }


def annual_payload(var: str, period_ids: list[int]) -> dict:
    tahun = [{"val": p, "label": str(1900 + p)} for p in period_ids]
    return {
        "status": "OK",
        "var": [{"val": int(var), "label": f"Indikator {var}", "unit": "Persen"}],
        "turvar": [{"val": 0, "label": "Tidak ada"}],
        "vervar": [{"val": 7601, "label": "Majene"}],
        "tahun": tahun,
        "turtahun": [{"val": 0, "label": "Tahun"}],
        "datacontent": {f"7601{var}0{t['val']}0": 10 + i for i, t in enumerate(tahun)},
    }


@pytest.fixture
def bps(mock_http, bps_urls):
    """Register BPS routes: bps.ok("43") serves two annual rows, bps.empty("99") none."""

    class _Routes:
        def years(self, var: str, ids: list[int]) -> None:
            """One annual row per period id, fetched two periods per request."""
            mock_http.get(bps_urls["periods"](var, 1)).mock(
                return_value=httpx.Response(200, json=periods_page(ids))
            )
            for start in range(0, len(ids), 2):
                chunk = ids[start : start + 2]
                mock_http.get(bps_urls["data"](var, [str(p) for p in chunk])).mock(
                    return_value=httpx.Response(200, json=annual_payload(var, chunk))
                )

        def overlapping(self, var: str) -> None:
            """Two discovery pages that both list period 122."""
            mock_http.get(bps_urls["periods"](var, 1)).mock(
                return_value=httpx.Response(200, json=periods_page([121, 122], 1, 2))
            )
            mock_http.get(bps_urls["periods"](var, 2)).mock(
                return_value=httpx.Response(200, json=periods_page([122, 123], 2, 2))
            )
            for chunk in ([121, 122], [122, 123]):
                mock_http.get(bps_urls["data"](var, [str(p) for p in chunk])).mock(
                    return_value=httpx.Response(200, json=annual_payload(var, chunk))
                )

        def ok(self, var: str) -> None:
            mock_http.get(bps_urls["periods"](var, 1)).mock(
                return_value=httpx.Response(200, json=periods_page(PERIODS))
            )
            mock_http.get(bps_urls["data"](var, [str(p) for p in PERIODS])).mock(
                return_value=httpx.Response(200, json=annual_payload(var, PERIODS))
            )

        def empty(self, var: str) -> None:
            mock_http.get(bps_urls["periods"](var, 1)).mock(
                return_value=httpx.Response(
                    200, json={"status": "OK", "data-availability": "list-not-available"}
                )
            )

        def data_fails(self, var: str) -> None:
            mock_http.get(bps_urls["periods"](var, 1)).mock(
                return_value=httpx.Response(200, json=periods_page(PERIODS))
            )
            mock_http.get(bps_urls["data"](var, [str(p) for p in PERIODS])).mock(
                return_value=httpx.Response(500)
            )

    return _Routes()


@pytest.fixture
def make_sync(provider_config, tmp_path):
    def _make(store, **kwargs) -> IndicatorSync:
        kwargs.setdefault("checkpoints", CheckpointStore(tmp_path / "cache"))
        return IndicatorSync(store, source=BPSSource(provider_config), **kwargs)

    return _make


def _tagged(store, indicator_id: str) -> list[dict]:
    return [r for r in store.rows["Data"] if r["id_variable"] == indicator_id]


# ---------------------------------------------------------------------------
# progress_percent
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "done,total,expected",
    [(1, 3, 33), (2, 3, 67), (3, 3, 100), (1, 8, 13), (3, 8, 38), (0, 5, 0), (0, 0, 100)],
)
def test_progress_percent_rounds_half_up(done, total, expected):
    assert progress_percent(done, total) == expected


# ---------------------------------------------------------------------------
# Three-phase workflow
# ---------------------------------------------------------------------------

class TestInit:
    @pytest.mark.asyncio
    async def test_queue_is_active_indicators_in_order(self, memory_store, make_konfig_row, make_sync):
        store = memory_store(
            konfig=[
                make_konfig_row("88", "Inflasi"),
                make_konfig_row("12", status="Non-Aktif"),
                make_konfig_row("43", "Kemiskinan"),
            ]
        )
        sync = make_sync(store)

        queue = await sync.init()

        assert [(q.id, q.label) for q in queue] == [("88", "Inflasi"), ("43", "Kemiskinan")]
        assert sync.state is SyncState.PROCESSING
        assert sync.job.current_index == 0

    @pytest.mark.asyncio
    async def test_store_failure_raises(self, memory_store, make_sync):
        store = memory_store()
        store.fail["get_all_rows"] = RuntimeError("sheet unreachable")
        sync = make_sync(store)

        with pytest.raises(RuntimeError):
            await sync.init()
        assert sync.state is SyncState.FAILED


class TestProcessOne:
    @pytest.mark.asyncio
    async def test_success_replaces_rows(self, bps, memory_store, make_data_row, make_sync):
        fresh = list(range(110, 122))
        bps.years("88", fresh)
        stale = [make_data_row("88", str(1990 + i), i) for i in range(10)]
        store = memory_store(data=[make_data_row("43", "2021", 1), *stale])

        result = await make_sync(store).process_one("88")

        assert result.success is True
        assert result.count == 12
        assert result.deleted == 10
        assert [r["Tahun"] for r in _tagged(store, "88")] == [str(1900 + p) for p in fresh]
        assert store.count("delete_row") == 10
        assert len(_tagged(store, "43")) == 1

    @pytest.mark.asyncio
    async def test_empty_discovery_reports_no_data(self, bps, memory_store, make_data_row, make_sync):
        bps.empty("99")
        store = memory_store(data=[make_data_row("99", "2020", 1)])

        result = await make_sync(store).process_one("99")

        assert result.success is False
        assert result.error == NO_DATA_MESSAGE
        assert ("get_all_rows", "Data") not in store.calls
        assert store.count("delete_row") == 0
        assert store.count("add_rows") == 0
        assert len(_tagged(store, "99")) == 1

    @pytest.mark.asyncio
    async def test_overlapping_discovery_pages_store_each_year_once(
        self, bps, memory_store, make_sync
    ):
        bps.overlapping("43")
        store = memory_store()

        result = await make_sync(store).process_one("43")

        assert result.success is True
        assert result.count == 3
        assert [r["Tahun"] for r in _tagged(store, "43")] == ["2021", "2022", "2023"]
        assert store.count("add_rows") == 1

    @pytest.mark.asyncio
    async def test_all_chunks_failing_reports_no_data(self, bps, memory_store, make_sync):
        bps.data_fails("50")
        store = memory_store()

        result = await make_sync(store).process_one("50")

        assert result.error == NO_DATA_MESSAGE
        assert store.count("add_rows") == 0

    @pytest.mark.asyncio
    async def test_missing_id(self, memory_store, make_sync):
        result = await make_sync(memory_store()).process_one("  ")
        assert result.success is False
        assert result.error == "Missing variable ID."

    @pytest.mark.asyncio
    async def test_store_failure_is_captured(self, bps, memory_store, make_sync):
        bps.ok("43")
        store = memory_store()
        store.fail["add_rows"] = RuntimeError("quota")

        result = await make_sync(store).process_one("43")

        assert result.success is False
        assert "Inserting fresh rows failed" in result.error
        assert result.to_dict() == {"id": "43", "success": False, "error": result.error}


class TestFinish:
    @pytest.mark.asyncio
    async def test_runs_every_invalidator_and_is_idempotent(self, memory_store, make_sync):
        calls: list[str] = []

        async def async_invalidator():
            calls.append("async")

        def broken():
            raise RuntimeError("cache gone")

        sync = make_sync(
            memory_store(),
            invalidators=[lambda: calls.append("sync"), broken, async_invalidator],
        )
        await sync.finish()
        await sync.finish()

        assert calls == ["sync", "async", "sync", "async"]
        assert sync.state is SyncState.DONE


# ---------------------------------------------------------------------------
# Whole run
# ---------------------------------------------------------------------------

class TestRun:
    @pytest.mark.asyncio
    async def test_failure_in_middle_does_not_stop_queue(
        self, bps, memory_store, make_konfig_row, make_sync
    ):
        bps.ok("43")
        bps.empty("50")
        bps.ok("88")
        store = memory_store(
            konfig=[make_konfig_row("43"), make_konfig_row("50"), make_konfig_row("88")]
        )
        invalidated: list[bool] = []
        progress = []
        sync = make_sync(store, invalidators=[lambda: invalidated.append(True)])

        report = await sync.run(progress=progress.append)

        assert report.state is SyncState.DONE
        assert [(r.id, r.success) for r in report.results] == [
            ("43", True),
            ("50", False),
            ("88", True),
        ]
        assert report.succeeded == 2
        assert report.failed == 1
        assert [p.percent for p in progress] == [33, 67, 100]
        assert [p.item.id for p in progress] == ["43", "50", "88"]
        assert invalidated == [True]
        assert len(_tagged(store, "43")) == 2
        assert len(_tagged(store, "88")) == 2
        assert sync.job is None

    @pytest.mark.asyncio
    async def test_init_during_run_does_not_touch_its_report(
        self, bps, memory_store, make_konfig_row, make_sync
    ):
        bps.ok("43")
        bps.ok("88")
        store = memory_store(konfig=[make_konfig_row("43"), make_konfig_row("88")])
        sync = make_sync(store)

        async def second_session(p):
            if p.done == 1:
                await sync.init()

        report = await sync.run(progress=second_session)

        assert [r.id for r in report.results] == ["43", "88"]
        assert report.total == 2
        assert sync.job.results == []

    @pytest.mark.asyncio
    async def test_init_failure_fails_run(self, memory_store, make_sync):
        store = memory_store()
        store.fail["get_all_rows"] = RuntimeError("sheet unreachable")
        report = await make_sync(store).run()

        assert report.state is SyncState.FAILED
        assert report.error == "sheet unreachable"
        assert report.to_dict()["success"] is False

    @pytest.mark.asyncio
    async def test_only_restricts_queue(self, bps, memory_store, make_konfig_row, make_sync):
        bps.ok("88")
        store = memory_store(konfig=[make_konfig_row("43"), make_konfig_row("88")])

        report = await make_sync(store).run(only=["88", "404"])

        assert [r.id for r in report.results] == ["88"]
        assert report.total == 1

    @pytest.mark.asyncio
    async def test_resume_skips_processed_items(
        self, bps, memory_store, make_konfig_row, make_sync, tmp_path
    ):
        bps.ok("88")
        checkpoints = CheckpointStore(tmp_path / "cache")
        checkpoints.save(JOB_NAME, ["43", "50", "88"], 2)
        store = memory_store(
            konfig=[make_konfig_row("43"), make_konfig_row("50"), make_konfig_row("88")]
        )
        progress = []

        report = await make_sync(store, checkpoints=checkpoints).run(
            progress=progress.append, resume=True
        )

        assert report.resumed_from == 2
        assert [r.id for r in report.results] == ["88"]
        assert [(p.done, p.total, p.percent) for p in progress] == [(3, 3, 100)]
        assert checkpoints.load(JOB_NAME, ["43", "50", "88"]) == 0

    @pytest.mark.asyncio
    async def test_resume_ignores_checkpoint_for_other_queue(
        self, bps, memory_store, make_konfig_row, make_sync, tmp_path
    ):
        bps.ok("43")
        checkpoints = CheckpointStore(tmp_path / "cache")
        checkpoints.save(JOB_NAME, ["12", "43"], 1)
        store = memory_store(konfig=[make_konfig_row("43")])

        report = await make_sync(store, checkpoints=checkpoints).run(resume=True)

        assert report.resumed_from == 0
        assert [r.id for r in report.results] == ["43"]

    @pytest.mark.asyncio
    async def test_report_dict(self, bps, memory_store, make_konfig_row, make_sync):
        bps.ok("43")
        store = memory_store(konfig=[make_konfig_row("43")])

        body = (await make_sync(store).run()).to_dict()

        assert body["state"] == "done"
        assert body["success"] is True
        assert body["results"] == [{"id": "43", "success": True, "count": 2}]


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_missing_store_configuration_fails_run(self, tmp_path):
        cfg = Settings(
            _env_file=None,
            store_backend="sheets",
            google_sheet_id="",
            checkpoint_dir=str(tmp_path),
        )
        sync = IndicatorSync.from_settings(cfg)

        report = await sync.run()

        assert report.state is SyncState.FAILED
        assert "GOOGLE_SHEET_ID" in report.error
        assert sync.data_table == "Data"
        assert sync.source.config.domain_id == cfg.bps_domain_id
