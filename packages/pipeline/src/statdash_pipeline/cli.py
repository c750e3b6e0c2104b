"""
cli.py — Click CLI entrypoint for the indicator sync.

Usage:
    statdash sync
    statdash sync --only 43 --only 88
    statdash sync --resume
    statdash sync-one 43
    statdash periods 43
    statdash fetch 43
    statdash indicators list
    statdash indicators set-status 43 Non-Aktif
    statdash serve --port 8000
"""

from __future__ import annotations

import asyncio
import json
import sys

import click
import structlog

from statdash_shared.config import settings
from statdash_shared.constants import STATUS_ACTIVE, STATUS_INACTIVE
from statdash_shared.exceptions import SyncError
from statdash_pipeline.pipelines.indicator_sync import IndicatorSync, SyncProgress, SyncState
from statdash_pipeline.sources.bps import BPSSource
from statdash_pipeline.utils.logging import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """statdash BPS indicator sync."""
    configure_logging(log_level=log_level)


def _echo_progress(p: SyncProgress) -> None:
    mark = "✓" if p.result.success else "✗"
    detail = f"{p.result.count} rows" if p.result.success else p.result.error
    click.echo(f"  [{p.percent:3d}%] {mark} {p.item.id:10s} {p.item.label[:40]:40s} {detail}")


@main.command()
@click.option("--only", "only", multiple=True, help="Sync only this indicator id (repeatable).")
@click.option("--resume", is_flag=True, help="Continue an interrupted run.")
def sync(only: tuple[str, ...], resume: bool) -> None:
    """Sync every active indicator from BPS into the store."""
    orchestrator = IndicatorSync.from_settings()
    report = asyncio.run(
        orchestrator.run(progress=_echo_progress, only=list(only) or None, resume=resume)
    )
    if report.state is SyncState.FAILED:
        click.echo(f"Sync failed: {report.error}", err=True)
        sys.exit(1)
    click.echo(
        f"Done: {report.succeeded} succeeded, {report.failed} failed "
        f"of {report.total} ({report.duration_ms} ms)"
    )


@main.command("sync-one")
@click.argument("indicator_id")
def sync_one(indicator_id: str) -> None:
    """Sync a single indicator, whatever its catalog status."""

    async def _run() -> dict:
        orchestrator = IndicatorSync.from_settings()
        result = await orchestrator.process_one(indicator_id)
        await orchestrator.finish()
        return result.to_dict()

    result = asyncio.run(_run())
    click.echo(json.dumps(result, indent=2))
    if not result["success"]:
        sys.exit(1)


@main.command()
@click.argument("indicator_id")
def periods(indicator_id: str) -> None:
    """List the period ids BPS has for an indicator."""
    ids = asyncio.run(BPSSource(settings.provider_config()).discover_periods(indicator_id))
    if not ids:
        click.echo("  No periods found.")
        return
    click.echo(f"{len(ids)} periods: {', '.join(ids)}")


@main.command()
@click.argument("indicator_id")
@click.option("--limit", default=10, show_default=True, help="Rows to print.")
def fetch(indicator_id: str, limit: int) -> None:
    """Fetch and decode an indicator without writing to the store."""
    source = BPSSource(settings.provider_config())
    result = asyncio.run(source.run(indicator_id=indicator_id))
    click.echo(f"{len(result.rows)} rows decoded, {result.skipped} cells skipped")
    if result.unknown_labels:
        click.echo(f"  Unknown period labels: {', '.join(sorted(result.unknown_labels))}")
    for point in result.rows[:limit]:
        click.echo(
            f"  {point.kategori[:30]:30s} {point.date_string}  {point.value} {point.unit}"
        )


@main.group()
def indicators() -> None:
    """Inspect and edit the indicator catalog."""


@indicators.command("list")
@click.option("--active-only", is_flag=True, help="Only show active indicators.")
def list_indicators(active_only: bool) -> None:
    """List catalog entries."""

    async def _load():
        catalog = IndicatorSync.from_settings().catalog()
        return await (catalog.active() if active_only else catalog.load())

    try:
        entries = asyncio.run(_load())
    except SyncError as exc:
        click.echo(f"  Error reading catalog: {exc}", err=True)
        sys.exit(1)

    if not entries:
        click.echo("  No indicators found.")
        return
    for ind in entries:
        mark = "●" if ind.active else "○"
        click.echo(f"  {mark} {ind.id:10s} {ind.category[:20]:20s} {ind.label}")


@indicators.command("set-status")
@click.argument("indicator_id")
@click.argument(
    "status",
    type=click.Choice([STATUS_ACTIVE, STATUS_INACTIVE], case_sensitive=False),
)
def set_status(indicator_id: str, status: str) -> None:
    """Mark an indicator Aktif or Non-Aktif."""
    canonical = STATUS_ACTIVE if status.lower() == STATUS_ACTIVE.lower() else STATUS_INACTIVE

    async def _update() -> bool:
        catalog = IndicatorSync.from_settings().catalog()
        return await catalog.update(indicator_id, {"Status": canonical})

    if not asyncio.run(_update()):
        click.echo(f"  Indicator {indicator_id} not found.", err=True)
        sys.exit(1)
    log.info("indicator_status_set", indicator_id=indicator_id, status=canonical)
    click.echo(f"  {indicator_id} → {canonical}")


@main.command()
@click.option("--host", default=settings.api_host, show_default=True)
@click.option("--port", default=settings.api_port, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the statdash API with uvicorn."""
    import uvicorn

    uvicorn.run("statdash_api.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
