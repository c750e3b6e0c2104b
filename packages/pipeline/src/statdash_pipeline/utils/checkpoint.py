"""
utils/checkpoint.py — Sync job checkpoints for resumable runs.

Persists the queue and the index of the next item to process for each
named job, so an interrupted batch sync can pick up where it stopped
instead of re-processing indicators that already succeeded or failed.

Checkpoint file: ``{settings.checkpoint_dir}/checkpoints.json``
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from filelock import FileLock

log = structlog.get_logger(__name__)


class CheckpointStore:
    """JSON checkpoint file guarded by a file lock."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._file = self._dir / "checkpoints.json"
        self._lock = self._dir / "checkpoints.json.lock"

    def _ensure_dir(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)

    def _read_all(self) -> dict[str, Any]:
        if not self._file.exists():
            return {}
        try:
            return json.loads(self._file.read_text())
        except (json.JSONDecodeError, OSError):
            return {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self._ensure_dir()
        self._file.write_text(json.dumps(data, indent=2))

    def save(self, job_name: str, queue: list[str], next_index: int) -> None:
        """Persist the queue and the index of the next unprocessed item."""
        self._ensure_dir()
        with FileLock(self._lock):
            data = self._read_all()
            data[job_name] = {"queue": list(queue), "next_index": next_index}
            self._write_all(data)
        log.debug("checkpoint_saved", job=job_name, next_index=next_index)

    def load(self, job_name: str, queue: list[str]) -> int:
        """
        Return the index to resume *queue* from, or 0.

        A saved checkpoint is only honoured when its queue matches exactly;
        a changed catalog starts the run over.
        """
        self._ensure_dir()
        with FileLock(self._lock):
            entry = self._read_all().get(job_name)
        if not entry or entry.get("queue") != list(queue):
            return 0
        next_index = int(entry.get("next_index", 0))
        if next_index > 0:
            log.info("checkpoint_loaded", job=job_name, next_index=next_index)
        return min(next_index, len(queue))

    def clear(self, job_name: str) -> None:
        """Remove the checkpoint entry once the job completes."""
        self._ensure_dir()
        with FileLock(self._lock):
            data = self._read_all()
            if job_name in data:
                del data[job_name]
                self._write_all(data)
        log.info("checkpoint_cleared", job=job_name)
