"""Structured logging and verbosity levels for SDK generation runs."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Summary only
    VERBOSE = 1   # + per-step progress, per-path status
    DEBUG = 2     # + download progress, container commands


class ProgressListener(Protocol):
    """Receives step events for live display (see sdkgen.cli.progress)."""

    def step_start(self, name: str) -> None: ...

    def step_finish(self, name: str, copied: int, skipped: int, removed: int) -> None: ...

    def download_progress(self, name: str, received: int, total: int | None) -> None: ...


@dataclass
class StepLog:
    """Per-step generation statistics."""

    name: str
    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    time_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "copied": list(self.copied),
            "skipped": list(self.skipped),
            "removed": list(self.removed),
            "time_seconds": self.time_seconds,
        }


@dataclass
class RunLog:
    """Structured log of a complete generation run.

    The dict format is::

        {
            "steps": {
                "copy-libraries": {
                    "copied": ["/usr/lib/swift", ...],
                    "skipped": ["/usr/lib/clang"],
                    "removed": [],
                    "time_seconds": 2.3,
                },
                ...
            },
            "total_copied": 6,
            "total_skipped": 1,
            "total_time": 5.4,
            "downloads": 1,
        }
    """

    run_id: str = ""
    steps: dict[str, StepLog] = field(default_factory=dict)
    total_time: float = 0.0
    total_copied: int = 0
    total_skipped: int = 0
    downloads: int = 0

    def get_or_create_step(self, name: str) -> StepLog:
        """Get existing step log or create a new one."""
        if name not in self.steps:
            self.steps[name] = StepLog(name=name)
        return self.steps[name]

    def finalize(self) -> None:
        """Compute totals from step data."""
        self.total_copied = sum(len(s.copied) for s in self.steps.values())
        self.total_skipped = sum(len(s.skipped) for s in self.steps.values())

    def skip_notices(self) -> list[str]:
        """All skipped paths across steps, in step order."""
        return [path for step in self.steps.values() for path in step.skipped]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "steps": {name: step.to_dict() for name, step in self.steps.items()},
            "total_copied": self.total_copied,
            "total_skipped": self.total_skipped,
            "total_time": self.total_time,
            "downloads": self.downloads,
        }


def new_run_id() -> str:
    """UTC timestamp with microseconds plus a random suffix, unique per run."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{stamp}-{uuid.uuid4().hex[:8]}"


class GeneratorLogger:
    """Structured logger for SDK generation runs.

    Writes JSONL log files to <log_dir>/ and optionally emits console
    output via Rich based on verbosity level. Every event is mirrored to
    the stdlib ``logging`` module.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        progress: ProgressListener | None = None,
    ):
        self.verbosity = verbosity
        self.progress = progress
        self.run_log = RunLog(
            run_id=new_run_id(),
        )
        self._log_file = None
        self._log_path: Path | None = None
        self._current_step: str | None = None
        self._step_start: float = 0.0

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.run_log.run_id}.jsonl"
            self._log_file = open(self._log_path, "a")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        """Write a JSON event to the JSONL log file."""
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._log_file.write(json.dumps(event) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        """Print to console if verbosity is high enough."""
        if self.verbosity >= min_verbosity:
            from rich.console import Console

            Console().print(message)

    # -- Step events --

    def step_start(self, name: str) -> None:
        """Log the start of a pipeline step."""
        self._current_step = name
        self._step_start = time.time()
        self.run_log.get_or_create_step(name)

        self._write_event({"event": "step_start", "step": name})
        logger.debug("step %s started", name)
        if self.progress is not None:
            self.progress.step_start(name)

        self._console_print(f"  [bold]Step:[/bold] {name}", Verbosity.VERBOSE)

    def step_finish(self, name: str) -> None:
        """Log the completion of a pipeline step."""
        elapsed = time.time() - self._step_start
        step = self.run_log.get_or_create_step(name)
        step.time_seconds = elapsed

        self._write_event({
            "event": "step_finish",
            "step": name,
            "copied": len(step.copied),
            "skipped": len(step.skipped),
            "removed": len(step.removed),
            "time_seconds": round(elapsed, 3),
        })
        if self.progress is not None:
            self.progress.step_finish(name, len(step.copied), len(step.skipped), len(step.removed))

        self._console_print(
            f"    {name}: {len(step.copied)} copied, {len(step.skipped)} skipped ({elapsed:.1f}s)",
            Verbosity.VERBOSE,
        )
        self._current_step = None

    @contextmanager
    def step(self, name: str) -> Iterator[StepLog]:
        """Bracket a block with step_start/step_finish.

        A block that raises leaves the step open so run_failed can name it.
        """
        self.step_start(name)
        yield self.run_log.get_or_create_step(name)
        self.step_finish(name)

    def _step(self) -> StepLog:
        return self.run_log.get_or_create_step(self._current_step or "run")

    # -- Path events --

    def path_copied(self, source: str, destination: str) -> None:
        """Log that a path was copied into the SDK."""
        self._step().copied.append(source)
        self._write_event({"event": "path_copied", "source": source, "destination": destination})
        logger.debug("copied %s -> %s", source, destination)
        self._console_print(f"      [green]+[/green] {source}", Verbosity.VERBOSE)

    def path_skipped(self, path: str, reason: str) -> None:
        """Log that an optional path was skipped."""
        self._step().skipped.append(path)
        self._write_event({"event": "path_skipped", "path": path, "reason": reason})
        logger.info("Optional path %s skipped: %s", path, reason)
        self._console_print(f"      [yellow]-[/yellow] {path} [dim]({reason})[/dim]", Verbosity.VERBOSE)

    def path_removed(self, path: str, reason: str) -> None:
        """Log that a path was removed from the SDK."""
        self._step().removed.append(path)
        self._write_event({"event": "path_removed", "path": path, "reason": reason})
        logger.warning("Removing %s: %s", path, reason)
        self._console_print(f"      [red]x[/red] {path} [dim]({reason})[/dim]", Verbosity.VERBOSE)

    # -- Download events --

    def download_start(self, url: str) -> None:
        self.run_log.downloads += 1
        self._write_event({"event": "download_start", "url": url})
        self._console_print(f"      [cyan]↓[/cyan] {url}", Verbosity.VERBOSE)

    def download_progress(self, name: str, received: int, total: int | None) -> None:
        self._write_event({
            "event": "download_progress",
            "name": name,
            "received_bytes": received,
            "total_bytes": total,
        })
        if self.progress is not None:
            self.progress.download_progress(name, received, total)

    # -- Run lifecycle --

    def run_start(self, triple: str, recipe: str) -> None:
        """Log the start of a generation run."""
        self._write_event({"event": "run_start", "triple": triple, "recipe": recipe})
        logger.info("Generating Swift SDK for %s with the %s recipe", triple, recipe)

    def run_finish(self, total_time: float) -> None:
        """Log the completion of a run and finalize stats."""
        self.run_log.total_time = total_time
        self.run_log.finalize()

        self._write_event({
            "event": "run_finish",
            "total_time": round(total_time, 3),
            "total_copied": self.run_log.total_copied,
            "total_skipped": self.run_log.total_skipped,
        })
        self.close()

    def run_failed(self, error: BaseException) -> None:
        """Log a run that aborted with an error."""
        self._write_event({
            "event": "run_failed",
            "step": self._current_step,
            "error": str(error),
            "error_type": type(error).__name__,
        })
        self.close()

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
