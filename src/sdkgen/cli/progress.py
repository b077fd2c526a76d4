"""Live progress display for SDK generation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock

from rich.console import Console, ConsoleOptions, RenderResult
from rich.filesize import decimal
from rich.text import Text


@dataclass
class _StepState:
    name: str
    copied: int = 0
    skipped: int = 0
    removed: int = 0
    elapsed: float = 0.0


class GenerationProgress:
    """Live progress tracker for generation runs.

    Implements Rich's console protocol for rendering with Live.
    Updated through the GeneratorLogger callbacks.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._completed: list[_StepState] = []
        self._current: str = ""
        self._current_start = 0.0
        self._download: tuple[str, int, int | None] | None = None

    def step_start(self, name: str) -> None:
        with self._lock:
            self._current = name
            self._current_start = time.time()

    def step_finish(self, name: str, copied: int, skipped: int, removed: int) -> None:
        with self._lock:
            self._completed.append(_StepState(
                name=name,
                copied=copied,
                skipped=skipped,
                removed=removed,
                elapsed=time.time() - self._current_start,
            ))
            self._current = ""
            self._download = None

    def download_progress(self, name: str, received: int, total: int | None) -> None:
        with self._lock:
            self._download = (name, received, total)

    @property
    def completed_steps(self) -> list[str]:
        with self._lock:
            return [s.name for s in self._completed]

    def __rich_console__(
        self, console: Console, options: ConsoleOptions
    ) -> RenderResult:
        with self._lock:
            for step in self._completed:
                parts = [f"  [green]✓[/green] {step.name}"]
                if step.copied:
                    parts.append(f"  {step.copied} copied")
                if step.skipped:
                    parts.append(f"  [yellow]{step.skipped} skipped[/yellow]")
                if step.removed:
                    parts.append(f"  [dim]{step.removed} removed[/dim]")
                parts.append(f"  [dim]{step.elapsed:.1f}s[/dim]")
                yield Text.from_markup("".join(parts))

            if not self._current:
                return

            elapsed = time.time() - self._current_start
            yield Text.from_markup(
                f"  [yellow]⟳[/yellow] {self._current}  [dim]{elapsed:.1f}s[/dim]"
            )
            if self._download is not None:
                name, received, total = self._download
                amount = decimal(received)
                if total is not None:
                    amount = f"{amount}/{decimal(total)}"
                yield Text.from_markup(f"       └─ {name}  [cyan]{amount}[/cyan]")
