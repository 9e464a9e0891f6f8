"""Upload progress rendering.

Both classes here satisfy `ipa_uploader.github.releases.PublishObserver`.
RichUploadProgress draws one bar per asset (bytes sent vs. file size) and
stops it before the next asset starts. RecordingObserver keeps the events
for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.console import Console
    from rich.progress import Progress, TaskID

__all__ = ["RichUploadProgress", "RecordingObserver", "ProgressEvent"]


class RichUploadProgress:
    """Rich progress bar for asset uploads.

    The bar only exists while an asset is uploading; publishing a release
    without assets never shows it. Without an explicit console it draws on
    stderr, next to the rest of the upload output.
    """

    def __init__(self, *, console: Console | None = None) -> None:
        self._console = console
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    @property
    def active(self) -> bool:
        return self._progress is not None

    def asset_started(self, name: str, total: int) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console
        from rich.progress import (
            BarColumn,
            DownloadColumn,
            Progress,
            TaskProgressColumn,
            TextColumn,
            TimeRemainingColumn,
        )

        self._stop()
        if self._console is None:
            # same stream as RichConsole(stderr=True)
            self._console = Console(stderr=True)
        progress = Progress(
            TextColumn("Uploading {task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("| ETA:"),
            TimeRemainingColumn(),
            TextColumn("|"),
            DownloadColumn(),
            console=self._console,
        )
        progress.start()
        self._task = progress.add_task(name, total=total)
        self._progress = progress

    def asset_progress(self, name: str, transferred: int, total: int) -> None:
        if self._progress is None or self._task is None:
            return
        self._progress.update(self._task, completed=transferred, total=total)

    def asset_finished(self, name: str) -> None:
        self._stop()

    def _stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    kind: str  # started | progress | finished
    name: str
    transferred: int = 0
    total: int = 0


def _empty_events() -> list[ProgressEvent]:
    return []


@dataclass
class RecordingObserver:
    """Observer that records upload events for testing."""

    events: list[ProgressEvent] = field(default_factory=_empty_events)

    def asset_started(self, name: str, total: int) -> None:
        self.events.append(ProgressEvent("started", name, 0, total))

    def asset_progress(self, name: str, transferred: int, total: int) -> None:
        self.events.append(ProgressEvent("progress", name, transferred, total))

    def asset_finished(self, name: str) -> None:
        self.events.append(ProgressEvent("finished", name))

    @property
    def started(self) -> list[str]:
        """Names of assets whose upload started, in order."""
        return [e.name for e in self.events if e.kind == "started"]
