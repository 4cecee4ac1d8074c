"""Watch mode for Quire.

Re-runs the checks whenever the configuration or content changes. Unlike
the external generator, the configuration is re-read on every run.

Key classes:
- CheckWatcher: Owns the observer and the re-check loop.
- _ChangeHandler: File system event handler that triggers a re-check.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import click
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .logging import get_logger

logger = get_logger("watcher")

WATCHED_DIRS = ("_posts", "_drafts", "_pages", "_layouts")
IGNORED_DIRS = ("_site", ".jekyll-cache", ".git", "node_modules", ".sass-cache")


class CheckWatcher:
    """Runs a callback on start and again after every relevant change.

    Attributes:
        project_root: Site source directory.
        on_change: Callback that loads the site and reports.
    """

    def __init__(self, project_root: Path, on_change: Callable[[], None]):
        self.project_root = project_root
        self.on_change = on_change
        self._observer: Observer | None = None
        self._running = False
        self._last_run_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.2

    def start(self) -> None:  # pragma: no cover - integration path
        self.run_once()
        self._start_observer()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def run_once(self) -> None:
        self._last_signature = self._compute_signature()
        self.on_change()
        self._last_run_at = time.time()

    def recheck(self) -> None:
        now = time.time()
        if self._running or (now - self._last_run_at) < self._debounce_seconds:
            return
        signature = self._compute_signature()
        if signature == self._last_signature:
            return
        self._running = True
        try:
            click.echo("Change detected; re-checking...")
            logger.debug("Signature changed (%d watched files)", len(signature))
            self._last_signature = signature
            self.on_change()
        finally:
            self._running = False
            self._last_run_at = time.time()

    def _start_observer(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for folder in WATCHED_DIRS:
            watch_path = self.project_root / folder
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        # Root holds _config.yml and top-level pages
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        candidates = [self.project_root / name for name in ("_config.yml", "_config.yaml")]
        for folder in WATCHED_DIRS:
            root = self.project_root / folder
            if root.exists():
                candidates.extend(sorted(root.rglob("*")))
        candidates.extend(sorted(self.project_root.glob("*.md")))
        candidates.extend(sorted(self.project_root.glob("*.html")))
        for path in candidates:
            try:
                if path.is_dir():
                    continue
                stat = path.stat()
            except OSError:
                continue
            rel = path.relative_to(self.project_root)
            entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher: CheckWatcher):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        if any(part in IGNORED_DIRS for part in path.parts):
            return
        self.watcher.recheck()
