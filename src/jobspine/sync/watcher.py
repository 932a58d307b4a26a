"""Workbook watcher: re-run the sync when the feed changes.

Manifesto:
    The worksheet lives on a shared drive and is saved whenever someone
    edits it. The watcher notices those saves by content hash, and also
    re-runs on a fixed interval so a missed change is picked up eventually.
    Only one run happens at a time inside the process.

Loop::

    start()
      │
      ▼
    daemon thread ── while not stop_event.wait(poll_seconds):
                         run_once()
                           ├─ lock busy           → skip, log sync_already_running
                           ├─ hash changed        → run
                           ├─ interval elapsed    → run
                           └─ otherwise           → nothing
    stop()
      │
      ▼
    stop_event.set(); thread.join(timeout)

Cross-process exclusion is not provided; run one watcher per workbook.

Tags:
    job-spine, watcher, scheduling, threading, polling
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jobspine.core.errors import SourceError
from jobspine.core.logging import get_logger
from jobspine.framework.sources.workbook import WorkbookSource

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 120.0
DEFAULT_POLL_SECONDS = 5.0


class SyncWatcher:
    """Poll a workbook and call *run_sync* when it changes or the interval ends.

    Example:
        >>> watcher = SyncWatcher("/data/Contract Data.xlsx", run_sync=do_sync)
        >>> watcher.start()
        >>> # ... later ...
        >>> watcher.stop()
    """

    def __init__(
        self,
        path: str | Path,
        run_sync: Callable[[Path], Any],
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        poll_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.path = Path(path)
        self._run_sync = run_sync
        self.interval_seconds = interval_seconds
        self.poll_seconds = poll_seconds or min(DEFAULT_POLL_SECONDS, interval_seconds)
        self._monotonic = monotonic

        self._source = WorkbookSource.from_path(self.path)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_hash: str | None = None
        self._last_run_at: float | None = None
        self._run_count = 0
        self._skipped_busy = 0

    # -------------------------------------------------------------------------
    # SINGLE TICK
    # -------------------------------------------------------------------------

    def _due(self, force: bool) -> tuple[bool, str | None]:
        try:
            current = self._source.content_hash()
        except SourceError as e:
            logger.warning("workbook_unavailable", path=str(self.path), error=e.message)
            return False, None

        if force or self._last_run_at is None:
            return True, current
        if current != self._last_hash:
            logger.info("workbook_changed", path=str(self.path))
            return True, current
        if self._monotonic() - self._last_run_at >= self.interval_seconds:
            return True, current
        return False, current

    def run_once(self, *, force: bool = False) -> bool:
        """Run the sync if it is due; return whether it ran.

        A call made while another run holds the lock returns ``False``
        immediately. Exceptions from *run_sync* propagate to the caller.
        """
        if not self._lock.acquire(blocking=False):
            self._skipped_busy += 1
            logger.info("sync_already_running", path=str(self.path))
            return False

        try:
            due, current = self._due(force)
            if not due:
                return False

            logger.info("watch_sync_started", path=str(self.path), run=self._run_count + 1)
            try:
                self._run_sync(self.path)
            finally:
                self._run_count += 1
                self._last_run_at = self._monotonic()
                self._last_hash = current
            return True
        finally:
            self._lock.release()

    # -------------------------------------------------------------------------
    # BACKGROUND LOOP
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start polling in a daemon thread (the first poll runs immediately)."""
        if self.is_running:
            logger.warning("watcher_already_started", path=str(self.path))
            return

        self._stop_event.clear()

        def _loop() -> None:
            logger.info(
                "watcher_started",
                path=str(self.path),
                interval_seconds=self.interval_seconds,
                poll_seconds=self.poll_seconds,
            )
            while True:
                try:
                    self.run_once()
                except Exception as e:
                    logger.exception("watch_sync_failed", path=str(self.path), error=str(e))
                if self._stop_event.wait(self.poll_seconds):
                    break
            logger.info("watcher_stopped", path=str(self.path))

        self._thread = threading.Thread(target=_loop, daemon=True, name="jobspine-watcher")
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop; waits up to *timeout* seconds for a run in progress."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("watcher_did_not_stop_cleanly", path=str(self.path))
        self._thread = None

    def wait(self) -> None:
        """Block until ``stop()`` is called (used by the CLI)."""
        self._stop_event.wait()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def run_count(self) -> int:
        return self._run_count

    @property
    def skipped_busy(self) -> int:
        return self._skipped_busy

    def health(self) -> dict[str, Any]:
        return {
            "healthy": self.is_running,
            "path": str(self.path),
            "run_count": self._run_count,
            "skipped_busy": self._skipped_busy,
            "interval_seconds": self.interval_seconds,
            "last_hash": self._last_hash,
        }


__all__ = [
    "DEFAULT_INTERVAL_SECONDS",
    "DEFAULT_POLL_SECONDS",
    "SyncWatcher",
]
