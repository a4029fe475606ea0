"""
CANS.md Change Watcher

An activated document is immutable for the lifetime of its engine. This
watcher notices when CANS.md is edited underneath a running engine and
records it; it never reloads. The change takes effect only through a new
activation, which will run the integrity check against the stored hash.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Union

from watchdog.events import FileModifiedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..adapters.base import PlatformAdapter
from ..audit.models import Actor, Outcome
from ..audit.pipeline import AuditPipeline
from ..config import get_cans_path
from .integrity import compute_hash

logger = logging.getLogger(__name__)


class CansFileHandler(FileSystemEventHandler):
    """File system event handler for CANS.md modifications."""

    def __init__(self, watcher: "CansWatcher"):
        self.watcher = watcher
        self._debounce_time = 1.0  # seconds
        self._last_event = 0.0
        self._lock = threading.Lock()

    def on_modified(self, event: FileModifiedEvent) -> None:
        if event.is_directory:
            return

        if Path(event.src_path).resolve() != self.watcher.cans_path.resolve():
            return

        with self._lock:
            now = time.time()
            if now - self._last_event <= self._debounce_time:
                return
            self._last_event = now

        self.watcher.check_for_change()


class CansWatcher:
    """Reports post-activation edits to CANS.md."""

    def __init__(
        self,
        workspace_path: Union[str, Path],
        activated_hash: str,
        audit: AuditPipeline,
        adapter: PlatformAdapter,
    ):
        """
        Args:
            workspace_path: Workspace directory containing CANS.md
            activated_hash: Hash of the content the engine was activated with
            audit: Pipeline to record changes in
            adapter: Host adapter for the operator warning
        """
        self.cans_path = get_cans_path(workspace_path)
        self.activated_hash = activated_hash
        self.audit = audit
        self.adapter = adapter

        self._observer: Optional[Observer] = None
        self._last_reported: Optional[str] = None

    def start(self) -> None:
        if self._observer is not None:
            return

        self._observer = Observer()
        self._observer.daemon = True
        self._observer.schedule(CansFileHandler(self), str(self.cans_path.parent), recursive=False)
        self._observer.start()
        logger.info(f"Watching {self.cans_path} for changes")

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2.0)
            self._observer = None

    def check_for_change(self) -> bool:
        """
        Compare the file on disk with the activated content.

        Returns:
            True if a (new) divergence was recorded
        """
        try:
            current_hash = compute_hash(self.cans_path.read_bytes())
        except FileNotFoundError:
            current_hash = "missing"
        except OSError as e:
            logger.error(f"Failed to read {self.cans_path}: {e}")
            return False

        if current_hash == self.activated_hash or current_hash == self._last_reported:
            return False

        self._last_reported = current_hash
        self.adapter.log(
            "warn",
            "[CareAgent] CANS.md changed after activation; "
            "the running engine keeps the activated document until re-activation",
        )
        self.audit.log(
            action="cans_modified",
            actor=Actor.SYSTEM,
            outcome=Outcome.ERROR,
            details={
                "activated_hash": self.activated_hash[:12],
                "current_hash": current_hash[:12],
            },
        )
        return True
