"""
Hook Liveness Canary

Confirms that the host actually invokes the before_tool_call hook. If no
tool call reaches the engine before the deadline, the provider is warned
that policy enforcement is degraded: the hooks were registered but the
host never wired them.

The deadline timer runs on a daemon thread and never keeps the process
alive on its own.
"""

import logging
import threading

from ..adapters.base import PlatformAdapter
from ..audit.models import Actor, Outcome
from ..audit.pipeline import AuditPipeline
from ..config import DEFAULT_CANARY_TIMEOUT
from ..timers import DaemonTimer, TimerFactory

logger = logging.getLogger(__name__)

HOOK_NAME = "before_tool_call"


class HookCanary:
    """One-shot liveness probe for the before_tool_call hook."""

    def __init__(
        self,
        adapter: PlatformAdapter,
        audit: AuditPipeline,
        timeout: float = DEFAULT_CANARY_TIMEOUT,
        timer_factory: TimerFactory = DaemonTimer,
    ):
        self.adapter = adapter
        self.audit = audit
        self.timeout = timeout
        self._timer_factory = timer_factory
        self._timer = None
        self._verified = False
        self._expired = False
        self._lock = threading.Lock()

    def start(self) -> None:
        """Arm the deadline timer."""
        if self._timer is not None:
            return
        self._timer = self._timer_factory(self.timeout, self._on_timeout)
        self._timer.start()

    def is_verified(self) -> bool:
        return self._verified

    def mark_verified(self) -> None:
        """Record that the hook fired. Only the first call has any effect."""
        with self._lock:
            if self._verified:
                return
            self._verified = True
            # The deadline already recorded not_fired
            if self._expired:
                return

        if self._timer is not None:
            self._timer.cancel()

        logger.info(f"{HOOK_NAME} hook verified")
        self.audit.log(
            action="hook_canary",
            actor=Actor.SYSTEM,
            outcome=Outcome.ALLOWED,
            details={"hook": HOOK_NAME, "status": "verified"},
        )

    def cancel(self) -> None:
        """Disarm the deadline without marking the hook verified."""
        if self._timer is not None:
            self._timer.cancel()

    def _on_timeout(self) -> None:
        with self._lock:
            if self._verified:
                return
            self._expired = True

        self.adapter.log(
            "warn",
            f"[CareAgent] {HOOK_NAME} hook did NOT fire. Safety Guard is degraded.",
        )
        self.audit.log(
            action="hook_canary",
            actor=Actor.SYSTEM,
            outcome=Outcome.ERROR,
            details={
                "hook": HOOK_NAME,
                "status": "not_fired",
                "message": "Safety Guard is degraded -- hook not wired by host platform",
            },
        )


def setup_canary(
    adapter: PlatformAdapter,
    audit: AuditPipeline,
    timeout: float = DEFAULT_CANARY_TIMEOUT,
    timer_factory: TimerFactory = DaemonTimer,
) -> HookCanary:
    """Create a canary and start its deadline timer."""
    canary = HookCanary(adapter, audit, timeout=timeout, timer_factory=timer_factory)
    canary.start()
    return canary
