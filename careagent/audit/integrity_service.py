"""
Audit Integrity Service

Background job that re-verifies the audit hash chain: once at start-up,
then on a fixed interval. A broken chain is reported through the adapter's
error log and as a new audit entry chained after whatever is on disk, which
records when the break was detected. Detection is log-only; the service
never revokes activation or blocks tool calls.
"""

import logging
from typing import Optional

from ..adapters.base import PlatformAdapter, ServiceConfig
from ..config import DEFAULT_INTEGRITY_INTERVAL
from ..timers import RepeatingTimer, TimerFactory
from .models import Actor, ChainVerification, Outcome
from .pipeline import AuditPipeline

logger = logging.getLogger(__name__)

SERVICE_ID = "careagent-audit-integrity"


class AuditIntegrityService:
    """Periodic audit chain verifier."""

    def __init__(
        self,
        audit: AuditPipeline,
        adapter: PlatformAdapter,
        interval: float = DEFAULT_INTEGRITY_INTERVAL,
        timer_factory: TimerFactory = RepeatingTimer,
    ):
        """
        Args:
            audit: Pipeline whose chain is checked (and where breaks are logged)
            adapter: Host adapter used for operator-facing log lines
            interval: Seconds between periodic checks
            timer_factory: Builds the repeating timer; replaced in tests
        """
        self.audit = audit
        self.adapter = adapter
        self.interval = interval
        self._timer_factory = timer_factory
        self._timer = None
        self._last_result: Optional[ChainVerification] = None

    @property
    def id(self) -> str:
        return SERVICE_ID

    def start(self) -> None:
        """Run the start-up check and schedule the periodic one."""
        if self._timer is not None:
            logger.warning("Audit integrity service already running")
            return

        self.adapter.log("info", "[CareAgent] Audit integrity service started")
        self.run_check(phase="startup")

        self._timer = self._timer_factory(self.interval, self.run_check)
        self._timer.start()

    def stop(self) -> None:
        """Cancel the periodic check."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.adapter.log("info", "[CareAgent] Audit integrity service stopped")

    def run_check(self, phase: Optional[str] = None) -> ChainVerification:
        """Verify the chain once and report a break, if any."""
        result = self.audit.verify_chain()
        self._last_result = result

        if result.valid:
            logger.debug(f"Audit chain verified ({result.entries} entries)")
            return result

        if phase == "startup":
            message = f"[CareAgent] Audit chain integrity failure on startup: {result.error}"
        else:
            message = f"[CareAgent] Audit chain integrity failure: {result.error}"
        self.adapter.log("error", message)

        details = result.to_dict()
        if phase:
            details["phase"] = phase
        self.audit.log(
            action="audit_integrity_check",
            actor=Actor.SYSTEM,
            outcome=Outcome.ERROR,
            details=details,
        )
        return result

    @property
    def last_result(self) -> Optional[ChainVerification]:
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def as_service_config(self) -> ServiceConfig:
        """Describe this service for ``PlatformAdapter.register_background_service``."""
        return ServiceConfig(id=SERVICE_ID, start=self.start, stop=self.stop)
