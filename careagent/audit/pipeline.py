"""
Audit Pipeline

High-level audit API over ``AuditWriter``:
- One session ID for the lifetime of the pipeline
- Trace IDs for correlating groups of entries
- Defaults for the common cases (``log_blocked``)
- Chain verification pass-through

All entries go to ``<workspace>/.careagent/AUDIT.log``.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config import get_audit_log_path
from .models import ActionState, Actor, AuditEntry, ChainVerification, Outcome
from .writer import AuditWriter

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class AuditPipeline:
    """Session- and trace-scoped audit logging for one workspace."""

    def __init__(self, workspace_path: Union[str, Path], session_id: Optional[str] = None):
        """
        Args:
            workspace_path: Workspace whose hidden directory holds the log
            session_id: Fixed session ID; generated when omitted
        """
        log_path = get_audit_log_path(workspace_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        self._writer = AuditWriter(log_path)
        self._session_id = session_id or str(uuid.uuid4())

    def log(
        self,
        action: str,
        outcome: Union[Outcome, str],
        actor: Union[Actor, str] = Actor.SYSTEM,
        target: Optional[str] = None,
        action_state: Optional[Union[ActionState, str]] = None,
        details: Optional[Dict[str, Any]] = None,
        blocked_reason: Optional[str] = None,
        blocking_layer: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AuditEntry:
        """
        Write one audit entry.

        Schema version, timestamp and session ID are filled in; a fresh
        trace ID is minted unless one is given. Unset optional fields are
        left out of the written line.

        Raises:
            ValueError: If actor, outcome or action_state is not a known value
        """
        entry = AuditEntry(
            timestamp=utc_timestamp(),
            session_id=self._session_id,
            trace_id=trace_id or self.create_trace_id(),
            action=action,
            actor=Actor(actor),
            outcome=Outcome(outcome),
            action_state=ActionState(action_state) if action_state is not None else None,
            target=target,
            details=details,
            blocked_reason=blocked_reason,
            blocking_layer=blocking_layer,
        )
        return self._writer.append(entry)

    def log_blocked(
        self,
        action: str,
        blocked_reason: str,
        blocking_layer: str,
        target: Optional[str] = None,
        action_state: Union[ActionState, str] = ActionState.SYSTEM_BLOCKED,
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ) -> AuditEntry:
        """Log a blocked action (actor=system, outcome=denied)."""
        return self.log(
            action=action,
            outcome=Outcome.DENIED,
            actor=Actor.SYSTEM,
            target=target,
            action_state=action_state,
            details=details,
            blocked_reason=blocked_reason,
            blocking_layer=blocking_layer,
            trace_id=trace_id,
        )

    def verify_chain(self) -> ChainVerification:
        """Verify the integrity of the audit hash chain."""
        return self._writer.verify_chain()

    def get_session_id(self) -> str:
        return self._session_id

    def create_trace_id(self) -> str:
        """Create a new trace ID for correlating related entries."""
        return str(uuid.uuid4())

    @property
    def log_path(self) -> Path:
        return self._writer.log_path
