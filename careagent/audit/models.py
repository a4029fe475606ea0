"""
Audit Entry Models

Every entry in the audit log records who did what, when, and what
happened. ``prev_hash`` chains each entry to the SHA-256 of the previous
serialized line; the genesis entry carries ``None``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

SCHEMA_VERSION = "1"


class ActionState(str, Enum):
    """Lifecycle of a clinical action."""

    AI_PROPOSED = "ai-proposed"
    PROVIDER_APPROVED = "provider-approved"
    PROVIDER_MODIFIED = "provider-modified"
    PROVIDER_REJECTED = "provider-rejected"
    SYSTEM_BLOCKED = "system-blocked"


class Actor(str, Enum):
    """Who performed the action."""

    AGENT = "agent"
    PROVIDER = "provider"
    SYSTEM = "system"


class Outcome(str, Enum):
    """What happened."""

    ALLOWED = "allowed"
    DENIED = "denied"
    ESCALATED = "escalated"
    ERROR = "error"
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class AuditEntry:
    """A single immutable audit log entry."""

    timestamp: str
    session_id: str
    trace_id: str
    action: str
    actor: Actor
    outcome: Outcome
    action_state: Optional[ActionState] = None
    target: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    blocked_reason: Optional[str] = None
    blocking_layer: Optional[str] = None
    prev_hash: Optional[str] = None
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the on-disk mapping.

        Optional fields that are unset are omitted rather than written as
        null; ``prev_hash`` is always present.
        """
        data: Dict[str, Any] = {
            "schema_version": self.schema_version,
            "timestamp": self.timestamp,
            "session_id": self.session_id,
            "trace_id": self.trace_id,
            "action": self.action,
            "actor": self.actor.value,
            "outcome": self.outcome.value,
        }
        if self.action_state is not None:
            data["action_state"] = self.action_state.value
        if self.target is not None:
            data["target"] = self.target
        if self.details is not None:
            data["details"] = self.details
        if self.blocked_reason is not None:
            data["blocked_reason"] = self.blocked_reason
        if self.blocking_layer is not None:
            data["blocking_layer"] = self.blocking_layer
        data["prev_hash"] = self.prev_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEntry":
        """Create from a parsed log line."""
        action_state = data.get("action_state")
        return cls(
            schema_version=data.get("schema_version", SCHEMA_VERSION),
            timestamp=data["timestamp"],
            session_id=data["session_id"],
            trace_id=data["trace_id"],
            action=data["action"],
            actor=Actor(data["actor"]),
            outcome=Outcome(data["outcome"]),
            action_state=ActionState(action_state) if action_state else None,
            target=data.get("target"),
            details=data.get("details"),
            blocked_reason=data.get("blocked_reason"),
            blocking_layer=data.get("blocking_layer"),
            prev_hash=data.get("prev_hash"),
        )


@dataclass(frozen=True)
class ChainVerification:
    """Result of replaying the audit hash chain."""

    valid: bool
    entries: int
    broken_at: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"valid": self.valid, "entries": self.entries}
        if self.broken_at is not None:
            data["broken_at"] = self.broken_at
        if self.error is not None:
            data["error"] = self.error
        return data
