"""
Audit Trail

Hash-chained, append-only audit logging for every kernel decision.
"""

from .integrity_service import AuditIntegrityService
from .models import ActionState, Actor, AuditEntry, ChainVerification, Outcome
from .pipeline import AuditPipeline
from .stats import AuditStats, read_audit_stats
from .writer import AuditWriter

__all__ = [
    "ActionState",
    "Actor",
    "AuditEntry",
    "AuditIntegrityService",
    "AuditPipeline",
    "AuditStats",
    "AuditWriter",
    "ChainVerification",
    "Outcome",
    "read_audit_stats",
]
