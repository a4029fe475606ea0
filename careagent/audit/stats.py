"""
Audit log statistics for status reporting.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config import get_audit_log_path
from .writer import AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class AuditStats:
    total_entries: int
    chain_valid: bool
    chain_error: Optional[str] = None
    last_timestamp: Optional[str] = None


def read_audit_stats(workspace_path: Union[str, Path]) -> AuditStats:
    """
    Summarize a workspace's audit log without writing to it.

    Args:
        workspace_path: Workspace directory

    Returns:
        AuditStats (an absent log is an empty, valid chain)
    """
    log_path = get_audit_log_path(workspace_path)
    if not log_path.exists():
        return AuditStats(total_entries=0, chain_valid=True)

    try:
        lines = [l for l in log_path.read_text(encoding="utf-8").split("\n") if l.strip()]
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read audit log: {e}")
        return AuditStats(total_entries=0, chain_valid=False, chain_error=str(e))

    if not lines:
        return AuditStats(total_entries=0, chain_valid=True)

    last_timestamp = None
    try:
        parsed = json.loads(lines[-1])
        if isinstance(parsed, dict) and isinstance(parsed.get("timestamp"), str):
            last_timestamp = parsed["timestamp"]
    except json.JSONDecodeError:
        pass  # Reported through chain verification below

    verification = AuditWriter(log_path).verify_chain()
    return AuditStats(
        total_entries=len(lines),
        chain_valid=verification.valid,
        chain_error=verification.error,
        last_timestamp=last_timestamp,
    )
