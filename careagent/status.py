"""
Status report.

Read-only summary of a workspace: whether CANS.md would activate, who it
describes, which hardening layers are on, whether the stored hash still
matches, and the state of the audit chain. Building a status never writes
to the workspace.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .activation.integrity import compute_hash, get_integrity_store_path
from .activation.parser import parse_frontmatter
from .activation.schema import CANSDocument, validate_document
from .audit.stats import AuditStats, read_audit_stats
from .config import get_cans_path
from .exceptions import CansParseError
from .hardening.layers.cans_injection import protocol_lines

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceStatus:
    workspace_path: Path
    document_valid: bool
    integrity: str
    audit: AuditStats
    document: Optional[CANSDocument] = None
    reason: Optional[str] = None
    protocol: List[str] = field(default_factory=list)

    @property
    def would_activate(self) -> bool:
        return self.document_valid and self.integrity in ("Verified", "No hash stored")


def check_integrity_state(workspace_path: Union[str, Path]) -> str:
    """Compare CANS.md with the stored hash without storing anything."""
    cans_path = get_cans_path(workspace_path)
    store_path = get_integrity_store_path(workspace_path)

    if not cans_path.exists():
        return "No CANS.md"
    if not store_path.exists():
        return "No hash stored"

    try:
        current_hash = compute_hash(cans_path.read_bytes())
        stored = json.loads(store_path.read_text(encoding="utf-8"))
        return "Verified" if stored.get("hash") == current_hash else "MISMATCH"
    except (OSError, ValueError, AttributeError) as e:
        logger.error(f"Failed to read integrity store: {e}")
        return "Error reading integrity store"


def build_status(workspace_path: Union[str, Path]) -> WorkspaceStatus:
    workspace_path = Path(workspace_path)
    cans_path = get_cans_path(workspace_path)
    integrity = check_integrity_state(workspace_path)
    audit = read_audit_stats(workspace_path)

    if not cans_path.exists():
        return WorkspaceStatus(
            workspace_path=workspace_path,
            document_valid=False,
            integrity=integrity,
            audit=audit,
            reason="CANS.md not found in workspace",
        )

    try:
        parsed = parse_frontmatter(cans_path.read_text(encoding="utf-8"))
    except (CansParseError, OSError, UnicodeDecodeError) as e:
        return WorkspaceStatus(
            workspace_path=workspace_path,
            document_valid=False,
            integrity=integrity,
            audit=audit,
            reason=str(e),
        )

    document, errors = validate_document(parsed.frontmatter)
    if document is None:
        return WorkspaceStatus(
            workspace_path=workspace_path,
            document_valid=False,
            integrity=integrity,
            audit=audit,
            reason=f"{len(errors)} validation error(s), first: {errors[0]['path']}: {errors[0]['message']}",
        )

    return WorkspaceStatus(
        workspace_path=workspace_path,
        document_valid=True,
        integrity=integrity,
        audit=audit,
        document=document,
        protocol=protocol_lines(document),
    )


def format_status(status: WorkspaceStatus) -> str:
    lines = ["CareAgent Status", "================", ""]
    lines.append(f"Workspace:   {status.workspace_path}")
    lines.append(f"Activation:  {'ACTIVE' if status.would_activate else 'INACTIVE'}")
    if status.reason:
        lines.append(f"Reason:      {status.reason}")
    lines.append(f"Integrity:   {status.integrity}")
    lines.append("")

    if status.document is not None:
        provider = status.document.provider
        lines.append(f"Provider:    {provider.name}")
        lines.append(f"Specialty:   {provider.specialty or '-'}")
        lines.append(f"Organization: {provider.primary_organization.name}")
        lines.append("")
        lines.append("Hardening layers:")
        for flag, enabled in status.document.hardening.model_dump().items():
            lines.append(f"  {flag:<24} {'on' if enabled else 'off'}")
        lines.append("")

    audit = status.audit
    lines.append("Audit log:")
    lines.append(f"  entries:        {audit.total_entries}")
    lines.append(f"  chain:          {'valid' if audit.chain_valid else 'BROKEN'}")
    if audit.chain_error:
        lines.append(f"  chain error:    {audit.chain_error}")
    lines.append(f"  last entry:     {audit.last_timestamp or '-'}")

    if status.protocol:
        lines.append("")
        lines.append("Injected protocol:")
        lines.extend(f"  {line}" if line else "" for line in status.protocol)

    return "\n".join(lines)
