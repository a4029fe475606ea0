"""
Activation Gate

Decides whether clinical mode may run at all. CANS.md is checked in a
fixed, fail-fast order:

1. Presence     - no file, nothing to do (not audited)
2. Parse        - YAML frontmatter extraction
3. Validation   - structural schema check, all violations collected
4. Integrity    - SHA-256 against the stored known-good hash (TOFU)

Only a document that passes all four yields an active result. Failures
become an inactive result with a readable reason and, from step 2 on, an
audit entry; the gate never raises for a bad document.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..config import get_cans_path
from ..exceptions import CansParseError
from .integrity import compute_hash, verify_integrity
from .parser import parse_frontmatter
from .schema import CANSDocument, validate_document

logger = logging.getLogger(__name__)

# Receives {"action", "actor", "outcome", "details"} for each gate failure
AuditCallback = Callable[[Dict[str, Any]], None]


@dataclass
class ActivationResult:
    """Outcome of one gate check. Not persisted; re-run the gate to re-check."""

    active: bool
    document: Optional[CANSDocument] = None
    reason: Optional[str] = None
    errors: List[Dict[str, str]] = field(default_factory=list)
    is_first_load: bool = False
    content_hash: Optional[str] = None


class ActivationGate:
    """Validates and integrity-checks a workspace's CANS.md."""

    def __init__(self, workspace_path: Union[str, Path], audit_log: AuditCallback):
        """
        Args:
            workspace_path: Workspace directory containing CANS.md
            audit_log: Called with an audit record for each failed check
        """
        self.workspace_path = Path(workspace_path)
        self._audit_log = audit_log

    def check(self) -> ActivationResult:
        """Run the four activation checks."""
        cans_path = get_cans_path(self.workspace_path)

        # Step 1: Presence
        if not cans_path.exists():
            return ActivationResult(active=False, reason="CANS.md not found in workspace")

        # Step 2: Parse
        try:
            raw = cans_path.read_bytes()
            parsed = parse_frontmatter(raw.decode("utf-8"))
        except (CansParseError, OSError, UnicodeDecodeError) as e:
            reason = str(e) or "Failed to parse CANS.md frontmatter"
            self._record("cans_parse_error", {"reason": reason})
            return ActivationResult(active=False, reason=reason)

        # Step 3: Schema validation
        document, errors = validate_document(parsed.frontmatter)
        if document is None:
            formatted = "\n".join(f"  {e['path']}: {e['message']}" for e in errors)
            self._record("cans_validation_error", {"errors": errors})
            return ActivationResult(
                active=False,
                reason=f"CANS.md validation failed:\n{formatted}",
                errors=errors,
            )

        # Step 4: Integrity
        integrity = verify_integrity(self.workspace_path, raw)
        if not integrity.valid:
            reason = integrity.reason or "CANS.md integrity check failed"
            self._record("cans_integrity_failure", {"reason": reason})
            return ActivationResult(active=False, reason=reason)

        logger.info(f"CANS.md accepted for {document.provider.name}")
        return ActivationResult(
            active=True,
            document=document,
            is_first_load=integrity.is_first_load,
            content_hash=compute_hash(raw),
        )

    def _record(self, action: str, details: Dict[str, Any]) -> None:
        logger.warning(f"Activation check failed ({action}): {details}")
        self._audit_log({
            "action": action,
            "actor": "system",
            "outcome": "error",
            "details": details,
        })
