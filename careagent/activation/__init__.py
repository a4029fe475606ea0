"""
Activation

CANS.md parsing, schema validation, integrity checking and the gate that
combines them.
"""

from .gate import ActivationGate, ActivationResult, AuditCallback
from .integrity import (
    IntegrityResult,
    compute_hash,
    get_integrity_store_path,
    update_known_good_hash,
    verify_integrity,
)
from .parser import ParsedFrontmatter, parse_frontmatter
from .schema import (
    Autonomy,
    AutonomyTier,
    CANSDocument,
    Consent,
    Hardening,
    Organization,
    Provider,
    Scope,
    validate_document,
)
from .watcher import CansWatcher

__all__ = [
    "ActivationGate",
    "ActivationResult",
    "AuditCallback",
    "Autonomy",
    "AutonomyTier",
    "CANSDocument",
    "CansWatcher",
    "Consent",
    "Hardening",
    "IntegrityResult",
    "Organization",
    "ParsedFrontmatter",
    "Provider",
    "Scope",
    "compute_hash",
    "get_integrity_store_path",
    "parse_frontmatter",
    "update_known_good_hash",
    "validate_document",
    "verify_integrity",
]
