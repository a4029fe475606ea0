"""
CareAgent Exceptions

Custom exceptions for the activation and hardening kernel.

Runtime and security conditions (a missing or tampered CANS.md, a denied
tool call, a broken audit chain) are reported as typed results, never as
exceptions. Only wiring mistakes propagate.
"""

from pathlib import Path
from typing import Optional


class CareAgentError(Exception):
    """Base exception for CareAgent operations."""

    pass


class CansParseError(CareAgentError):
    """Failed to extract the YAML frontmatter from CANS.md content."""

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.path = path
        self.original_error = original_error
        super().__init__(message)


class EngineNotActivatedError(CareAgentError):
    """Operation attempted on a hardening engine that was never activated."""

    def __init__(self, operation: str = "check"):
        super().__init__(f"Cannot {operation}: hardening engine not activated")


class EngineAlreadyActivatedError(CareAgentError):
    """activate() was called twice on the same hardening engine."""

    def __init__(self):
        super().__init__(
            "Hardening engine is already active; create a new engine to re-activate"
        )
