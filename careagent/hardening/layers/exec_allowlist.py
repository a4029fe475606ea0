"""
Layer 2: Exec Allowlist

Restricts which binaries an exec-class tool call (``Bash`` / ``exec``) may
start. Only the first whitespace-delimited token of the command is
checked, against a conservative set of read-only utilities plus git, each
accepted bare or under /bin or /usr/bin.
"""

from typing import FrozenSet

from ...activation.schema import CANSDocument
from ...adapters.base import ToolCallEvent
from ..types import Allowed, Denied, LayerResult

LAYER_NAME = "exec-allowlist"

ALLOWED_BINARIES = (
    "cat", "ls", "head", "tail", "wc", "git", "grep", "find", "echo", "sort", "uniq", "diff",
)

BASE_ALLOWLIST: FrozenSet[str] = frozenset(
    list(ALLOWED_BINARIES)
    + [f"/bin/{name}" for name in ALLOWED_BINARIES]
    + [f"/usr/bin/{name}" for name in ALLOWED_BINARIES]
)

EXEC_TOOL_NAMES = frozenset({"Bash", "exec"})


def check_exec_allowlist(event: ToolCallEvent, document: CANSDocument) -> LayerResult:
    if event.tool_name not in EXEC_TOOL_NAMES:
        return Allowed(LAYER_NAME, "not an exec call")

    if not document.hardening.exec_approval:
        return Allowed(LAYER_NAME, "exec_approval disabled")

    command = (event.params or {}).get("command")
    command = command.strip() if isinstance(command, str) else ""
    if not command:
        return Denied(LAYER_NAME, "empty exec command")

    first_token = command.split()[0]
    if first_token in BASE_ALLOWLIST:
        return Allowed(LAYER_NAME)

    return Denied(LAYER_NAME, f"Binary '{first_token}' is not in the exec allowlist")
