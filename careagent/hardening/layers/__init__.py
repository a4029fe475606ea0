"""
Hardening layers, in evaluation order.
"""

from .cans_injection import check_cans_injection, extract_protocol_rules, inject_protocol, protocol_lines
from .docker_sandbox import DockerDetectionResult, check_docker_sandbox, detect_docker
from .exec_allowlist import check_exec_allowlist
from .tool_policy import check_tool_policy

DEFAULT_LAYERS = (
    check_tool_policy,
    check_exec_allowlist,
    check_cans_injection,
    check_docker_sandbox,
)

__all__ = [
    "DEFAULT_LAYERS",
    "DockerDetectionResult",
    "check_cans_injection",
    "check_docker_sandbox",
    "check_exec_allowlist",
    "check_tool_policy",
    "detect_docker",
    "extract_protocol_rules",
    "inject_protocol",
    "protocol_lines",
]
