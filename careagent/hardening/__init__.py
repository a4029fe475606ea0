"""
Hardening

Layered policy enforcement on every tool call, plus the hook canary.
"""

from .canary import HookCanary, setup_canary
from .engine import HardeningConfig, HardeningEngine
from .layers import (
    DEFAULT_LAYERS,
    check_cans_injection,
    check_docker_sandbox,
    check_exec_allowlist,
    check_tool_policy,
    detect_docker,
    extract_protocol_rules,
    inject_protocol,
)
from .types import Allowed, Denied, LayerFn, LayerResult, run_layers

__all__ = [
    "Allowed",
    "DEFAULT_LAYERS",
    "Denied",
    "HardeningConfig",
    "HardeningEngine",
    "HookCanary",
    "LayerFn",
    "LayerResult",
    "check_cans_injection",
    "check_docker_sandbox",
    "check_exec_allowlist",
    "check_tool_policy",
    "detect_docker",
    "extract_protocol_rules",
    "inject_protocol",
    "run_layers",
    "setup_canary",
]
