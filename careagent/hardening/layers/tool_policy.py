"""
Layer 1: Tool Policy Lockdown

Default-deny allowlist over ``scope.permitted_actions``, with
``scope.prohibited_actions`` taking precedence over any permission.
"""

from ...activation.schema import CANSDocument
from ...adapters.base import ToolCallEvent
from ..types import Allowed, Denied, LayerResult

LAYER_NAME = "tool-policy"


def check_tool_policy(event: ToolCallEvent, document: CANSDocument) -> LayerResult:
    if not document.hardening.tool_policy_lockdown:
        return Allowed(LAYER_NAME, "tool_policy_lockdown disabled")

    scope = document.scope
    if event.tool_name in scope.prohibited_actions:
        return Denied(LAYER_NAME, f"Tool '{event.tool_name}' is in prohibited_actions")

    if event.tool_name not in scope.permitted_actions:
        return Denied(LAYER_NAME, f"Tool '{event.tool_name}' is not in permitted_actions")

    return Allowed(LAYER_NAME)
