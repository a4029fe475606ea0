"""
Layer 3: CANS Protocol Injection

Condenses the activated document into a short rules file that is added to
the agent's bootstrap context, so the agent knows its scope from the first
turn. The per-call check never blocks; it only reports whether injection
is on.
"""

from typing import List, Optional, Sequence

from ...activation.schema import CANSDocument
from ...adapters.base import BootstrapContext, ToolCallEvent
from ..types import Allowed, LayerResult

LAYER_NAME = "cans-injection"

PROTOCOL_FILENAME = "CAREAGENT_PROTOCOL.md"

# Keep the injected text small enough not to crowd the context window
MAX_PROTOCOL_CHARS = 2000

# Progressive list limits tried until the text fits
_LIST_LIMITS = (None, 20, 10, 5, 2)


def _join(items: Sequence[str], limit: Optional[int]) -> str:
    if limit is None or len(items) <= limit:
        return ", ".join(items)
    return ", ".join(items[:limit]) + f" (+{len(items) - limit} more)"


def _protocol_lines(document: CANSDocument, limit: Optional[int]) -> List[str]:
    provider = document.provider
    scope = document.scope
    autonomy = document.autonomy

    lines = ["# CareAgent Clinical Protocol", ""]
    lines.append(f"Provider: {provider.name} ({', '.join(provider.types)})")
    if provider.specialty:
        lines.append(f"Specialty: {provider.specialty}")
    if provider.subspecialty:
        lines.append(f"Subspecialty: {provider.subspecialty}")
    lines.append(f"Organization: {provider.primary_organization.name}")
    lines.append("")

    lines.append("## Scope Boundaries (HARD RULES)")
    lines.append(f"Permitted: {_join(scope.permitted_actions, limit)}")
    if scope.prohibited_actions:
        lines.append(f"PROHIBITED: {_join(scope.prohibited_actions, limit)}")
    if scope.institutional_limitations:
        lines.append(f"Institutional limitations: {_join(scope.institutional_limitations, limit)}")
    lines.append("")

    lines.append("## Autonomy Tiers")
    lines.append(
        f"Chart: {autonomy.chart.value} | Order: {autonomy.order.value} | "
        f"Charge: {autonomy.charge.value} | Perform: {autonomy.perform.value}"
    )
    lines.append(
        f"Interpret: {autonomy.interpret.value} | Educate: {autonomy.educate.value} | "
        f"Coordinate: {autonomy.coordinate.value}"
    )
    lines.append("")
    lines.append("NEVER act outside these scope boundaries. If uncertain, ASK the provider.")
    return lines


def protocol_lines(document: CANSDocument) -> List[str]:
    """
    Clinical hard rules as a list of lines, under MAX_PROTOCOL_CHARS when
    joined. Long action lists are shortened to fit.
    """
    for limit in _LIST_LIMITS:
        lines = _protocol_lines(document, limit)
        if len("\n".join(lines)) < MAX_PROTOCOL_CHARS:
            return lines
    return lines


def extract_protocol_rules(document: CANSDocument) -> str:
    """Clinical hard rules as a single Markdown string."""
    return "\n".join(protocol_lines(document))


def inject_protocol(context: BootstrapContext, document: CANSDocument) -> None:
    """Write the protocol rules into the agent's bootstrap context."""
    context.add_file(PROTOCOL_FILENAME, extract_protocol_rules(document))


def check_cans_injection(event: ToolCallEvent, document: CANSDocument) -> LayerResult:
    if not document.hardening.cans_protocol_injection:
        return Allowed(LAYER_NAME, "cans_protocol_injection disabled")
    return Allowed(LAYER_NAME, "protocol injected at bootstrap")
