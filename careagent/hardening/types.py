"""
Hardening layer results and the short-circuit pipeline.

Each layer is a pure function ``(event, document) -> LayerResult``. A
result is either ``Allowed`` (optional reason) or ``Denied`` (reason
required). ``run_layers`` evaluates layers in order and stops at the first
denial.
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Sequence

from ..activation.schema import CANSDocument
from ..adapters.base import ToolCallEvent


@dataclass(frozen=True)
class LayerResult:
    """Verdict of one hardening layer for one tool call."""

    layer: str
    reason: Optional[str] = None

    allowed: ClassVar[bool]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"layer": self.layer, "allowed": self.allowed}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class Allowed(LayerResult):
    allowed: ClassVar[bool] = True


@dataclass(frozen=True)
class Denied(LayerResult):
    allowed: ClassVar[bool] = False

    def __post_init__(self):
        if not self.reason:
            raise ValueError(f"Denied result from layer '{self.layer}' needs a reason")


LayerFn = Callable[[ToolCallEvent, CANSDocument], LayerResult]


def run_layers(
    layers: Sequence[LayerFn],
    event: ToolCallEvent,
    document: CANSDocument,
    on_result: Optional[Callable[[LayerResult], None]] = None,
) -> LayerResult:
    """
    Evaluate ``layers`` in order, short-circuiting on the first denial.

    Args:
        layers: Layer functions, in evaluation order
        event: The tool call under evaluation
        document: The activated CANS document
        on_result: Called once for every layer actually evaluated

    Returns:
        The denying layer's result, or the last layer's result if all allow
    """
    if not layers:
        raise ValueError("run_layers needs at least one layer")

    result: LayerResult = Allowed(layer="none")
    for layer in layers:
        result = layer(event, document)
        if on_result is not None:
            on_result(result)
        if not result.allowed:
            return result
    return result
