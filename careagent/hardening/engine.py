"""
Hardening Engine

Enforces the activated CANS document on every tool call. Layers run in a
fixed order and the first denial ends evaluation:

1. Tool policy lockdown   (blocking)
2. Exec allowlist         (blocking)
3. CANS protocol injection (report-only; the rules file is written at bootstrap)
4. Docker sandbox detection (report-only)

Every evaluated layer produces one audit entry; all entries for one tool
call share a trace ID.

Lifecycle: construct inert, ``activate()`` exactly once, then ``check()``.
Calling ``check()`` on an inactive engine is a wiring bug and raises.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..activation.schema import CANSDocument
from ..adapters.base import BootstrapContext, PlatformAdapter, ToolCallEvent, ToolCallResult
from ..audit.models import Actor, Outcome
from ..audit.pipeline import AuditPipeline
from ..config import DEFAULT_CANARY_TIMEOUT
from ..exceptions import EngineAlreadyActivatedError, EngineNotActivatedError
from ..timers import DaemonTimer, TimerFactory
from .canary import HookCanary, setup_canary
from .layers import DEFAULT_LAYERS
from .layers.cans_injection import PROTOCOL_FILENAME, inject_protocol, protocol_lines
from .types import LayerFn, LayerResult, run_layers

logger = logging.getLogger(__name__)

CHECK_ACTION = "hardening_check"


@dataclass(frozen=True)
class HardeningConfig:
    """Everything ``activate()`` needs."""

    document: CANSDocument
    adapter: PlatformAdapter
    audit: AuditPipeline


@dataclass
class _ActiveState:
    document: CANSDocument
    adapter: PlatformAdapter
    audit: AuditPipeline
    canary: HookCanary


class HardeningEngine:
    """Layered policy enforcement over tool calls."""

    def __init__(
        self,
        layers: Optional[Sequence[LayerFn]] = None,
        canary_timeout: float = DEFAULT_CANARY_TIMEOUT,
        timer_factory: TimerFactory = DaemonTimer,
    ):
        """
        Args:
            layers: Layer functions in evaluation order (default: the four
                standard layers)
            canary_timeout: Seconds before the hook canary reports a dead hook
            timer_factory: Builds the canary's deadline timer
        """
        self.layers: List[LayerFn] = list(layers) if layers is not None else list(DEFAULT_LAYERS)
        self.canary_timeout = canary_timeout
        self._timer_factory = timer_factory
        self._state: Optional[_ActiveState] = None

    @property
    def is_active(self) -> bool:
        return self._state is not None

    @property
    def canary(self) -> Optional[HookCanary]:
        return self._state.canary if self._state else None

    @property
    def document(self) -> Optional[CANSDocument]:
        return self._state.document if self._state else None

    def activate(self, config: HardeningConfig) -> None:
        """
        Bind the engine to an activated document and register host hooks.

        Registers the before_tool_call and bootstrap hooks with the adapter
        and starts the hook canary.

        Raises:
            EngineAlreadyActivatedError: If called more than once
        """
        if self._state is not None:
            raise EngineAlreadyActivatedError()

        adapter = config.adapter
        canary = setup_canary(
            adapter,
            config.audit,
            timeout=self.canary_timeout,
            timer_factory=self._timer_factory,
        )
        self._state = _ActiveState(
            document=config.document,
            adapter=adapter,
            audit=config.audit,
            canary=canary,
        )

        try:
            adapter.on_before_tool_call(self._handle_tool_call)
        except Exception as e:
            adapter.log("warn", f"[CareAgent] Failed to register before_tool_call hook: {e}")

        try:
            adapter.on_agent_bootstrap(self._handle_bootstrap)
        except Exception as e:
            adapter.log("warn", f"[CareAgent] Failed to register bootstrap hook: {e}")

        logger.info(
            f"Hardening engine active for {config.document.provider.name} "
            f"({len(self.layers)} layers)"
        )

    def check(self, event: ToolCallEvent) -> LayerResult:
        """
        Evaluate a tool call against every layer, stopping at the first denial.

        Returns:
            The denying layer's result, or the last layer's result

        Raises:
            EngineNotActivatedError: If ``activate()`` has not been called
        """
        state = self._require_active("check")
        trace_id = state.audit.create_trace_id()

        def record(result: LayerResult) -> None:
            details = {"layer": result.layer}
            if result.reason is not None:
                details["reason"] = result.reason
            if event.method is not None:
                details["method"] = event.method

            if result.allowed:
                state.audit.log(
                    action=CHECK_ACTION,
                    actor=Actor.AGENT,
                    target=event.tool_name,
                    outcome=Outcome.ALLOWED,
                    details=details,
                    trace_id=trace_id,
                )
            else:
                state.audit.log_blocked(
                    action=CHECK_ACTION,
                    target=event.tool_name,
                    blocked_reason=result.reason,
                    blocking_layer=result.layer,
                    details=details,
                    trace_id=trace_id,
                )

        result = run_layers(self.layers, event, state.document, on_result=record)
        if not result.allowed:
            logger.warning(
                f"Blocked tool call '{event.tool_name}' at layer {result.layer}: {result.reason}"
            )
        return result

    def inject_protocol(self, document: CANSDocument) -> List[str]:
        """Clinical hard rules for ``document`` as a list of lines."""
        return protocol_lines(document)

    # -------------------------------------------------------------------------
    # Host hooks
    # -------------------------------------------------------------------------

    def _handle_tool_call(self, event: ToolCallEvent) -> ToolCallResult:
        state = self._require_active("handle tool call")
        state.canary.mark_verified()

        result = self.check(event)
        if result.allowed:
            return ToolCallResult(block=False)
        return ToolCallResult(block=True, block_reason=result.reason)

    def _handle_bootstrap(self, context: BootstrapContext) -> None:
        state = self._require_active("bootstrap")
        if not state.document.hardening.cans_protocol_injection:
            return

        inject_protocol(context, state.document)
        state.audit.log(
            action="cans_injection",
            actor=Actor.SYSTEM,
            outcome=Outcome.ALLOWED,
            details={"file": PROTOCOL_FILENAME},
        )

    def _require_active(self, operation: str) -> _ActiveState:
        if self._state is None:
            raise EngineNotActivatedError(operation)
        return self._state
