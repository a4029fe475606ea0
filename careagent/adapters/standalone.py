"""
Standalone Adapter

Runs CareAgent without a host plugin system: as a library, from scripts, or
under test. Logging goes through the standard ``logging`` module. Registered
hooks and services are kept so the caller can drive them directly.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .base import (
    BootstrapContext,
    BootstrapHandler,
    PlatformAdapter,
    ServiceConfig,
    ToolCallEvent,
    ToolCallHandler,
    ToolCallResult,
)

logger = logging.getLogger("careagent.adapter")

TAG = "[CareAgent]"

_LEVELS = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class StandaloneAdapter(PlatformAdapter):
    """PlatformAdapter for environments with no host platform."""

    platform = "standalone"

    def __init__(self, workspace_path: Optional[Union[str, Path]] = None):
        self._workspace_path = Path(workspace_path) if workspace_path else Path.cwd()
        self._tool_call_handlers: List[ToolCallHandler] = []
        self._bootstrap_handlers: List[BootstrapHandler] = []
        self._services: Dict[str, ServiceConfig] = {}

    def get_workspace_path(self) -> Path:
        return self._workspace_path

    def log(self, level: str, message: str, data: Any = None) -> None:
        log_level = _LEVELS.get(level, logging.INFO)
        if data is not None:
            logger.log(log_level, f"{TAG} {message} {data!r}")
        else:
            logger.log(log_level, f"{TAG} {message}")

    def on_before_tool_call(self, handler: ToolCallHandler) -> None:
        self._tool_call_handlers.append(handler)

    def on_agent_bootstrap(self, handler: BootstrapHandler) -> None:
        self._bootstrap_handlers.append(handler)

    def register_background_service(self, config: ServiceConfig) -> None:
        if config.id in self._services:
            self.log("warn", f"Service '{config.id}' already registered, replacing")
        self._services[config.id] = config

    # -------------------------------------------------------------------------
    # Driving registered hooks
    # -------------------------------------------------------------------------

    def dispatch_tool_call(self, event: ToolCallEvent) -> ToolCallResult:
        """
        Run every before_tool_call handler for ``event``.

        The first handler that blocks decides the result; later handlers
        are not invoked.
        """
        for handler in self._tool_call_handlers:
            result = handler(event)
            if result.block:
                return result
        return ToolCallResult(block=False)

    def run_bootstrap(self) -> Dict[str, str]:
        """Run bootstrap handlers and return the files they injected."""
        context = BootstrapContext()
        for handler in self._bootstrap_handlers:
            handler(context)
        return dict(context.files)

    def start_services(self) -> None:
        for service in self._services.values():
            service.start()

    def stop_services(self) -> None:
        for service in self._services.values():
            if service.stop:
                service.stop()

    @property
    def services(self) -> Dict[str, ServiceConfig]:
        return dict(self._services)
