"""
Platform Adapter Interface

The boundary between CareAgent and whatever host runs the agent. Every
kernel component talks to the host exclusively through ``PlatformAdapter``;
concrete hosts are translated behind an implementation of it and the kernel
never inspects their type.

Hooks a host cannot provide degrade to a logged warning and a no-op.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional


@dataclass
class ToolCallEvent:
    """A tool invocation the agent is about to make."""

    tool_name: str
    method: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    session_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCallEvent":
        """Create from a host payload (accepts camelCase or snake_case keys)."""
        return cls(
            tool_name=data.get("toolName", data.get("tool_name", "")),
            method=data.get("method"),
            params=data.get("params") or {},
            session_key=data.get("sessionKey", data.get("session_key")),
        )


@dataclass
class ToolCallResult:
    """Verdict handed back to the host for a single tool call."""

    block: bool
    block_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"block": self.block}
        if self.block_reason is not None:
            data["blockReason"] = self.block_reason
        return data


class BootstrapContext:
    """Collects files a bootstrap handler injects into the agent's context."""

    def __init__(self):
        self.files: Dict[str, str] = {}

    def add_file(self, name: str, content: str) -> None:
        self.files[name] = content


ToolCallHandler = Callable[[ToolCallEvent], ToolCallResult]
BootstrapHandler = Callable[[BootstrapContext], None]


@dataclass
class ServiceConfig:
    """A background service the host starts and stops."""

    id: str
    start: Callable[[], None]
    stop: Optional[Callable[[], None]] = None


class PlatformAdapter(ABC):
    """
    Interface for all host platform interactions.

    Subclasses must provide ``get_workspace_path`` and ``log``. The hook and
    service registration methods default to a warning plus no-op so that a
    host without that capability still runs the kernel in degraded mode.
    """

    platform: str = "unknown"

    @abstractmethod
    def get_workspace_path(self) -> Path:
        """Return the workspace directory."""
        pass

    @abstractmethod
    def log(self, level: str, message: str, data: Any = None) -> None:
        """
        Log through the host's logging system.

        Args:
            level: One of "info", "warn", "error"
            message: Log message
            data: Optional structured payload
        """
        pass

    def on_before_tool_call(self, handler: ToolCallHandler) -> None:
        """Register a handler invoked before every tool call."""
        self.log("warn", f"before_tool_call hooks are not supported on {self.platform}")

    def on_agent_bootstrap(self, handler: BootstrapHandler) -> None:
        """Register a handler invoked during agent bootstrap."""
        self.log("warn", f"agent bootstrap hooks are not supported on {self.platform}")

    def register_background_service(self, config: ServiceConfig) -> None:
        """Register a background service with the host."""
        self.log(
            "warn",
            f"Cannot register service '{config.id}': not supported on {self.platform}",
        )
