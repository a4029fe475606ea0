"""
Host platform adapters.
"""

from .base import (
    BootstrapContext,
    BootstrapHandler,
    PlatformAdapter,
    ServiceConfig,
    ToolCallEvent,
    ToolCallHandler,
    ToolCallResult,
)
from .standalone import StandaloneAdapter

__all__ = [
    "BootstrapContext",
    "BootstrapHandler",
    "PlatformAdapter",
    "ServiceConfig",
    "StandaloneAdapter",
    "ToolCallEvent",
    "ToolCallHandler",
    "ToolCallResult",
]
