"""
Kernel Configuration

Wiring settings for the CareAgent kernel. These control timers, paths and
optional services; they never change policy, which comes exclusively from
the activated CANS.md document.

Environment variables:

  CAREAGENT_WORKSPACE           workspace directory (default: cwd)
  CAREAGENT_CANARY_TIMEOUT      hook canary deadline in seconds (default: 30)
  CAREAGENT_INTEGRITY_INTERVAL  audit chain re-check interval in seconds (default: 60)
  CAREAGENT_WATCH_CANS          watch CANS.md for post-activation changes (default: false)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

CAREAGENT_DIR = ".careagent"
CANS_FILENAME = "CANS.md"
INTEGRITY_FILENAME = "cans-integrity.json"
AUDIT_FILENAME = "AUDIT.log"

DEFAULT_CANARY_TIMEOUT = 30.0  # seconds
DEFAULT_INTEGRITY_INTERVAL = 60.0  # seconds


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class KernelSettings:
    """Configuration for the activation / hardening / audit kernel."""

    workspace_path: Path = field(default_factory=Path.cwd)

    # Timers
    canary_timeout: float = DEFAULT_CANARY_TIMEOUT
    integrity_interval: float = DEFAULT_INTEGRITY_INTERVAL

    # Optional services
    watch_cans: bool = False

    @classmethod
    def from_env(cls) -> "KernelSettings":
        """Create settings from environment variables."""
        workspace = os.getenv("CAREAGENT_WORKSPACE")
        return cls(
            workspace_path=Path(workspace) if workspace else Path.cwd(),
            canary_timeout=float(
                os.getenv("CAREAGENT_CANARY_TIMEOUT", str(DEFAULT_CANARY_TIMEOUT))
            ),
            integrity_interval=float(
                os.getenv("CAREAGENT_INTEGRITY_INTERVAL", str(DEFAULT_INTEGRITY_INTERVAL))
            ),
            watch_cans=_env_flag("CAREAGENT_WATCH_CANS"),
        )


def get_state_dir(workspace_path: Union[str, Path]) -> Path:
    """Return the hidden per-workspace state directory."""
    return Path(workspace_path) / CAREAGENT_DIR


def get_cans_path(workspace_path: Union[str, Path]) -> Path:
    """Return the path of the workspace's CANS.md."""
    return Path(workspace_path) / CANS_FILENAME


def get_audit_log_path(workspace_path: Union[str, Path]) -> Path:
    """Return the path of the workspace's audit log."""
    return get_state_dir(workspace_path) / AUDIT_FILENAME


# Global settings instance
_settings: Optional[KernelSettings] = None


def get_settings() -> KernelSettings:
    """Get the global kernel settings."""
    global _settings
    if _settings is None:
        _settings = KernelSettings.from_env()
    return _settings


def set_settings(settings: Optional[KernelSettings]) -> None:
    """Set (or with None, reset) the global kernel settings."""
    global _settings
    _settings = settings
