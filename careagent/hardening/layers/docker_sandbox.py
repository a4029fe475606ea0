"""
Layer 4: Docker Sandbox Detection

Report-only: records whether the runtime is containerized. Three
independent signals are OR-combined; an unavailable source (no /proc on
macOS, for instance) counts as an absent signal.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ...activation.schema import CANSDocument
from ...adapters.base import ToolCallEvent
from ..types import Allowed, LayerResult

LAYER_NAME = "docker-sandbox"

DOCKERENV_PATH = Path("/.dockerenv")
CGROUP_PATH = Path("/proc/1/cgroup")
CONTAINER_ENV_VAR = "CONTAINER"

_CGROUP_PATTERN = re.compile(r"docker|containerd|lxc", re.IGNORECASE)


@dataclass
class DockerDetectionResult:
    in_container: bool
    signals: List[str] = field(default_factory=list)


def detect_docker() -> DockerDetectionResult:
    """Check the sentinel file, PID 1's cgroup and the CONTAINER env var."""
    signals: List[str] = []

    if DOCKERENV_PATH.exists():
        signals.append("/.dockerenv exists")

    try:
        if _CGROUP_PATTERN.search(CGROUP_PATH.read_text(encoding="utf-8", errors="replace")):
            signals.append("/proc/1/cgroup contains container reference")
    except OSError:
        pass  # No /proc on this platform

    if os.environ.get(CONTAINER_ENV_VAR):
        signals.append("CONTAINER env var set")

    return DockerDetectionResult(in_container=bool(signals), signals=signals)


def check_docker_sandbox(event: ToolCallEvent, document: CANSDocument) -> LayerResult:
    if not document.hardening.docker_sandbox:
        return Allowed(LAYER_NAME, "docker_sandbox disabled")

    detection = detect_docker()
    if detection.in_container:
        return Allowed(LAYER_NAME, f"sandbox active ({', '.join(detection.signals)})")

    return Allowed(LAYER_NAME, "no container detected - running outside sandbox")
