"""
Pytest Configuration and Shared Fixtures

Centralized fixtures for testing the CareAgent kernel: temporary
workspaces, a valid CANS document, a recording adapter and a manually
driven timer.
"""

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest
import yaml

from careagent.activation.schema import CANSDocument
from careagent.adapters.base import PlatformAdapter
from careagent.audit.pipeline import AuditPipeline
from careagent.config import set_settings


# =============================================================================
# Environment Setup
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment():
    """Ensure clean environment and settings for each test."""
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    set_settings(None)


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workspace(temp_dir: Path) -> Path:
    """Provide an empty workspace directory."""
    path = temp_dir / "workspace"
    path.mkdir()
    return path


# =============================================================================
# CANS Document Fixtures
# =============================================================================


VALID_CANS_DATA: Dict[str, Any] = {
    "version": "2.0",
    "provider": {
        "name": "Dr. Test Provider",
        "npi": "1234567890",
        "types": ["Physician"],
        "degrees": ["MD"],
        "licenses": ["MD-TX-A12345"],
        "certifications": ["ABNS Board Certified"],
        "specialty": "Neurosurgery",
        "subspecialty": "Spine",
        "organizations": [
            {
                "name": "University Medical Center",
                "privileges": ["neurosurgical procedures", "spine surgery"],
                "primary": True,
            },
        ],
        "credential_status": "active",
    },
    "scope": {
        "permitted_actions": ["chart_operative_note", "chart_progress_note", "chart_h_and_p"],
        "prohibited_actions": ["prescribe_controlled_substances"],
        "institutional_limitations": ["no_pediatric_cases"],
    },
    "autonomy": {
        "chart": "autonomous",
        "order": "supervised",
        "charge": "supervised",
        "perform": "manual",
        "interpret": "manual",
        "educate": "manual",
        "coordinate": "manual",
    },
    "hardening": {
        "tool_policy_lockdown": True,
        "exec_approval": True,
        "cans_protocol_injection": True,
        "docker_sandbox": True,
        "safety_guard": True,
        "audit_trail": True,
    },
    "consent": {
        "hipaa_warning_acknowledged": True,
        "synthetic_data_only": True,
        "audit_consent": True,
        "acknowledged_at": "2026-02-21T00:00:00.000Z",
    },
}


def merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge overrides into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


def render_cans(data: Dict[str, Any], body: str = "# Clinical Activation\n\nProvider notes.\n") -> str:
    """Render CANS.md content with YAML frontmatter."""
    return f"---\n{yaml.safe_dump(data, sort_keys=False)}---\n\n{body}"


@pytest.fixture
def cans_data() -> Dict[str, Any]:
    return copy.deepcopy(VALID_CANS_DATA)


@pytest.fixture
def make_document() -> Callable[..., CANSDocument]:
    """Build a validated CANSDocument with optional deep overrides."""

    def _make(**overrides: Any) -> CANSDocument:
        return CANSDocument.model_validate(merge(VALID_CANS_DATA, overrides))

    return _make


@pytest.fixture
def document(make_document) -> CANSDocument:
    return make_document()


@pytest.fixture
def write_cans(workspace: Path) -> Callable[..., Path]:
    """Write CANS.md into the workspace; accepts a dict or raw text."""

    def _write(content: Any = None) -> Path:
        if content is None:
            content = VALID_CANS_DATA
        if isinstance(content, dict):
            content = render_cans(content)
        path = workspace / "CANS.md"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# =============================================================================
# Adapter, Audit and Timer Fixtures
# =============================================================================


class RecordingAdapter(PlatformAdapter):
    """PlatformAdapter that records everything it is asked to do."""

    platform = "test"

    def __init__(self, workspace_path: Path):
        self.workspace_path = workspace_path
        self.messages: List[Dict[str, Any]] = []
        self.tool_call_handlers: List[Callable] = []
        self.bootstrap_handlers: List[Callable] = []
        self.services: List[Any] = []

    def get_workspace_path(self) -> Path:
        return self.workspace_path

    def log(self, level: str, message: str, data: Any = None) -> None:
        self.messages.append({"level": level, "message": message, "data": data})

    def on_before_tool_call(self, handler) -> None:
        self.tool_call_handlers.append(handler)

    def on_agent_bootstrap(self, handler) -> None:
        self.bootstrap_handlers.append(handler)

    def register_background_service(self, config) -> None:
        self.services.append(config)

    def messages_at(self, level: str) -> List[str]:
        return [m["message"] for m in self.messages if m["level"] == level]


@pytest.fixture
def adapter(workspace: Path) -> RecordingAdapter:
    return RecordingAdapter(workspace)


@pytest.fixture
def audit(workspace: Path) -> AuditPipeline:
    return AuditPipeline(workspace, session_id="test-session")


class FakeTimer:
    """Timer that only fires when the test says so."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class FakeClock:
    """timer_factory that keeps every timer it creates."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> Optional[FakeTimer]:
        return self.timers[-1] if self.timers else None

    def advance(self, seconds: float) -> None:
        """Fire every live timer whose interval has elapsed."""
        for timer in list(self.timers):
            if timer.interval <= seconds:
                timer.fire()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def read_entries(audit: AuditPipeline) -> List[Dict[str, Any]]:
    """Parse every line of the pipeline's log file."""
    if not audit.log_path.exists():
        return []
    return [
        json.loads(line)
        for line in audit.log_path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]
