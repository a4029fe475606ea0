"""
Standalone entry point.

Wires the kernel together without a host plugin system (or with any
``PlatformAdapter`` the caller supplies):

    adapter -> audit pipeline -> activation gate -> hardening engine
            -> audit integrity service -> (optional) CANS.md watcher

The audit pipeline starts even when activation fails, so a rejected
CANS.md is still on record.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .activation.gate import ActivationGate, ActivationResult
from .activation.watcher import CansWatcher
from .adapters.base import PlatformAdapter
from .adapters.standalone import StandaloneAdapter
from .audit.integrity_service import AuditIntegrityService
from .audit.models import Actor, Outcome
from .audit.pipeline import AuditPipeline
from .config import KernelSettings, get_settings
from .hardening.engine import HardeningConfig, HardeningEngine

logger = logging.getLogger(__name__)


@dataclass
class ActivateResult:
    adapter: PlatformAdapter
    audit: AuditPipeline
    activation: ActivationResult
    engine: Optional[HardeningEngine] = None
    integrity_service: Optional[AuditIntegrityService] = None
    watcher: Optional[CansWatcher] = None


def activate(
    workspace_path: Optional[Union[str, Path]] = None,
    adapter: Optional[PlatformAdapter] = None,
    settings: Optional[KernelSettings] = None,
) -> ActivateResult:
    """
    Activate CareAgent for a workspace.

    Args:
        workspace_path: Workspace directory (default: the adapter's, then settings)
        adapter: Host adapter (default: StandaloneAdapter)
        settings: Kernel settings (default: ``get_settings()``)

    Returns:
        ActivateResult; ``engine`` is None when the gate rejected CANS.md
    """
    settings = settings or get_settings()
    if adapter is None:
        adapter = StandaloneAdapter(workspace_path or settings.workspace_path)
    resolved_path = Path(workspace_path) if workspace_path else adapter.get_workspace_path()

    audit = AuditPipeline(resolved_path)

    def gate_audit(record: Dict[str, Any]) -> None:
        audit.log(
            action=record["action"],
            actor=Actor.SYSTEM,
            outcome=record.get("outcome", Outcome.ERROR),
            details=record.get("details"),
        )

    activation = ActivationGate(resolved_path, gate_audit).check()

    if not activation.active or activation.document is None:
        reason = activation.reason or "No valid CANS.md"
        audit.log(
            action="activation_check",
            actor=Actor.SYSTEM,
            outcome=Outcome.INACTIVE,
            details={"reason": reason},
        )
        adapter.log("info", f"[CareAgent] Clinical mode inactive: {reason}")
        return ActivateResult(adapter=adapter, audit=audit, activation=activation)

    document = activation.document
    audit.log(
        action="activation_check",
        actor=Actor.SYSTEM,
        outcome=Outcome.ACTIVE,
        details={
            "provider": document.provider.name,
            "specialty": document.provider.specialty,
            "organization": document.provider.primary_organization.name,
            "autonomy": document.autonomy.model_dump(mode="json"),
            "first_load": activation.is_first_load,
        },
    )
    adapter.log(
        "info",
        f"[CareAgent] Clinical mode ACTIVE for {document.provider.name} "
        f"({document.provider.specialty or 'no specialty'})",
    )

    engine = HardeningEngine(canary_timeout=settings.canary_timeout)
    engine.activate(HardeningConfig(document=document, adapter=adapter, audit=audit))

    integrity_service = AuditIntegrityService(
        audit, adapter, interval=settings.integrity_interval
    )
    try:
        adapter.register_background_service(integrity_service.as_service_config())
    except Exception as e:
        adapter.log("warn", f"[CareAgent] Failed to register audit integrity service: {e}")

    watcher = None
    if settings.watch_cans and activation.content_hash:
        watcher = CansWatcher(resolved_path, activation.content_hash, audit, adapter)
        watcher.start()

    return ActivateResult(
        adapter=adapter,
        audit=audit,
        activation=activation,
        engine=engine,
        integrity_service=integrity_service,
        watcher=watcher,
    )
