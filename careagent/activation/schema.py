"""
CANS Document Schema

Structural schema for the CANS.md frontmatter (Clinical Activation and
Notification System): provider identity, scope of practice, autonomy
tiers, hardening flags and consent.

Models are frozen: once a document is activated it cannot change for the
lifetime of the engine that holds it. Unknown keys are ignored.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# -----------------------------------------------------------------------------
# Provider identity
# -----------------------------------------------------------------------------


class CredentialStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"


class Organization(_Frozen):
    name: str = Field(min_length=1)
    privileges: List[str] = Field(default_factory=list)
    primary: bool = False


class Provider(_Frozen):
    name: str = Field(min_length=1)
    npi: Optional[str] = Field(default=None, pattern=r"^[0-9]{10}$")
    types: List[str] = Field(min_length=1)
    degrees: List[str] = Field(default_factory=list)
    licenses: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    specialty: Optional[str] = None
    subspecialty: Optional[str] = None
    organizations: List[Organization] = Field(min_length=1)
    credential_status: Optional[CredentialStatus] = None

    @property
    def primary_organization(self) -> Organization:
        for org in self.organizations:
            if org.primary:
                return org
        return self.organizations[0]


# -----------------------------------------------------------------------------
# Scope of practice
# -----------------------------------------------------------------------------


class Scope(_Frozen):
    permitted_actions: List[str] = Field(min_length=1)
    prohibited_actions: List[str] = Field(default_factory=list)
    institutional_limitations: List[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Autonomy tiers
# -----------------------------------------------------------------------------


class AutonomyTier(str, Enum):
    AUTONOMOUS = "autonomous"
    SUPERVISED = "supervised"
    MANUAL = "manual"


class Autonomy(_Frozen):
    chart: AutonomyTier
    order: AutonomyTier
    charge: AutonomyTier
    perform: AutonomyTier
    interpret: AutonomyTier
    educate: AutonomyTier
    coordinate: AutonomyTier


# -----------------------------------------------------------------------------
# Hardening flags and consent
# -----------------------------------------------------------------------------


class Hardening(_Frozen):
    """Every layer is on unless the document turns it off."""

    tool_policy_lockdown: bool = True
    exec_approval: bool = True
    cans_protocol_injection: bool = True
    docker_sandbox: bool = True
    safety_guard: bool = True
    audit_trail: bool = True


class Consent(_Frozen):
    hipaa_warning_acknowledged: bool
    synthetic_data_only: bool
    audit_consent: bool
    acknowledged_at: Optional[Union[datetime, str]] = None


# -----------------------------------------------------------------------------
# Complete document
# -----------------------------------------------------------------------------


class CANSDocument(_Frozen):
    version: str
    provider: Provider
    scope: Scope
    autonomy: Autonomy
    hardening: Hardening = Field(default_factory=Hardening)
    consent: Consent
    clinical_voice: Optional[Dict[str, Any]] = None
    skills: Optional[Dict[str, Any]] = None
    neuron: Optional[Dict[str, Any]] = None
    cross_installation: Optional[Dict[str, Any]] = None


def _error_path(loc: Tuple[Any, ...]) -> str:
    return "/" + "/".join(str(part) for part in loc)


def validate_document(
    data: Dict[str, Any],
) -> Tuple[Optional[CANSDocument], List[Dict[str, str]]]:
    """
    Validate parsed frontmatter against the CANS schema.

    Returns:
        (document, []) on success, (None, errors) on failure, where each
        error is ``{"path": "/provider/name", "message": "..."}``
    """
    try:
        return CANSDocument.model_validate(data), []
    except ValidationError as e:
        errors = [
            {"path": _error_path(err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return None, errors
