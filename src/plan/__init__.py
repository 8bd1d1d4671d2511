"""Plan models, Loom conversion and credential handling."""

from src.plan.converter import loom_to_plan, normalize_connections
from src.plan.credentials import (
    AvailableCredential,
    CredentialGuidance,
    build_credential_guidance,
    inject_credentials,
    required_credential_types,
)
from src.plan.models import CredentialRef, Plan, Workflow, WorkflowNode

__all__ = [
    "AvailableCredential",
    "CredentialGuidance",
    "CredentialRef",
    "Plan",
    "Workflow",
    "WorkflowNode",
    "build_credential_guidance",
    "inject_credentials",
    "loom_to_plan",
    "normalize_connections",
    "required_credential_types",
]
