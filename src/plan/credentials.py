"""Credential matching, injection and setup guidance.

Missing credentials never block workflow creation; they are reported as
guidance with links to the n8n credential setup pages.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from src.validation.node_types import NodeTypeRegistry

logger = logging.getLogger(__name__)


class AvailableCredential(BaseModel):
    """A credential that already exists in n8n."""

    id: str
    name: str
    type: str


class MissingCredential(BaseModel):
    name: str
    type: str


class SetupLink(BaseModel):
    name: str
    url: str


class CredentialGuidance(BaseModel):
    """Setup guidance for credential types the workflow needs but n8n lacks."""

    model_config = ConfigDict(populate_by_name=True)

    missing: list[MissingCredential] = Field(default_factory=list)
    setup_links: list[SetupLink] = Field(default_factory=list, alias="setupLinks")

    def to_state(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def credential_setup_url(base_url: str, credential_type: str) -> str:
    return f"{base_url.rstrip('/')}/credentials/new/{credential_type}"


def parse_available(raw: Any) -> list[AvailableCredential]:
    """Coerce an n8n credentials listing into AvailableCredential records.

    Accepts a bare list or the ``{"data": [...]}`` envelope. Entries without
    an id or type are skipped.
    """
    if isinstance(raw, dict):
        raw = raw.get("data", [])
    if not isinstance(raw, list):
        return []

    available = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("id") or not item.get("type"):
            continue
        available.append(
            AvailableCredential(
                id=str(item["id"]),
                name=str(item.get("name") or item["type"]),
                type=str(item["type"]),
            )
        )
    return available


def required_credential_types(
    plan: dict[str, Any],
    registry: NodeTypeRegistry,
) -> dict[str, str]:
    """Credential types a plan needs, mapped to a display name.

    Combines the plan's ``credentialsNeeded`` list with the credential types
    the registry declares for each node type. Order is first appearance.
    """
    required: dict[str, str] = {}
    for ref in plan.get("credentialsNeeded") or []:
        if isinstance(ref, dict) and ref.get("type"):
            required.setdefault(str(ref["type"]), str(ref.get("name") or ref["type"]))

    workflow = plan.get("workflow") or {}
    for node in workflow.get("nodes") or []:
        if not isinstance(node, dict):
            continue
        for cred_type in registry.credential_types(str(node.get("type") or "")):
            required.setdefault(cred_type, cred_type)
    return required


def build_credential_guidance(
    required: dict[str, str],
    available: list[AvailableCredential],
    base_url: str,
) -> CredentialGuidance | None:
    """Guidance for required types with no matching available credential.

    Returns:
        CredentialGuidance, or None when nothing is missing
    """
    have = {c.type for c in available}
    missing = [(t, name) for t, name in required.items() if t not in have]
    if not missing:
        return None
    return CredentialGuidance(
        missing=[MissingCredential(name=name, type=t) for t, name in missing],
        setup_links=[SetupLink(name=name, url=credential_setup_url(base_url, t)) for t, name in missing],
    )


def inject_credentials(
    workflow: dict[str, Any],
    available: list[AvailableCredential],
    registry: NodeTypeRegistry,
) -> dict[str, Any]:
    """Link nodes to existing credentials by credential type.

    Nodes that already reference a credential keep it. The first available
    credential of a matching type wins.

    Returns:
        A copy of the workflow with ``credentials`` filled in where possible
    """
    updated = copy.deepcopy(workflow)
    if not available:
        return updated

    by_type: dict[str, AvailableCredential] = {}
    for cred in available:
        by_type.setdefault(cred.type, cred)

    linked = 0
    for node in updated.get("nodes") or []:
        if not isinstance(node, dict):
            continue
        refs = dict(node.get("credentials") or {})
        for cred_type in registry.credential_types(str(node.get("type") or "")):
            match = by_type.get(cred_type)
            if match is None or cred_type in refs:
                continue
            refs[cred_type] = {"id": match.id, "name": match.name}
            linked += 1
        if refs:
            node["credentials"] = refs

    if linked:
        logger.info("Linked %d node credentials to existing n8n credentials", linked)
    return updated
