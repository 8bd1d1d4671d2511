"""Plan entity models.

A Plan is the converged workflow definition produced by the planner and
consumed by the executor. Field aliases follow the n8n wire format
(camelCase) so ``to_wire()`` output can be posted to the n8n API and
formatted as Loom for the validator.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CredentialRef(BaseModel):
    """Reference to a credential type a plan needs or already has."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    name: str | None = None
    required_for: str | None = Field(default=None, alias="requiredFor")
    node_id: str | None = Field(default=None, alias="nodeId")
    node_name: str | None = Field(default=None, alias="nodeName")


class WorkflowNode(BaseModel):
    """A single n8n node."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    type: str
    type_version: float = Field(default=1, alias="typeVersion")
    position: list[float] = Field(default_factory=lambda: [0.0, 0.0])
    parameters: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, dict[str, Any]] | None = None


class Workflow(BaseModel):
    """n8n workflow body."""

    name: str
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: dict[str, dict[str, list[list[dict[str, Any]]]]] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)


class Plan(BaseModel):
    """Structured workflow plan awaiting validation and approval."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    summary: str
    workflow: Workflow
    credentials_needed: list[CredentialRef] = Field(
        default_factory=list,
        alias="credentialsNeeded",
    )
    credentials_available: list[CredentialRef] | None = Field(
        default=None,
        alias="credentialsAvailable",
    )

    @property
    def node_count(self) -> int:
        return len(self.workflow.nodes)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with n8n field names, omitting unset optional sections."""
        data = self.model_dump(by_alias=True)
        if data.get("credentialsAvailable") is None:
            data.pop("credentialsAvailable", None)
        for node in data["workflow"]["nodes"]:
            if node.get("credentials") is None:
                node.pop("credentials", None)
            if float(node["typeVersion"]).is_integer():
                node["typeVersion"] = int(node["typeVersion"])
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Plan:
        return cls.model_validate(data)
