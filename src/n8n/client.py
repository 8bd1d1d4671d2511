"""n8n REST API client.

Usage:
    client = get_n8n_client()
    created = await client.create_workflow(plan["workflow"])
    url = client.workflow_url(created["id"])
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from src.n8n.base import BaseN8nClient, N8nClientConfig

logger = logging.getLogger(__name__)

WORKFLOWS_PATH = "/api/v1/workflows"
CREDENTIALS_PATH = "/api/v1/credentials"

READ_TIMEOUT = 10.0
WRITE_TIMEOUT = 15.0

# Fields the n8n API rejects on create.
READ_ONLY_FIELDS = ("active", "id", "createdAt", "updatedAt", "versionId")


def prepare_workflow_payload(workflow: dict[str, Any]) -> dict[str, Any]:
    """Strip read-only fields and make sure ``settings`` is present."""
    payload = {k: v for k, v in workflow.items() if k not in READ_ONLY_FIELDS}
    if payload.get("settings") is None:
        payload["settings"] = {}
    return payload


def _unwrap_list(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get("data", [])
    return data if isinstance(data, list) else []


class N8nClient(BaseN8nClient):
    """Client for the workflow and credential endpoints."""

    async def list_workflows(self) -> list[dict[str, Any]]:
        data = await self._request(
            "GET", WORKFLOWS_PATH, timeout=READ_TIMEOUT, operation="list_workflows"
        )
        return _unwrap_list(data)

    async def get_workflow(self, workflow_id: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{WORKFLOWS_PATH}/{quote(workflow_id, safe='')}",
            timeout=READ_TIMEOUT,
            operation="get_workflow",
        )

    async def create_workflow(self, workflow: dict[str, Any]) -> dict[str, Any]:
        """Create a workflow.

        Args:
            workflow: Workflow body (name, nodes, connections, settings)

        Returns:
            The created workflow as returned by n8n (includes ``id``)
        """
        payload = prepare_workflow_payload(workflow)
        created = await self._request(
            "POST", WORKFLOWS_PATH, json=payload, timeout=WRITE_TIMEOUT, operation="create_workflow"
        )
        logger.info("Created n8n workflow %s (%s)", created.get("id"), payload.get("name"))
        return created

    async def update_workflow(self, workflow_id: str, workflow: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT",
            f"{WORKFLOWS_PATH}/{quote(workflow_id, safe='')}",
            json=prepare_workflow_payload(workflow),
            timeout=WRITE_TIMEOUT,
            operation="update_workflow",
        )

    async def list_credentials(self) -> list[dict[str, Any]]:
        """List credentials (id, name, type). Secrets are never returned by n8n."""
        data = await self._request(
            "GET", CREDENTIALS_PATH, timeout=READ_TIMEOUT, operation="list_credentials"
        )
        return _unwrap_list(data)

    def workflow_url(self, workflow_id: str) -> str:
        return f"{self.base_url}/workflow/{workflow_id}"

    def credential_setup_url(self, credential_type: str) -> str:
        return f"{self.base_url}/credentials/new/{credential_type}"


def get_n8n_client(config: N8nClientConfig | None = None) -> N8nClient:
    """Build a client from settings (or the given config)."""
    return N8nClient(config)
