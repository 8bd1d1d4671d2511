"""Executor stage: create the approved workflow in n8n.

The graph pauses before this node; it only runs after the user approves
the plan. Nothing here is retried automatically: a failed run leaves the
checkpoint paused before the executor so another approval re-attempts it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import AIMessage

from src.events import emit_api_error, emit_workflow_created, emit_workflow_failed
from src.exceptions import ExecutionError, MissingPlanError, N8nClientError
from src.graph.routing import NextStage, transition
from src.graph.state import OrchestratorState, Stage
from src.n8n import N8nClient, classify_error, get_n8n_client
from src.plan import (
    build_credential_guidance,
    inject_credentials,
    normalize_connections,
    required_credential_types,
)
from src.plan.credentials import AvailableCredential, parse_available
from src.settings import get_settings
from src.timeouts import with_timeout
from src.validation import NodeTypeRegistry, get_node_registry

if TYPE_CHECKING:
    from langchain_core.runnables import RunnableConfig

logger = logging.getLogger(__name__)


async def _available_credentials(client: N8nClient) -> list[AvailableCredential]:
    """Credentials already configured in n8n; empty when they cannot be listed."""
    try:
        return parse_available(await client.list_credentials())
    except N8nClientError as e:
        logger.warning("Could not list n8n credentials, continuing without: %s", e)
        return []


def _success_message(workflow: dict[str, Any], url: str, guidance: dict[str, Any] | None) -> str:
    text = f'Created workflow "{workflow.get("name")}": {url}'
    if guidance:
        links = "\n".join(f"- {link['name']}: {link['url']}" for link in guidance["setupLinks"])
        text += f"\n\nSet up these credentials before running it:\n{links}"
    return text


async def run_executor(
    state: OrchestratorState,
    config: RunnableConfig | None = None,
    *,
    n8n_client: N8nClient | None = None,
    registry: NodeTypeRegistry | None = None,
) -> tuple[dict[str, Any], NextStage]:
    """Create the planned workflow.

    Args:
        state: Orchestrator state with an approved plan
        config: Unused; accepted for a uniform stage signature
        n8n_client: Client override (built from settings when None)
        registry: Node-type registry for credential lookup

    Returns:
        ``(state update, TERMINATE)``

    Raises:
        MissingPlanError: If the state carries no plan
        ExecutionError: Classified n8n failure
    """
    if not state.plan:
        raise MissingPlanError("No plan to execute", agent_role="executor")

    settings = get_settings()
    registry = registry or get_node_registry()
    owns_client = n8n_client is None
    client = n8n_client or get_n8n_client()

    try:
        plan = state.plan
        available = await _available_credentials(client)
        guidance = build_credential_guidance(
            required_credential_types(plan, registry), available, client.base_url
        )

        workflow = inject_credentials(plan.get("workflow") or {}, available, registry)
        workflow["connections"] = normalize_connections(workflow.get("connections"))
        node_count = len(workflow.get("nodes") or [])

        try:
            created = await with_timeout(
                client.create_workflow(workflow),
                settings.executor_timeout_seconds,
                f'executor creating workflow "{workflow.get("name")}"',
            )
            workflow_id = created.get("id") if isinstance(created, dict) else None
            if not workflow_id:
                raise N8nClientError(
                    "n8n response did not include a workflow id", operation="create_workflow"
                )
        except Exception as e:
            classification = classify_error(e, client.base_url)
            emit_api_error(
                classification.user_message,
                "executor",
                {
                    "workflowName": workflow.get("name"),
                    "nodeCount": node_count,
                    "n8nBaseUrl": client.base_url,
                    "errorType": type(e).__name__,
                    "errorCategory": str(classification.category),
                },
            )
            emit_workflow_failed(workflow, e)
            raise ExecutionError(
                classification.technical_message,
                category=str(classification.category),
                user_message=classification.user_message,
            ) from e
    finally:
        if owns_client:
            await client.close()

    workflow_id = str(workflow_id)
    url = client.workflow_url(workflow_id)
    emit_workflow_created(workflow, workflow_id)
    guidance_state = guidance.to_state() if guidance else None
    if guidance_state:
        logger.info("Workflow %s needs %d credentials set up", workflow_id, len(guidance.missing))

    return transition(
        Stage.EXECUTOR,
        state,
        {
            "workflow_id": workflow_id,
            "credential_guidance": guidance_state,
            "messages": [AIMessage(content=_success_message(workflow, url, guidance_state))],
        },
    )
