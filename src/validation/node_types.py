"""n8n node-type registry.

n8n exposes no public node-types endpoint, so the registry ships a built-in
catalog of common node types. The registry is read-only after construction
and is shared across sessions via :func:`get_node_registry`.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.validation.fuzzy import rank_alternatives


class NodeProperty(BaseModel):
    """A configurable parameter of a node type."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    display_name: str = Field(default="", alias="displayName")
    type: str = "string"
    required: bool = False
    default: Any = None
    options: list[str] | None = None


class NodeCredential(BaseModel):
    """Credential type a node can authenticate with."""

    name: str
    required: bool = True


class NodeType(BaseModel):
    """Description of one n8n node type."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    display_name: str = Field(default="", alias="displayName")
    description: str = ""
    version: float = 1
    defaults: dict[str, Any] = Field(default_factory=dict)
    inputs: list[str] = Field(default_factory=lambda: ["main"])
    outputs: list[str] = Field(default_factory=lambda: ["main"])
    properties: list[NodeProperty] = Field(default_factory=list)
    credentials: list[NodeCredential] = Field(default_factory=list)
    group: list[str] = Field(default_factory=list)

    @property
    def required_parameters(self) -> list[str]:
        return [p.name for p in self.properties if p.required]

    @property
    def is_trigger(self) -> bool:
        return not self.inputs or "trigger" in self.group


def _node(
    name: str,
    display_name: str,
    group: str,
    *,
    description: str = "",
    version: float = 1,
    trigger: bool = False,
    inputs: list[str] | None = None,
    properties: Iterable[tuple[str, str, bool]] = (),
    credentials: Iterable[str] = (),
) -> NodeType:
    return NodeType(
        name=name,
        display_name=display_name,
        description=description or display_name,
        version=version,
        defaults={"name": display_name},
        inputs=[] if trigger else (inputs or ["main"]),
        outputs=["main"],
        properties=[
            NodeProperty(name=p, display_name=p, type=t, required=req) for p, t, req in properties
        ],
        credentials=[NodeCredential(name=c) for c in credentials],
        group=[group],
    )


BUILTIN_NODE_TYPES: list[NodeType] = [
    # Triggers
    _node("n8n-nodes-base.manualTrigger", "Manual Trigger", "trigger", trigger=True,
          description="Runs the workflow when clicking test workflow"),
    _node("n8n-nodes-base.scheduleTrigger", "Schedule Trigger", "trigger", trigger=True, version=1.2,
          properties=[("rule", "json", True), ("cronExpression", "string", False)]),
    _node("n8n-nodes-base.webhook", "Webhook", "trigger", trigger=True, version=2,
          properties=[("path", "string", True), ("httpMethod", "options", False),
                      ("responseMode", "options", False)]),
    _node("n8n-nodes-base.errorTrigger", "Error Trigger", "trigger", trigger=True),
    _node("n8n-nodes-base.emailReadImap", "Email Trigger (IMAP)", "trigger", trigger=True, version=2,
          credentials=["imap"]),
    # Core
    _node("n8n-nodes-base.httpRequest", "HTTP Request", "core", version=4.2,
          properties=[("url", "string", True), ("method", "options", False),
                      ("authentication", "options", False), ("sendHeaders", "boolean", False),
                      ("sendBody", "boolean", False)]),
    _node("n8n-nodes-base.code", "Code", "core", version=2,
          properties=[("language", "options", False), ("jsCode", "string", False),
                      ("pythonCode", "string", False)]),
    _node("n8n-nodes-base.set", "Edit Fields (Set)", "core", version=3.4,
          properties=[("mode", "options", False), ("fields", "fixedCollection", False)]),
    _node("n8n-nodes-base.merge", "Merge", "core", version=3, inputs=["main", "main"],
          properties=[("mode", "options", False)]),
    _node("n8n-nodes-base.splitInBatches", "Loop Over Items", "core", version=3,
          properties=[("batchSize", "number", False)]),
    _node("n8n-nodes-base.noOp", "No Operation", "core"),
    _node("n8n-nodes-base.executeWorkflow", "Execute Workflow", "core",
          properties=[("workflowId", "string", True)]),
    # Flow
    _node("n8n-nodes-base.if", "If", "logic", version=2,
          properties=[("conditions", "fixedCollection", False)]),
    _node("n8n-nodes-base.switch", "Switch", "logic", version=3,
          properties=[("mode", "options", False), ("rules", "fixedCollection", False)]),
    _node("n8n-nodes-base.filter", "Filter", "logic", version=2,
          properties=[("conditions", "fixedCollection", False)]),
    _node("n8n-nodes-base.stopAndError", "Stop and Error", "logic",
          properties=[("errorMessage", "string", False)]),
    _node("n8n-nodes-base.wait", "Wait", "logic", version=1.1,
          properties=[("resume", "options", False), ("amount", "number", False),
                      ("unit", "options", False)]),
    # Transform
    _node("n8n-nodes-base.aggregate", "Aggregate", "transform",
          properties=[("operation", "options", False)]),
    _node("n8n-nodes-base.sort", "Sort", "transform",
          properties=[("sortFieldsUi", "fixedCollection", False)]),
    _node("n8n-nodes-base.limit", "Limit", "transform",
          properties=[("maxItems", "number", False)]),
    _node("n8n-nodes-base.removeDuplicates", "Remove Duplicates", "transform"),
    _node("n8n-nodes-base.splitOut", "Split Out", "transform",
          properties=[("fieldToSplitOut", "string", True)]),
    # Files
    _node("n8n-nodes-base.readBinaryFile", "Read Binary File", "input",
          properties=[("filePath", "string", True)]),
    _node("n8n-nodes-base.writeBinaryFile", "Write Binary File", "output",
          properties=[("fileName", "string", True)]),
    _node("n8n-nodes-base.readBinaryFiles", "Read Binary Files", "input",
          properties=[("fileSelector", "string", True)]),
    # Services
    _node("n8n-nodes-base.slack", "Slack", "communication", version=2.2,
          properties=[("resource", "options", False), ("operation", "options", False)],
          credentials=["slackApi"]),
    _node("n8n-nodes-base.gmail", "Gmail", "communication", version=2.1,
          properties=[("resource", "options", False), ("operation", "options", False)],
          credentials=["gmailOAuth2"]),
    _node("n8n-nodes-base.emailSend", "Send Email", "communication", version=2.1,
          properties=[("toEmail", "string", True), ("subject", "string", False)],
          credentials=["smtp"]),
    _node("n8n-nodes-base.discord", "Discord", "communication", version=2,
          properties=[("resource", "options", False), ("operation", "options", False)],
          credentials=["discordBotToken"]),
    _node("n8n-nodes-base.telegram", "Telegram", "communication", version=1.2,
          properties=[("chatId", "string", True), ("text", "string", False)],
          credentials=["telegramApi"]),
    _node("n8n-nodes-base.twilio", "Twilio", "communication",
          properties=[("to", "string", True), ("message", "string", False)],
          credentials=["twilioApi"]),
    _node("n8n-nodes-base.sendGrid", "SendGrid", "communication", credentials=["sendGridApi"]),
    _node("n8n-nodes-base.googleSheets", "Google Sheets", "productivity", version=4.5,
          properties=[("operation", "options", False)], credentials=["googleSheetsOAuth2Api"]),
    _node("n8n-nodes-base.airtable", "Airtable", "productivity", version=2.1,
          properties=[("operation", "options", False)], credentials=["airtableTokenApi"]),
    _node("n8n-nodes-base.notion", "Notion", "productivity", version=2.2,
          properties=[("resource", "options", False), ("operation", "options", False)],
          credentials=["notionApi"]),
    _node("n8n-nodes-base.trello", "Trello", "productivity", credentials=["trelloApi"]),
    _node("n8n-nodes-base.asana", "Asana", "productivity", credentials=["asanaApi"]),
    _node("n8n-nodes-base.jira", "Jira Software", "productivity", credentials=["jiraSoftwareCloudApi"]),
    _node("n8n-nodes-base.github", "GitHub", "development", credentials=["githubApi"]),
    _node("n8n-nodes-base.gitlab", "GitLab", "development", credentials=["gitlabApi"]),
    _node("n8n-nodes-base.postgres", "Postgres", "database", version=2.5,
          properties=[("operation", "options", False), ("query", "string", False)],
          credentials=["postgres"]),
    _node("n8n-nodes-base.mySql", "MySQL", "database", version=2.4, credentials=["mySql"]),
    _node("n8n-nodes-base.stripe", "Stripe", "sales", credentials=["stripeApi"]),
    _node("n8n-nodes-base.hubspot", "HubSpot", "sales", version=2.1, credentials=["hubspotApi"]),
    _node("n8n-nodes-base.salesforce", "Salesforce", "sales", credentials=["salesforceOAuth2Api"]),
    _node("n8n-nodes-base.shopify", "Shopify", "sales", credentials=["shopifyApi"]),
    _node("n8n-nodes-base.mailchimp", "Mailchimp", "marketing", credentials=["mailchimpApi"]),
    _node("n8n-nodes-base.rssFeedRead", "RSS Read", "input", properties=[("url", "string", True)]),
    # AI
    _node("@n8n/n8n-nodes-langchain.agent", "AI Agent", "ai", version=1.7,
          properties=[("agent", "options", False), ("promptType", "options", False),
                      ("text", "string", False)]),
    _node("@n8n/n8n-nodes-langchain.lmChatOpenAi", "OpenAI Chat Model", "ai",
          properties=[("model", "options", False)], credentials=["openAiApi"]),
    _node("@n8n/n8n-nodes-langchain.chainLlm", "Basic LLM Chain", "ai", version=1.5,
          properties=[("prompt", "string", False)]),
    _node("@n8n/n8n-nodes-langchain.openAi", "OpenAI", "ai", version=1.8,
          properties=[("resource", "options", False), ("operation", "options", False)],
          credentials=["openAiApi"]),
]


class NodeTypeRegistry:
    """Read-only lookup over a catalog of node types.

    Iteration order is catalog order; fuzzy suggestions break score ties
    by this order.
    """

    def __init__(self, node_types: Iterable[NodeType]):
        self._types: dict[str, NodeType] = {}
        for node_type in node_types:
            self._types.setdefault(node_type.name, node_type)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(self._types.values())

    def names(self) -> list[str]:
        return list(self._types)

    def get(self, name: str) -> NodeType | None:
        return self._types.get(name)

    def exists(self, name: str) -> bool:
        return name in self._types

    def required_parameters(self, name: str) -> list[str]:
        node_type = self._types.get(name)
        return node_type.required_parameters if node_type else []

    def credential_types(self, name: str) -> list[str]:
        node_type = self._types.get(name)
        return [c.name for c in node_type.credentials] if node_type else []

    def is_trigger(self, name: str) -> bool:
        node_type = self._types.get(name)
        return bool(node_type and node_type.is_trigger)

    def suggest(self, name: str, limit: int = 5) -> list[str]:
        """Closest registered type names for an unknown type."""
        return rank_alternatives(name, self.names(), limit=limit)

    def summary(self) -> str:
        """One line per node type, for inclusion in model prompts."""
        lines = []
        for t in self._types.values():
            line = f"- {t.name} (v{t.version:g}): {t.display_name}"
            if t.required_parameters:
                line += f" [required: {', '.join(t.required_parameters)}]"
            if t.credentials:
                line += f" [credentials: {', '.join(c.name for c in t.credentials)}]"
            lines.append(line)
        return "\n".join(lines)


@lru_cache
def get_node_registry() -> NodeTypeRegistry:
    """Get the cached registry of built-in node types."""
    return NodeTypeRegistry(BUILTIN_NODE_TYPES)
