"""n8n REST API client and error classification."""

from src.n8n.base import BaseN8nClient, N8nClientConfig
from src.n8n.client import N8nClient, get_n8n_client, prepare_workflow_payload
from src.n8n.errors import ErrorCategory, ErrorClassification, classify_error

__all__ = [
    "BaseN8nClient",
    "ErrorCategory",
    "ErrorClassification",
    "N8nClient",
    "N8nClientConfig",
    "classify_error",
    "get_n8n_client",
    "prepare_workflow_payload",
]
