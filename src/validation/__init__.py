"""Plan validation: node-type registry, structural and semantic checks."""

from src.validation.engine import ValidationEngine
from src.validation.fuzzy import levenshtein, rank_alternatives, similarity_score
from src.validation.models import Category, Severity, ValidationError, ValidationReport
from src.validation.node_types import NodeType, NodeTypeRegistry, get_node_registry
from src.validation.semantic import SemanticResult, SemanticValidator, decode_validator_reply
from src.validation.structural import validate_structure

__all__ = [
    "Category",
    "NodeType",
    "NodeTypeRegistry",
    "SemanticResult",
    "SemanticValidator",
    "Severity",
    "ValidationEngine",
    "ValidationError",
    "ValidationReport",
    "decode_validator_reply",
    "get_node_registry",
    "levenshtein",
    "rank_alternatives",
    "similarity_score",
    "validate_structure",
]
