"""treelens: schema-driven extraction, semantic diff and dead-code analysis over tree-sitter CSTs."""

from __future__ import annotations

__version__ = "0.3.0"

from .deadcode import CallGraphBuilder, DeadCodeAnalyzer, FalsePositiveFilter
from .differ import TreeDiffer
from .errors import NodeContractError, SchemaLoadError, TreelensError, UnsupportedLanguageError
from .extractor import SchemaExtractor
from .languages import LanguageProfile, get_profile, load_profiles
from .lens import Lens
from .models import (
    DeadCodeReport,
    DiffResult,
    Location,
    NodeTypeSchema,
    SemanticChange,
    StructuredNode,
    UnusedDefinition,
)
from .schema import SEMANTIC_INTENTS, SchemaModel

__all__ = [
    "__version__",
    "CallGraphBuilder",
    "DeadCodeAnalyzer",
    "DeadCodeReport",
    "DiffResult",
    "FalsePositiveFilter",
    "LanguageProfile",
    "Lens",
    "Location",
    "NodeContractError",
    "NodeTypeSchema",
    "SEMANTIC_INTENTS",
    "SchemaExtractor",
    "SchemaLoadError",
    "SchemaModel",
    "SemanticChange",
    "StructuredNode",
    "TreeDiffer",
    "TreelensError",
    "UnsupportedLanguageError",
    "UnusedDefinition",
    "get_profile",
    "load_profiles",
]
