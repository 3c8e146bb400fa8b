"""Node-type schema model: indexes a grammar's ``node-types.json``.

A schema document is the array tree-sitter emits for every grammar::

    [
      {"type": "function_declaration", "named": true,
       "fields": {"name": {"types": [{"type": "identifier", "named": true}]}},
       "children": {"types": [...]}},
      {"type": "(", "named": false},
      ...
    ]

Only named entries are indexed; anonymous tokens such as punctuation are
never addressable by type name.  Semantic intents ("this node's name",
"this call's callee") are resolved per node type against the fixed
:data:`SEMANTIC_INTENTS` table.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import SchemaLoadError
from .models import NodeTypeSchema

logger = logging.getLogger(__name__)

# Intent -> candidate field names.  Order encodes priority: the first
# candidate present on a node type wins.
SEMANTIC_INTENTS: Dict[str, Tuple[str, ...]] = {
    "identifier": ("name", "identifier", "declarator", "word"),
    "callable": ("function", "callee", "method", "object"),
    "value": ("value", "initializer", "source", "path"),
    "target": ("left", "target", "pattern", "index"),
    "condition": ("condition", "test", "predicate"),
    "body": ("body", "consequence", "alternative", "block"),
    "parameters": ("parameters", "arguments", "params", "args"),
    "operator": ("operator", "op"),
    "type": ("type", "return_type", "type_annotation"),
}


def _type_names(types: Any, where: str, named_only: bool = False) -> Tuple[str, ...]:
    if types is None:
        return ()
    if not isinstance(types, list):
        raise SchemaLoadError(f"{where}: 'types' must be an array")
    names: List[str] = []
    for entry in types:
        if not isinstance(entry, dict):
            raise SchemaLoadError(f"{where}: type entries must be objects")
        if named_only and not entry.get("named", False):
            continue
        name = entry.get("type")
        if isinstance(name, str) and name:
            names.append(name)
    return tuple(names)


def _parse_entry(entry: Dict[str, Any]) -> Optional[NodeTypeSchema]:
    type_name = entry.get("type")
    if not entry.get("named", False) or not isinstance(type_name, str) or not type_name:
        return None

    raw_fields = entry.get("fields") or {}
    if not isinstance(raw_fields, dict):
        raise SchemaLoadError(f"{type_name}: 'fields' must be an object")
    fields: Dict[str, Tuple[str, ...]] = {}
    for field_name, spec in raw_fields.items():
        if not isinstance(spec, dict):
            raise SchemaLoadError(f"{type_name}.{field_name}: field spec must be an object")
        fields[field_name] = _type_names(spec.get("types"), f"{type_name}.{field_name}")

    raw_children = entry.get("children") or {}
    if not isinstance(raw_children, dict):
        raise SchemaLoadError(f"{type_name}: 'children' must be an object")
    children = _type_names(raw_children.get("types"), f"{type_name}.children", named_only=True)

    return NodeTypeSchema(type=type_name, named=True, fields=fields, children_types=children)


class SchemaModel:
    """Read-only index over one grammar's node types.

    Instances are immutable after construction and may be shared between
    concurrent analyses.
    """

    def __init__(self, node_types: Iterable[NodeTypeSchema]) -> None:
        index: Dict[str, NodeTypeSchema] = {}
        for node_type in node_types:
            if node_type.named:
                index[node_type.type] = node_type
        self._index = index
        # Plans are fixed per type, so resolve them once up front
        self._plans: Dict[str, Dict[str, Optional[str]]] = {
            name: {intent: self.resolve_intent(name, intent) for intent in SEMANTIC_INTENTS}
            for name in index
        }

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_entries(cls, entries: Any) -> "SchemaModel":
        """Build a model from an already-decoded schema document.

        Raises:
            SchemaLoadError: If the top level is not an array or an entry is malformed
        """
        if not isinstance(entries, list):
            raise SchemaLoadError(
                f"Schema document must be an array, got {type(entries).__name__}"
            )
        parsed: List[NodeTypeSchema] = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise SchemaLoadError(f"Schema entry {position} is not an object")
            node_type = _parse_entry(entry)
            if node_type is not None:
                parsed.append(node_type)
        model = cls(parsed)
        logger.debug("Indexed %d named node types (%d entries)", len(model), len(entries))
        return model

    @classmethod
    def from_json(cls, document: str) -> "SchemaModel":
        """Build a model from a JSON string."""
        try:
            entries = json.loads(document)
        except json.JSONDecodeError as exc:
            raise SchemaLoadError(f"Schema is not valid JSON: {exc}") from exc
        return cls.from_entries(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> "SchemaModel":
        """Load a model from a ``node-types.json`` file."""
        path = Path(path)
        try:
            document = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SchemaLoadError(f"Cannot read schema file {path}: {exc}") from exc
        return cls.from_json(document)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def node_types(self) -> List[str]:
        """All indexed node type names, in document order."""
        return list(self._index)

    def has_node_type(self, node_type: str) -> bool:
        return node_type in self._index

    def fields(self, node_type: str) -> Dict[str, Tuple[str, ...]]:
        """Field name -> allowed child types; empty for unknown types."""
        entry = self._index.get(node_type)
        return dict(entry.fields) if entry is not None else {}

    def field_names(self, node_type: str) -> List[str]:
        entry = self._index.get(node_type)
        return list(entry.fields) if entry is not None else []

    def has_field(self, node_type: str, field_name: str) -> bool:
        entry = self._index.get(node_type)
        return entry is not None and field_name in entry.fields

    def field_types(self, node_type: str, field_name: str) -> List[str]:
        entry = self._index.get(node_type)
        if entry is None:
            return []
        return list(entry.fields.get(field_name, ()))

    def children_types(self, node_type: str) -> List[str]:
        """Named types allowed as positional (unnamed-field) children."""
        entry = self._index.get(node_type)
        return list(entry.children_types) if entry is not None else []

    # ------------------------------------------------------------------
    # Intent resolution
    # ------------------------------------------------------------------

    def resolve_intent(self, node_type: str, intent: str) -> Optional[str]:
        """Resolve a semantic intent to the field name *node_type* exposes.

        Returns:
            The first candidate field present on the type, or None
        """
        candidates = SEMANTIC_INTENTS.get(intent)
        entry = self._index.get(node_type)
        if candidates is None or entry is None:
            return None
        for candidate in candidates:
            if candidate in entry.fields:
                return candidate
        return None

    def extraction_plan(self, node_type: str) -> Dict[str, Optional[str]]:
        """Map every known intent to its resolved field (or None)."""
        plan = self._plans.get(node_type)
        if plan is None:
            return {intent: None for intent in SEMANTIC_INTENTS}
        return dict(plan)

    def identity_field(self, node_type: str) -> Optional[str]:
        """The field holding a node's identity (usually ``name``)."""
        return self.resolve_intent(node_type, "identifier")

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._index

    def __repr__(self) -> str:
        return f"SchemaModel({len(self._index)} node types)"
