"""Core data models produced by extraction, diffing and dead-code analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

ChangeKind = Literal["add", "remove", "rename", "modify", "move", "reorder"]

# Declaration order doubles as the display order used by reports
CHANGE_KINDS: Tuple[str, ...] = ("add", "remove", "rename", "modify", "move", "reorder")


@dataclass(frozen=True)
class NodeTypeSchema:
    """One named node type from a grammar's ``node-types.json``."""
    type: str
    named: bool
    fields: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    children_types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Location:
    """A (line, column) position; lines are 1-indexed, columns 0-indexed."""
    line: int
    column: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class StructuredNode:
    """A CST node reduced to its type, span, text and resolved intents."""
    node_type: str
    start_line: int
    end_line: int
    start_column: int
    end_column: int
    text: str
    extractions: Dict[str, str] = field(default_factory=dict)
    children: List["StructuredNode"] = field(default_factory=list)
    parent_node_type: Optional[str] = None
    source_file: Optional[str] = None

    @property
    def identity(self) -> Optional[str]:
        """The resolved ``identifier`` intent, usually the node's name."""
        return self.extractions.get("identifier")

    @property
    def start(self) -> Location:
        return Location(self.start_line, self.start_column)

    @property
    def line_span(self) -> int:
        return self.end_line - self.start_line

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "node_type": self.node_type,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "text": self.text,
            "extractions": dict(self.extractions),
        }
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        if self.parent_node_type:
            result["parent_node_type"] = self.parent_node_type
        if self.source_file:
            result["source_file"] = self.source_file
        return result


@dataclass(frozen=True)
class SemanticChange:
    """A single semantic change between two versions of a tree."""
    kind: ChangeKind
    node_type: str
    path: str
    old_identity: Optional[str] = None
    new_identity: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    node_info: Optional[Dict[str, Any]] = None
    old_location: Optional[Location] = None
    new_location: Optional[Location] = None

    def __post_init__(self):
        """Validate the change kind."""
        if self.kind not in CHANGE_KINDS:
            raise ValueError(f"Unknown change kind: {self.kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": self.kind,
            "node_type": self.node_type,
            "path": self.path,
        }
        if self.old_identity is not None:
            result["old_identity"] = self.old_identity
        if self.new_identity is not None:
            result["new_identity"] = self.new_identity
        if self.old_value is not None:
            result["old_value"] = self.old_value
        if self.new_value is not None:
            result["new_value"] = self.new_value
        if self.node_info is not None:
            result["node_info"] = self.node_info
        if self.old_location is not None:
            result["old_location"] = self.old_location.to_dict()
        if self.new_location is not None:
            result["new_location"] = self.new_location.to_dict()
        return result


@dataclass
class DiffResult:
    """Ordered semantic changes plus a per-kind tally."""
    changes: List[SemanticChange] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_changes(cls, changes: List[SemanticChange]) -> "DiffResult":
        """Build a result whose summary is tallied from *changes*."""
        summary: Dict[str, int] = {}
        for change in changes:
            summary[change.kind] = summary.get(change.kind, 0) + 1
        return cls(changes=list(changes), summary=summary)

    @property
    def has_changes(self) -> bool:
        return len(self.changes) > 0

    def of_kind(self, kind: str) -> List[SemanticChange]:
        """Changes of one kind, in result order."""
        return [c for c in self.changes if c.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changes": [c.to_dict() for c in self.changes],
            "summary": dict(self.summary),
        }


@dataclass(frozen=True)
class UnusedDefinition:
    """A definition with no observed call sites after false-positive filtering."""
    identifier: str
    node_type: str
    source_file: Optional[str]
    start_line: int
    end_line: int
    reason: str
    parent_node_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "identifier": self.identifier,
            "node_type": self.node_type,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "reason": self.reason,
        }
        if self.source_file:
            result["source_file"] = self.source_file
        if self.parent_node_type:
            result["parent_node_type"] = self.parent_node_type
        return result

    def __str__(self) -> str:
        location = f"{self.source_file}:{self.start_line}" if self.source_file else f"line {self.start_line}"
        return f"{self.identifier} ({self.node_type}) at {location} - {self.reason}"


@dataclass
class DeadCodeReport:
    """Result of a dead-code run over one language's files."""
    language: str
    unused: List[UnusedDefinition] = field(default_factory=list)
    definition_count: int = 0
    call_site_count: int = 0

    @property
    def unused_count(self) -> int:
        return len(self.unused)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "unused": [u.to_dict() for u in self.unused],
            "stats": {
                "definitions": self.definition_count,
                "call_sites": self.call_site_count,
                "unused": self.unused_count,
            },
        }
