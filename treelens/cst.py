"""CST node capability consumed by the extractor, plus a tree-sitter adapter.

Anything that looks like a tree-sitter node can be analysed: the extractor
only relies on the attributes of :class:`CSTNode`.  Rows and columns are
0-indexed here; :class:`~treelens.models.StructuredNode` converts rows to
1-indexed lines.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class CSTNode(Protocol):
    """Minimal node interface required from the external parser."""

    @property
    def type(self) -> str: ...

    @property
    def text(self) -> str: ...

    @property
    def start_row(self) -> int: ...

    @property
    def end_row(self) -> int: ...

    @property
    def start_column(self) -> int: ...

    @property
    def end_column(self) -> int: ...

    @property
    def is_named(self) -> bool: ...

    @property
    def children(self) -> Sequence["CSTNode"]: ...

    def child_for_field_name(self, name: str) -> Optional["CSTNode"]: ...


class TreeSitterNode:
    """Adapts a ``tree_sitter.Node`` to the :class:`CSTNode` interface."""

    __slots__ = ("_node",)

    def __init__(self, ts_node: Any) -> None:
        self._node = ts_node

    @property
    def type(self) -> str:
        return self._node.type

    @property
    def text(self) -> str:
        raw = self._node.text
        if raw is None:
            return ""
        return raw.decode("utf-8", errors="replace")

    @property
    def start_row(self) -> int:
        return self._node.start_point[0]

    @property
    def end_row(self) -> int:
        return self._node.end_point[0]

    @property
    def start_column(self) -> int:
        return self._node.start_point[1]

    @property
    def end_column(self) -> int:
        return self._node.end_point[1]

    @property
    def is_named(self) -> bool:
        return self._node.is_named

    @property
    def children(self) -> List["TreeSitterNode"]:
        return [TreeSitterNode(child) for child in self._node.children]

    def child_for_field_name(self, name: str) -> Optional["TreeSitterNode"]:
        child = self._node.child_by_field_name(name)
        return TreeSitterNode(child) if child is not None else None

    def __repr__(self) -> str:
        return (
            f"TreeSitterNode({self.type!r}, "
            f"{self.start_row}:{self.start_column}-{self.end_row}:{self.end_column})"
        )
