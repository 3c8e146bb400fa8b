"""Schema-driven extraction of structured data from CST nodes."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .cst import CSTNode
from .errors import NodeContractError
from .models import StructuredNode
from .schema import SchemaModel

logger = logging.getLogger(__name__)


class SchemaExtractor:
    """Turns CST nodes into :class:`StructuredNode` objects using a schema.

    Works with any object implementing :class:`~treelens.cst.CSTNode`.
    """

    def __init__(self, schema: SchemaModel) -> None:
        self.schema = schema

    # ------------------------------------------------------------------
    # Single-node extraction
    # ------------------------------------------------------------------

    def extract_node(self, node: CSTNode, parent_node_type: Optional[str] = None) -> StructuredNode:
        """Extract every resolvable intent from *node*. Never recurses."""
        _check_span(node)
        return StructuredNode(
            node_type=node.type,
            start_line=node.start_row + 1,
            end_line=node.end_row + 1,
            start_column=node.start_column,
            end_column=node.end_column,
            text=node.text,
            extractions=self._resolve_extractions(node),
            parent_node_type=parent_node_type,
        )

    def extract(self, node: CSTNode, intent: str) -> Optional[str]:
        """Extract a single semantic intent from *node*, or None."""
        field_name = self.schema.resolve_intent(node.type, intent)
        if field_name is None:
            return None
        return self.extract_field(node, field_name)

    @staticmethod
    def extract_field(node: CSTNode, field_name: str) -> Optional[str]:
        """Text of the child stored under *field_name*, or None."""
        child = node.child_for_field_name(field_name)
        if child is None:
            return None
        return child.text

    def _resolve_extractions(self, node: CSTNode) -> Dict[str, str]:
        extractions: Dict[str, str] = {}
        for intent, field_name in self.schema.extraction_plan(node.type).items():
            if field_name is None:
                continue
            child = node.child_for_field_name(field_name)
            if child is not None and child.text:
                extractions[intent] = child.text
        return extractions

    # ------------------------------------------------------------------
    # Tree traversal
    # ------------------------------------------------------------------

    def extract_all(self, node: CSTNode, recurse: bool = False) -> StructuredNode:
        """Extract *node* and, with *recurse*, every significant descendant.

        A child is significant when its type is indexed by the schema.
        Children whose type is absent are dropped together with their
        subtrees, even when the parser reports them as named.
        """
        result = self.extract_node(node)
        if recurse:
            self._extract_children(node, result)
        return result

    def _extract_children(self, node: CSTNode, result: StructuredNode) -> None:
        for child in node.children:
            if not self.schema.has_node_type(child.type):
                continue
            extracted = self.extract_node(child, parent_node_type=node.type)
            self._extract_children(child, extracted)
            result.children.append(extracted)

    def extract_by_type(self, root: CSTNode, node_types: Iterable[str]) -> List[StructuredNode]:
        """Collect every node in the tree whose type is in *node_types*.

        Pre-order, depth-first, over the whole tree (the schema filter does
        not apply).  Nested matches are all collected.  Each match records
        the CST type of its immediate parent.
        """
        type_set = frozenset(node_types)
        results: List[StructuredNode] = []
        if not type_set:
            return results

        stack: List[Tuple[CSTNode, Optional[str]]] = [(root, None)]
        while stack:
            node, parent_type = stack.pop()
            if node.type in type_set:
                results.append(self.extract_node(node, parent_node_type=parent_type))
            children = node.children
            for child in reversed(children):
                stack.append((child, node.type))

        logger.debug("extract_by_type matched %d node(s) for %s", len(results), sorted(type_set))
        return results


def _check_span(node: CSTNode) -> None:
    if (node.end_row, node.end_column) < (node.start_row, node.start_column):
        raise NodeContractError(
            f"Node '{node.type}' ends ({node.end_row}:{node.end_column}) "
            f"before it starts ({node.start_row}:{node.start_column})"
        )
