"""Semantic diff between two versions of a CST.

Declarations (functions, classes, variables, imports, ...) are discovered
in both trees and keyed by ``"{node_type}:{identity}"``.  Declarations
without an identity fall back to a positional key,
``"{node_type}@{line}:{column}"``, which never matches across edits.

Key comparison yields ``add`` / ``remove`` / ``modify`` / ``move``
changes.  A post-pass then collapses ``remove`` + ``add`` pairs of the
same node type and similar line span into a single ``rename``.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Set, Tuple

from . import config
from .cst import CSTNode
from .extractor import SchemaExtractor
from .models import DiffResult, SemanticChange, StructuredNode
from .schema import SchemaModel

logger = logging.getLogger(__name__)

DECLARATION_TYPES: FrozenSet[str] = frozenset({
    # Functions
    "function_declaration", "function_definition", "method_definition",
    "function_item", "arrow_function", "lambda",
    # Classes / types
    "class_declaration", "class_definition", "struct_item", "enum_item",
    "interface_declaration", "type_alias_declaration",
    # Variables
    "variable_declaration", "lexical_declaration", "assignment",
    # Imports
    "import_statement", "import_declaration", "use_declaration",
    # Other
    "module", "namespace", "trait_item", "impl_item",
})


class TreeDiffer:
    """Computes semantic changes between two trees of one grammar."""

    def __init__(
        self,
        schema: SchemaModel,
        summary_length: int = config.DEFAULT_SUMMARY_LENGTH,
        rename_span_tolerance: int = config.DEFAULT_RENAME_SPAN_TOLERANCE,
    ) -> None:
        self.schema = schema
        self.extractor = SchemaExtractor(schema)
        self.summary_length = summary_length
        self.rename_span_tolerance = rename_span_tolerance
        # Only declaration types this grammar actually defines
        self.declaration_types: List[str] = sorted(
            t for t in DECLARATION_TYPES if schema.has_node_type(t)
        )

    def diff(
        self,
        old_root: CSTNode,
        new_root: CSTNode,
        path_prefix: str = "",
        include_full_text: bool = False,
    ) -> DiffResult:
        """Compute the semantic diff from *old_root* to *new_root*.

        Args:
            old_root: Root node of the old version
            new_root: Root node of the new version
            path_prefix: Prefix prepended (dot-separated) to every change path
            include_full_text: Keep full text in ``old_value``/``new_value``
                instead of truncating to ``summary_length`` characters

        Returns:
            DiffResult whose summary tallies the final change list
        """
        old_by_key = self._identity_map(self.extractor.extract_by_type(old_root, self.declaration_types))
        new_by_key = self._identity_map(self.extractor.extract_by_type(new_root, self.declaration_types))

        changes: List[SemanticChange] = []
        # Change index -> (line span, declaration key) for adds and removes
        unmatched: Dict[int, Tuple[int, str]] = {}

        # Additions: in new but not old
        for key, node in new_by_key.items():
            if key not in old_by_key:
                unmatched[len(changes)] = (node.line_span, key)
                changes.append(SemanticChange(
                    kind="add",
                    node_type=node.node_type,
                    path=_build_path(path_prefix, node.identity or key),
                    new_identity=node.identity,
                    node_info=node.to_dict(),
                    new_location=node.start,
                ))

        # Removals: in old but not new
        for key, node in old_by_key.items():
            if key not in new_by_key:
                unmatched[len(changes)] = (node.line_span, key)
                changes.append(SemanticChange(
                    kind="remove",
                    node_type=node.node_type,
                    path=_build_path(path_prefix, node.identity or key),
                    old_identity=node.identity,
                    node_info=node.to_dict(),
                    old_location=node.start,
                ))

        # Present in both: compare content, then position
        for key, old_node in old_by_key.items():
            new_node = new_by_key.get(key)
            if new_node is None:
                continue
            path = _build_path(path_prefix, old_node.identity or key)
            if old_node.text != new_node.text:
                changes.append(SemanticChange(
                    kind="modify",
                    node_type=old_node.node_type,
                    path=path,
                    old_identity=old_node.identity,
                    new_identity=new_node.identity,
                    old_value=self._summarize(old_node.text, include_full_text),
                    new_value=self._summarize(new_node.text, include_full_text),
                    old_location=old_node.start,
                    new_location=new_node.start,
                ))
            elif old_node.start != new_node.start:
                changes.append(SemanticChange(
                    kind="move",
                    node_type=old_node.node_type,
                    path=path,
                    old_identity=old_node.identity,
                    new_identity=new_node.identity,
                    old_location=old_node.start,
                    new_location=new_node.start,
                ))

        result = DiffResult.from_changes(self._collapse_renames(changes, unmatched))
        logger.debug("Diff summary: %s", result.summary)
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _identity_map(declarations: List[StructuredNode]) -> Dict[str, StructuredNode]:
        """Key declarations by type + identity, or type + position when anonymous.

        A later declaration with the same key replaces an earlier one.
        """
        by_key: Dict[str, StructuredNode] = {}
        for decl in declarations:
            by_key[declaration_key(decl)] = decl
        return by_key

    def _summarize(self, text: str, include_full_text: bool) -> str:
        text = text.strip()
        if include_full_text or len(text) <= self.summary_length:
            return text
        return text[: self.summary_length] + "..."

    def _collapse_renames(
        self,
        changes: List[SemanticChange],
        unmatched: Dict[int, Tuple[int, str]],
    ) -> List[SemanticChange]:
        """Collapse ``remove`` + ``add`` pairs into ``rename`` changes.

        Candidate pairs share a node type and their line spans differ by at
        most ``rename_span_tolerance``.  Pairs are accepted greedily in
        (span delta, remove order, add order) order, so the outcome is
        reproducible but not a minimum-cost assignment.  Anonymous
        declarations are renamed under their positional keys.
        """
        removed = [(i, c) for i, c in enumerate(changes) if c.kind == "remove"]
        added = [(i, c) for i, c in enumerate(changes) if c.kind == "add"]
        if not removed or not added:
            return changes

        candidates: List[Tuple[int, int, int]] = []
        for rem_pos, (rem_index, rem) in enumerate(removed):
            rem_span = unmatched[rem_index][0]
            for add_pos, (add_index, add) in enumerate(added):
                if rem.node_type != add.node_type:
                    continue
                delta = abs(rem_span - unmatched[add_index][0])
                if delta <= self.rename_span_tolerance:
                    candidates.append((delta, rem_pos, add_pos))
        candidates.sort()

        matched_removed: Dict[int, int] = {}
        matched_added: Set[int] = set()
        for _, rem_pos, add_pos in candidates:
            if rem_pos in matched_removed or add_pos in matched_added:
                continue
            matched_removed[rem_pos] = add_pos
            matched_added.add(add_pos)

        if not matched_removed:
            return changes

        renames: List[SemanticChange] = []
        consumed: Set[int] = set()
        for rem_pos in sorted(matched_removed):
            rem_index, rem = removed[rem_pos]
            add_index, add = added[matched_removed[rem_pos]]
            consumed.update((rem_index, add_index))
            renames.append(SemanticChange(
                kind="rename",
                node_type=rem.node_type,
                path=rem.path,
                old_identity=rem.old_identity or unmatched[rem_index][1],
                new_identity=add.new_identity or unmatched[add_index][1],
                old_location=rem.old_location,
                new_location=add.new_location,
            ))

        kept = [c for i, c in enumerate(changes) if i not in consumed]
        return kept + renames


def declaration_key(node: StructuredNode) -> str:
    """Matching key for a declaration across two trees."""
    identity = node.identity
    if identity:
        return f"{node.node_type}:{identity}"
    return f"{node.node_type}@{node.start_line}:{node.start_column}"


def _build_path(prefix: str, identity: str) -> str:
    return f"{prefix}.{identity}" if prefix else identity
