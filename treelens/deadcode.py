"""Dead-code detection from definition and call-site nodes.

Three pieces cooperate:

* :class:`CallGraphBuilder` accumulates definitions (grouped by identity)
  and the flat set of names seen at call sites, across any number of files.
* :class:`FalsePositiveFilter` drops definitions that are reachable through
  means a call graph cannot see: decorators, entry points and test
  runners, and framework callbacks.
* :class:`DeadCodeAnalyzer` wires both to a :class:`SchemaExtractor` and a
  :class:`~treelens.languages.LanguageProfile` for whole-tree analysis.

Matching is by bare name only, so a call to ``a.run()`` marks every ``run``
definition as used.  The report lists candidates, not proof.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from . import config
from .cst import CSTNode
from .extractor import SchemaExtractor
from .languages import LanguageProfile
from .models import DeadCodeReport, StructuredNode, UnusedDefinition

logger = logging.getLogger(__name__)

UNUSED_REASON = "No call sites found"


class CallGraphBuilder:
    """Caller-owned accumulator of definitions and called names.

    Not thread-safe.  Use one builder per worker and combine them with
    :meth:`merge`.
    """

    def __init__(self) -> None:
        self._definitions: Dict[str, List[StructuredNode]] = {}
        self._called: Set[str] = set()

    def add_definitions(self, definitions: Iterable[StructuredNode]) -> None:
        """Index definitions by identity; nodes without one are dropped."""
        for node in definitions:
            identity = node.identity
            if not identity:
                continue
            self._definitions.setdefault(identity, []).append(node)

    def add_call_sites(
        self,
        call_sites: Iterable[StructuredNode],
        callee_field: str = config.DEFAULT_CALLEE_FIELD,
    ) -> None:
        """Record the callee name of every call site.

        Args:
            call_sites: Extracted call nodes
            callee_field: Extraction key tried after ``identifier``
        """
        for node in call_sites:
            callee = self.resolve_callee(node, callee_field)
            if callee:
                self._called.add(callee)

    @staticmethod
    def resolve_callee(node: StructuredNode, callee_field: str = config.DEFAULT_CALLEE_FIELD) -> Optional[str]:
        """Callee name from the identifier extraction, *callee_field*, or the call text."""
        if "identifier" in node.extractions:
            return node.extractions["identifier"]
        if callee_field in node.extractions:
            return node.extractions[callee_field]
        return callee_from_text(node.text)

    def get_unused_definitions(self) -> Iterator[StructuredNode]:
        """Yield definitions whose identity was never called.

        Definitions sharing an identity come out in insertion order; there
        is no ordering across identities.
        """
        for identity, nodes in self._definitions.items():
            if identity not in self._called:
                yield from nodes

    def merge(self, other: "CallGraphBuilder") -> None:
        """Fold another builder's definitions and call sites into this one."""
        for identity, nodes in other._definitions.items():
            self._definitions.setdefault(identity, []).extend(nodes)
        self._called.update(other._called)

    def is_called(self, identity: str) -> bool:
        return identity in self._called

    @property
    def definition_count(self) -> int:
        """Total definitions indexed, counting every overload."""
        return sum(len(nodes) for nodes in self._definitions.values())

    @property
    def call_site_count(self) -> int:
        """Number of distinct called names."""
        return len(self._called)


def callee_from_text(text: str) -> Optional[str]:
    """Best-effort callee name from raw call text.

    ``"foo(x, y)"`` gives ``"foo"`` and ``"this.process()"`` gives
    ``"process"``.  This is a heuristic: nested calls, parentheses inside
    string literals and multi-line receivers can all produce wrong names.
    """
    if not text:
        return None
    paren = text.find("(")
    if paren > 0:
        text = text[:paren]
    dot = text.rfind(".")
    if 0 <= dot < len(text) - 1:
        text = text[dot + 1:]
    return text.strip() or None


class FalsePositiveFilter:
    """Excludes definitions that are likely used without a visible call.

    Checks run in a fixed order and the first match wins: missing identity,
    decorator container, entry point or test name, framework hook.
    """

    def __init__(
        self,
        profile: LanguageProfile,
        exclude_decorated: bool = True,
        exclude_entry_points: bool = True,
        exclude_framework_hooks: bool = True,
    ) -> None:
        self.profile = profile
        self.exclude_decorated = exclude_decorated
        self.exclude_entry_points = exclude_entry_points
        self.exclude_framework_hooks = exclude_framework_hooks

    def should_exclude(self, node: StructuredNode) -> Tuple[bool, Optional[str]]:
        """Decide whether *node* is a likely false positive.

        Returns:
            ``(True, reason)`` when excluded, ``(False, None)`` otherwise
        """
        identity = node.identity
        if not identity:
            return True, "no identifier"

        if self.exclude_decorated and node.parent_node_type in self.profile.decorator_parent_types:
            return True, "decorated function (may be registered via decorator)"

        if self.exclude_entry_points and self.profile.is_entry_point(identity):
            return True, "entry point or test function"

        if self.exclude_framework_hooks and (
            self.profile.is_framework_hook(identity) or _is_dunder(identity)
        ):
            return True, "framework hook/magic method"

        return False, None

    def filter_unused(self, definitions: Iterable[StructuredNode]) -> Iterator[UnusedDefinition]:
        """Lazily convert the non-excluded definitions into :class:`UnusedDefinition`."""
        for node in definitions:
            excluded, reason = self.should_exclude(node)
            if excluded:
                logger.debug("Excluded %s at line %d: %s", node.identity, node.start_line, reason)
                continue
            yield UnusedDefinition(
                identifier=node.identity,
                node_type=node.node_type,
                source_file=node.source_file,
                start_line=node.start_line,
                end_line=node.end_line,
                reason=UNUSED_REASON,
                parent_node_type=node.parent_node_type,
            )


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


class DeadCodeAnalyzer:
    """Runs dead-code analysis over any number of trees of one language."""

    def __init__(
        self,
        extractor: SchemaExtractor,
        profile: LanguageProfile,
        exclude_decorated: bool = True,
        exclude_entry_points: bool = True,
        exclude_framework_hooks: bool = True,
    ) -> None:
        self.extractor = extractor
        self.profile = profile
        self.graph = CallGraphBuilder()
        self.filter = FalsePositiveFilter(
            profile,
            exclude_decorated=exclude_decorated,
            exclude_entry_points=exclude_entry_points,
            exclude_framework_hooks=exclude_framework_hooks,
        )

    def add_tree(self, root: CSTNode, source_file: Optional[str] = None) -> None:
        """Collect definitions and call sites from one parsed file.

        A profile without call node types cannot show that anything is
        called, so its trees are skipped with a warning.
        """
        if not self.profile.call_types:
            logger.warning(
                "Call node types not defined for %s; skipping %s",
                self.profile.name, source_file or "<source>",
            )
            return
        definitions = self.extractor.extract_by_type(root, self.profile.function_types)
        for node in definitions:
            node.source_file = source_file
        call_sites = self.extractor.extract_by_type(root, self.profile.call_types)
        for node in call_sites:
            node.source_file = source_file

        self.graph.add_definitions(definitions)
        self.graph.add_call_sites(call_sites, self.profile.callee_field)
        logger.debug(
            "%s: %d definition(s), %d call site(s)",
            source_file or "<source>", len(definitions), len(call_sites),
        )

    def report(self) -> DeadCodeReport:
        """Filtered unused definitions, ordered by file then line."""
        unused = sorted(
            self.filter.filter_unused(self.graph.get_unused_definitions()),
            key=lambda u: (u.source_file or "", u.start_line),
        )
        return DeadCodeReport(
            language=self.profile.name,
            unused=unused,
            definition_count=self.graph.definition_count,
            call_site_count=self.graph.call_site_count,
        )
