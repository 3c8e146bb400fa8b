"""One-stop facade binding parser, schema, extractor and differ for a language."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional

from . import config_manager
from .cst import TreeSitterNode
from .deadcode import DeadCodeAnalyzer
from .differ import TreeDiffer
from .extractor import SchemaExtractor
from .languages import LanguageProfile, get_profile
from .models import DeadCodeReport, DiffResult, StructuredNode
from .parser import CSTParser
from .schema import SchemaModel

logger = logging.getLogger(__name__)


class Lens:
    """Analyse source code of one language.

    Example::

        lens = Lens.from_schema_file("javascript", "node-types.json")
        result = lens.diff(old_code, new_code)
        report = lens.dead_code({"app.js": code})

    Diff and dead-code defaults come from the ``[diff]`` and ``[deadcode]``
    sections of the user config file.
    """

    def __init__(self, language: str, schema: SchemaModel, profile: Optional[LanguageProfile] = None) -> None:
        self.language = language
        self.schema = schema
        self.parser = CSTParser(language)
        self.extractor = SchemaExtractor(schema)
        self._profile = profile

        self.diff_options = config_manager.load_diff_config()
        self.differ = TreeDiffer(
            schema,
            summary_length=self.diff_options["summary_length"],
            rename_span_tolerance=self.diff_options["rename_span_tolerance"],
        )
        logger.info("Lens ready for %s (%d node types)", language, len(schema))

    @classmethod
    def from_schema_file(
        cls,
        language: str,
        schema_path: str | Path,
        profile: Optional[LanguageProfile] = None,
    ) -> "Lens":
        """Create a lens from a ``node-types.json`` file on disk."""
        return cls(language, SchemaModel.from_file(schema_path), profile)

    @property
    def profile(self) -> LanguageProfile:
        """The language profile, loaded on first use.

        Raises:
            UnsupportedLanguageError: If no profile exists for this language
        """
        if self._profile is None:
            self._profile = get_profile(self.language)
        return self._profile

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def parse(self, code: str | bytes) -> TreeSitterNode:
        return self.parser.parse(code)

    def extract(self, code: str, recurse: bool = False) -> StructuredNode:
        """Extract the root of *code*, optionally with all significant descendants."""
        return self.extractor.extract_all(self.parse(code), recurse=recurse)

    def find(self, code: str, node_types: List[str]) -> List[StructuredNode]:
        """All nodes of the given types, in document order."""
        return self.extractor.extract_by_type(self.parse(code), node_types)

    def find_functions(self, code: str) -> List[StructuredNode]:
        return self.find(code, list(self.profile.function_types))

    def find_call_sites(self, code: str, source_file: Optional[str] = None) -> List[StructuredNode]:
        """Call nodes of *code*, tagged with *source_file*."""
        calls = self.find(code, list(self.profile.call_types))
        for node in calls:
            node.source_file = source_file
        return calls

    def find_dependencies(self, code: str) -> List[StructuredNode]:
        """Import / include style nodes of *code*."""
        return self.find(code, list(self.profile.dependency_types))

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    def diff(
        self,
        old_code: str,
        new_code: str,
        path_prefix: str = "",
        include_full_text: Optional[bool] = None,
    ) -> DiffResult:
        """Semantic diff between two versions of source code.

        Args:
            old_code: Previous version
            new_code: Current version
            path_prefix: Prefix for every change path
            include_full_text: Override the configured ``include_full_text``
        """
        if include_full_text is None:
            include_full_text = bool(self.diff_options["include_full_text"])
        return self.differ.diff(
            self.parse(old_code),
            self.parse(new_code),
            path_prefix=path_prefix,
            include_full_text=include_full_text,
        )

    def diff_files(
        self,
        old_path: str | Path,
        new_path: str | Path,
        path_prefix: str = "",
        include_full_text: Optional[bool] = None,
    ) -> DiffResult:
        """Semantic diff between two files.

        Raises:
            OSError: If either file cannot be read
        """
        if include_full_text is None:
            include_full_text = bool(self.diff_options["include_full_text"])
        return self.differ.diff(
            self.parser.parse_file(old_path),
            self.parser.parse_file(new_path),
            path_prefix=path_prefix,
            include_full_text=include_full_text,
        )

    # ------------------------------------------------------------------
    # Dead code
    # ------------------------------------------------------------------

    def dead_code(self, sources: Mapping[str, str], **options: bool) -> DeadCodeReport:
        """Find definitions across *sources* that are never called.

        Args:
            sources: File label -> source text; the labels become
                ``source_file`` on every reported definition
            **options: ``exclude_decorated``, ``exclude_entry_points`` or
                ``exclude_framework_hooks`` overriding the config file
        """
        settings = config_manager.load_deadcode_config()
        settings.update(options)
        analyzer = DeadCodeAnalyzer(self.extractor, self.profile, **settings)
        for label, code in sources.items():
            analyzer.add_tree(self.parse(code), source_file=label)
        report = analyzer.report()
        logger.debug("Dead code (%s): %d unused of %d", self.language, report.unused_count, report.definition_count)
        return report

    def __repr__(self) -> str:
        return f"Lens({self.language!r}, {self.schema!r})"
