"""Tree-sitter parser glue: source text -> :class:`~treelens.cst.TreeSitterNode`.

Grammars come from the per-language pip packages (``tree-sitter-python``,
``tree-sitter-javascript``, ...).  Each exposes a function returning the
``Language`` capsule; tree-sitter >= 0.23 wraps it with ``Language(...)``.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Dict, List, Tuple

from tree_sitter import Language, Parser as TSParser

from .cst import TreeSitterNode
from .errors import UnsupportedLanguageError

logger = logging.getLogger(__name__)

# Language name -> (grammar module, factory function)
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "python": ("tree_sitter_python", "language"),
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}


def supported_languages() -> List[str]:
    """Language names a grammar module is mapped for."""
    return sorted(_GRAMMAR_MODULES)


def _load_language(language: str) -> Language:
    mapping = _GRAMMAR_MODULES.get(language)
    if mapping is None:
        raise UnsupportedLanguageError(
            f"No grammar module mapped for language '{language}'. "
            f"Supported: {', '.join(supported_languages())}"
        )
    mod_name, factory = mapping
    try:
        mod = importlib.import_module(mod_name)
    except ImportError as exc:
        raise UnsupportedLanguageError(
            f"Grammar package '{mod_name}' not installed for language '{language}'. "
            f"Install with: pip install {mod_name.replace('_', '-')}"
        ) from exc
    return Language(getattr(mod, factory)())


class CSTParser:
    """Parses source text for one language into an adaptable CST."""

    def __init__(self, language: str) -> None:
        self.language = language
        self._parser = TSParser(_load_language(language))
        logger.info("Loaded tree-sitter parser for %s", language)

    def parse(self, source: str | bytes) -> TreeSitterNode:
        """Parse *source* and return the root node.

        Tree-sitter is error tolerant: syntax errors surface as ``ERROR``
        nodes inside the tree rather than as exceptions.
        """
        if isinstance(source, str):
            source = source.encode("utf-8")
        tree = self._parser.parse(source)
        return TreeSitterNode(tree.root_node)

    def parse_file(self, file_path: str | Path) -> TreeSitterNode:
        """Read and parse a file.

        Raises:
            OSError: If the file cannot be read
        """
        return self.parse(Path(file_path).read_bytes())

    def __repr__(self) -> str:
        return f"CSTParser({self.language!r})"
