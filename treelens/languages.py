"""Per-language profiles: node types and naming tables used by dead-code analysis.

Profiles are plain data.  The bundled tables live in ``data/languages.toml``;
user overrides from the ``[languages.<name>]`` tables of the config file are
layered on top key by key.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import toml

from . import config, config_manager
from .errors import UnsupportedLanguageError

logger = logging.getLogger(__name__)

_LIST_KEYS = (
    "function_types",
    "call_types",
    "dependency_types",
    "decorator_parent_types",
    "framework_hooks",
    "entry_point_names",
    "entry_point_patterns",
)


@dataclass(frozen=True)
class LanguageProfile:
    """Static tables describing one language's CST and naming conventions."""
    name: str
    function_types: Tuple[str, ...] = ()
    call_types: Tuple[str, ...] = ()
    callee_field: str = config.DEFAULT_CALLEE_FIELD
    dependency_types: Tuple[str, ...] = ()
    decorator_parent_types: FrozenSet[str] = frozenset()
    framework_hooks: FrozenSet[str] = frozenset()
    # Stored lowercased; names are compared case-insensitively
    entry_point_names: FrozenSet[str] = frozenset()
    entry_point_patterns: Tuple[re.Pattern[str], ...] = field(default=(), compare=False)

    @classmethod
    def from_table(cls, name: str, table: Dict[str, Any]) -> "LanguageProfile":
        """Build a profile from a merged TOML table.

        Malformed values are logged and ignored rather than raised, so a bad
        user override never hides the bundled tables for other keys.
        """
        lists: Dict[str, List[str]] = {}
        for key in _LIST_KEYS:
            lists[key] = _string_list(table.get(key, []), f"{name}.{key}")

        callee_field = table.get("callee_field", config.DEFAULT_CALLEE_FIELD)
        if not isinstance(callee_field, str) or not callee_field:
            logger.warning("Ignoring invalid callee_field for %s: %r", name, callee_field)
            callee_field = config.DEFAULT_CALLEE_FIELD

        patterns: List[re.Pattern[str]] = []
        for raw in lists["entry_point_patterns"]:
            try:
                patterns.append(re.compile(raw))
            except re.error as exc:
                logger.warning("Ignoring invalid entry point pattern %r for %s: %s", raw, name, exc)

        return cls(
            name=name,
            function_types=tuple(lists["function_types"]),
            call_types=tuple(lists["call_types"]),
            callee_field=callee_field,
            dependency_types=tuple(lists["dependency_types"]),
            decorator_parent_types=frozenset(lists["decorator_parent_types"]),
            framework_hooks=frozenset(lists["framework_hooks"]),
            entry_point_names=frozenset(n.lower() for n in lists["entry_point_names"]),
            entry_point_patterns=tuple(patterns),
        )

    def is_entry_point(self, name: str) -> bool:
        """True for conventional entry points and test-style names."""
        if name.lower() in self.entry_point_names:
            return True
        return any(pattern.search(name) for pattern in self.entry_point_patterns)

    def is_framework_hook(self, name: str) -> bool:
        return name in self.framework_hooks


def _string_list(value: Any, where: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        logger.warning("Ignoring %s: expected a list of strings, got %r", where, value)
        return []
    return list(value)


def _read_tables(path: Path) -> Tuple[Dict[str, Any], Dict[str, Dict[str, Any]]]:
    document = toml.load(path)
    defaults = document.get("defaults", {})
    languages = document.get("languages", {})
    return defaults, {name: table for name, table in languages.items() if isinstance(table, dict)}


def load_profiles(
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, LanguageProfile]:
    """Load every language profile.

    Args:
        path: Language table file; defaults to the bundled ``languages.toml``
        overrides: Per-language tables layered over the file's tables.  An
            override for a language the file does not know is accepted only
            when it names ``function_types``.

    Returns:
        Mapping of language name to profile
    """
    defaults, tables = _read_tables(Path(path) if path is not None else config.LANGUAGE_DATA_FILE)

    for name, table in (overrides or {}).items():
        if name in tables:
            tables[name] = {**tables[name], **table}
        elif "function_types" in table:
            tables[name] = dict(table)
        else:
            logger.warning("Skipping override for unknown language '%s' (no function_types)", name)

    profiles = {name: LanguageProfile.from_table(name, {**defaults, **table}) for name, table in tables.items()}
    logger.debug("Loaded %d language profiles", len(profiles))
    return profiles


def available_languages(path: Optional[Path] = None) -> List[str]:
    """Names of the languages with a profile, sorted."""
    return sorted(load_profiles(path, config_manager.load_language_overrides()))


def get_profile(
    language: str,
    path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> LanguageProfile:
    """Look up one language's profile.

    User overrides from the config file apply unless *overrides* is given.

    Raises:
        UnsupportedLanguageError: If no profile exists for *language*
    """
    if overrides is None:
        overrides = config_manager.load_language_overrides()
    profiles = load_profiles(path, overrides)
    profile = profiles.get(language)
    if profile is None:
        raise UnsupportedLanguageError(
            f"No language profile for '{language}'. Available: {', '.join(sorted(profiles))}"
        )
    return profile
