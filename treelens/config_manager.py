"""Configuration manager for treelens using TOML files."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config

logger = logging.getLogger(__name__)


# Defaults applied when the config file is missing, unreadable or partial
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "diff": {
        "include_full_text": False,
        "summary_length": config.DEFAULT_SUMMARY_LENGTH,
        "rename_span_tolerance": config.DEFAULT_RENAME_SPAN_TOLERANCE,
    },
    "deadcode": {
        "exclude_decorated": True,
        "exclude_entry_points": True,
        "exclude_framework_hooks": True,
    },
}


def _config_path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else config.CONFIG_FILE


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file does not exist or cannot be decoded.
    """
    config_file = _config_path(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, exc)
        return {}


def _load_section(name: str, path: Optional[Path]) -> Dict[str, Any]:
    section = copy.deepcopy(DEFAULT_CONFIG[name])
    stored = load_full_config(path).get(name, {})
    if isinstance(stored, dict):
        for key, value in stored.items():
            if key in section:
                section[key] = value
            else:
                logger.debug("Unknown key '%s' in [%s] section", key, name)
    return section


def load_diff_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[diff]`` section merged over its defaults."""
    return _load_section("diff", path)


def load_deadcode_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the ``[deadcode]`` section merged over its defaults.

    Returns:
        Dictionary with ``exclude_decorated``, ``exclude_entry_points`` and
        ``exclude_framework_hooks`` flags.
    """
    return _load_section("deadcode", path)


def load_language_overrides(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Load per-language table overrides from the ``[languages.*]`` tables.

    Example::

        [languages.python]
        framework_hooks = ["setUp", "tearDown"]

    Returns:
        Mapping of language name to the raw override table.
    """
    stored = load_full_config(path).get("languages", {})
    if not isinstance(stored, dict):
        logger.warning("Ignoring [languages] config: expected a table")
        return {}
    return {name: table for name, table in stored.items() if isinstance(table, dict)}


def save_section(name: str, values: Dict[str, Any], path: Optional[Path] = None) -> bool:
    """Write one section into the TOML file, preserving all other sections.

    Args:
        name: Section name (``diff``, ``deadcode`` or ``languages``)
        values: Values to store in that section

    Returns:
        True if saved successfully, False otherwise
    """
    config_file = _config_path(path)
    full = load_full_config(config_file)
    full[name] = values
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            toml.dump(full, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config file %s: %s", config_file, exc)
        return False
