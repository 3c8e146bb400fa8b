"""Configuration paths and analysis defaults for treelens."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("TREELENS_HOME", str(Path.home() / ".treelens"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Bundled per-language tables (function / call / decorator / hook names)
LANGUAGE_DATA_FILE = Path(__file__).parent / "data" / "languages.toml"

# Differ defaults
DEFAULT_SUMMARY_LENGTH = 100
DEFAULT_RENAME_SPAN_TOLERANCE = 2

# Callee field used when a language profile does not name one
DEFAULT_CALLEE_FIELD = "function"
