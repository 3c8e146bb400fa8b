"""Pytest configuration and fixtures for treelens tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence, Tuple

import pytest

from treelens.languages import LanguageProfile, load_profiles
from treelens.schema import SchemaModel

SCHEMA_DIR = Path(__file__).parent / "fixtures" / "schemas"


class FakeNode:
    """Pure-Python stand-in for a parser node.

    Field children are also positional children unless *children* is given
    explicitly.  The end position defaults to the start plus the text length
    on the same row.
    """

    def __init__(
        self,
        type: str,
        text: str = "",
        start: Tuple[int, int] = (0, 0),
        end: Optional[Tuple[int, int]] = None,
        children: Optional[Sequence["FakeNode"]] = None,
        fields: Optional[Dict[str, "FakeNode"]] = None,
        named: bool = True,
    ):
        self.type = type
        self.text = text
        self.start_row, self.start_column = start
        if end is None:
            end = (start[0], start[1] + len(text))
        self.end_row, self.end_column = end
        self.is_named = named
        self._fields = dict(fields or {})
        self.children: List[FakeNode] = list(children) if children is not None else list(self._fields.values())

    def child_for_field_name(self, name: str) -> Optional["FakeNode"]:
        return self._fields.get(name)

    def __repr__(self) -> str:
        return f"FakeNode({self.type!r}, {self.text!r})"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Point the config file at an empty temp location for every test.

    Keeps a developer's ~/.treelens/config.toml from leaking into results.
    """
    monkeypatch.setattr("treelens.config.CONFIG_FILE", tmp_path / "treelens-home" / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def js_schema() -> SchemaModel:
    return SchemaModel.from_file(SCHEMA_DIR / "javascript.json")


@pytest.fixture
def py_schema() -> SchemaModel:
    return SchemaModel.from_file(SCHEMA_DIR / "python.json")


@pytest.fixture
def profiles() -> Dict[str, LanguageProfile]:
    """Bundled profiles without user overrides."""
    return load_profiles(overrides={})


@pytest.fixture
def python_profile(profiles) -> LanguageProfile:
    return profiles["python"]


@pytest.fixture
def javascript_profile(profiles) -> LanguageProfile:
    return profiles["javascript"]


@pytest.fixture
def js_lens(js_schema, javascript_profile):
    from treelens.lens import Lens

    return Lens("javascript", js_schema, javascript_profile)


@pytest.fixture
def py_lens(py_schema, python_profile):
    from treelens.lens import Lens

    return Lens("python", py_schema, python_profile)


@pytest.fixture
def sample_python_code() -> str:
    """Python module with used, unused and conventionally-invoked definitions."""
    return '''import os


def used():
    return 1


def unused():
    return 2


def main():
    print(used())


class Widget:
    def __init__(self):
        pass

    def __str__(self):
        return "widget"

    def render(self):
        return str(self)


@app.route("/")
def index():
    return "ok"


def test_something():
    assert used() == 1
'''


@pytest.fixture
def sample_javascript_code() -> str:
    return """import { readFile } from "fs";

function used() { return 1; }
function unused() { return 2; }
function main() { console.log(used()); }

class Greeter {
  constructor() {}
  greet() { return this.format(); }
  format() { return 1; }
}
"""


@pytest.fixture
def fake_function():
    """Factory for a fake function declaration node with a ``name`` field."""

    def _make(name: str, row: int = 0, rows: int = 0, body: str = "{}") -> FakeNode:
        text = f"function {name}() {body}"
        ident = FakeNode("identifier", name, start=(row, 9))
        block_col = 12 + len(name)
        block = FakeNode("statement_block", body, start=(row, block_col), end=(row + rows, block_col + len(body)))
        return FakeNode(
            "function_declaration",
            text,
            start=(row, 0),
            end=(row + rows, len(text)),
            fields={"name": ident, "body": block},
        )

    return _make
