"""Tests for call-graph building, false-positive filtering and dead-code analysis."""

from typing import Dict, Optional

import pytest

from treelens.deadcode import (
    UNUSED_REASON,
    CallGraphBuilder,
    DeadCodeAnalyzer,
    FalsePositiveFilter,
    callee_from_text,
)
from treelens.extractor import SchemaExtractor
from treelens.languages import LanguageProfile
from treelens.models import StructuredNode
from treelens.parser import CSTParser
from treelens.schema import SchemaModel

from conftest import FakeNode


def make_node(
    identity: Optional[str],
    node_type: str = "function_declaration",
    line: int = 1,
    text: str = "",
    parent: Optional[str] = None,
    extractions: Optional[Dict[str, str]] = None,
) -> StructuredNode:
    if extractions is None:
        extractions = {"identifier": identity} if identity else {}
    return StructuredNode(
        node_type=node_type,
        start_line=line,
        end_line=line,
        start_column=0,
        end_column=len(text),
        text=text,
        extractions=extractions,
        parent_node_type=parent,
    )


def call(text: str, **extractions: str) -> StructuredNode:
    return make_node(None, node_type="call_expression", text=text, extractions=dict(extractions))


class TestCallGraphBuilder:

    def test_unused_definitions(self):
        builder = CallGraphBuilder()
        builder.add_definitions([make_node("used"), make_node("unused"), make_node("alsoUnused")])
        builder.add_call_sites([call("used()")])

        unused = {n.identity for n in builder.get_unused_definitions()}
        assert unused == {"unused", "alsoUnused"}

    def test_definitions_without_identity_are_dropped(self):
        builder = CallGraphBuilder()
        builder.add_definitions([make_node(None), make_node("")])
        assert builder.definition_count == 0
        assert list(builder.get_unused_definitions()) == []

    def test_overloads_share_an_identity(self):
        builder = CallGraphBuilder()
        builder.add_definitions([make_node("f", line=1), make_node("f", line=5), make_node("g")])
        assert builder.definition_count == 3

        lines = [n.start_line for n in builder.get_unused_definitions() if n.identity == "f"]
        assert lines == [1, 5]

    def test_callee_priority(self):
        builder = CallGraphBuilder()
        builder.add_call_sites([
            call("ignored()", identifier="byIdentifier", function="notThis"),
            call("ignored()", function="byField"),
            call("byText(1, 2)"),
        ])
        assert builder.is_called("byIdentifier")
        assert builder.is_called("byField")
        assert builder.is_called("byText")
        assert not builder.is_called("notThis")
        assert not builder.is_called("ignored")
        assert builder.call_site_count == 3

    def test_custom_callee_field(self):
        builder = CallGraphBuilder()
        builder.add_call_sites([call("obj.go()", name="go")], callee_field="name")
        assert builder.is_called("go")

    def test_called_names_are_a_flat_set(self):
        builder = CallGraphBuilder()
        builder.add_call_sites([call("run()"), call("a.run()"), call("b.run()")])
        assert builder.call_site_count == 1

    def test_merge(self):
        left, right = CallGraphBuilder(), CallGraphBuilder()
        left.add_definitions([make_node("helper"), make_node("orphan")])
        right.add_definitions([make_node("helper", line=9)])
        right.add_call_sites([call("helper()")])

        left.merge(right)

        assert left.definition_count == 3
        assert [n.identity for n in left.get_unused_definitions()] == ["orphan"]


@pytest.mark.parametrize("text,expected", [
    ("foo()", "foo"),
    ("foo(x, y)", "foo"),
    ("this.process()", "process"),
    ("a.b.c(d.e)", "c"),
    ("  spaced  (1)", "spaced"),
    ("trailing.", "trailing."),
    ("(lambda)()", "(lambda)()"),
    ("", None),
])
def test_callee_from_text(text, expected):
    assert callee_from_text(text) == expected


class TestFalsePositiveFilter:

    def test_missing_identifier(self, python_profile):
        excluded, reason = FalsePositiveFilter(python_profile).should_exclude(make_node(None))
        assert excluded
        assert reason == "no identifier"

    def test_main_is_an_entry_point(self, python_profile):
        fp_filter = FalsePositiveFilter(
            python_profile,
            exclude_decorated=False,
            exclude_entry_points=True,
            exclude_framework_hooks=False,
        )
        excluded, reason = fp_filter.should_exclude(make_node("main"))
        assert excluded
        assert "entry point" in reason

    def test_entry_point_names_ignore_case(self, javascript_profile):
        assert FalsePositiveFilter(javascript_profile).should_exclude(make_node("Main"))[0]

    @pytest.mark.parametrize("name", ["test_parse", "TEST_upper", "TestWidget", "parse_test", "WidgetTests", "WidgetTest"])
    def test_test_names(self, python_profile, name):
        excluded, reason = FalsePositiveFilter(python_profile).should_exclude(make_node(name))
        assert excluded
        assert reason == "entry point or test function"

    def test_entry_points_toggle(self, python_profile):
        fp_filter = FalsePositiveFilter(python_profile, exclude_entry_points=False)
        assert fp_filter.should_exclude(make_node("main")) == (False, None)

    def test_dunder_fallback(self, python_profile):
        fp_filter = FalsePositiveFilter(python_profile, exclude_entry_points=False)
        # Listed in the Python hook table
        assert fp_filter.should_exclude(make_node("__str__"))[0]
        # Not listed anywhere, caught by the generic fallback
        excluded, reason = fp_filter.should_exclude(make_node("__post_init__"))
        assert excluded
        assert reason == "framework hook/magic method"

    def test_dunder_fallback_applies_to_any_language(self):
        bare = LanguageProfile(name="bare")
        assert FalsePositiveFilter(bare).should_exclude(make_node("__str__"))[0]

    def test_framework_hooks_toggle(self, python_profile):
        fp_filter = FalsePositiveFilter(python_profile, exclude_framework_hooks=False)
        assert fp_filter.should_exclude(make_node("__str__")) == (False, None)

    def test_language_specific_hooks(self, javascript_profile, python_profile):
        assert FalsePositiveFilter(javascript_profile).should_exclude(make_node("componentDidMount"))[0]
        assert not FalsePositiveFilter(python_profile).should_exclude(make_node("componentDidMount"))[0]

    def test_decorated_toggle(self, python_profile):
        decorated = make_node("index", node_type="function_definition", parent="decorated_definition")

        excluded, reason = FalsePositiveFilter(python_profile).should_exclude(decorated)
        assert excluded
        assert reason.startswith("decorated function")

        keep = FalsePositiveFilter(python_profile, exclude_decorated=False)
        assert keep.should_exclude(decorated) == (False, None)
        assert [u.identifier for u in keep.filter_unused([decorated])] == ["index"]

    def test_checks_run_in_order(self, python_profile):
        # Decorated wins over the entry point check
        node = make_node("main", parent="decorated_definition")
        assert FalsePositiveFilter(python_profile).should_exclude(node)[1].startswith("decorated")

    def test_filter_unused_is_lazy(self, python_profile):
        nodes = iter([make_node("helper", line=3, text="def helper(): pass")])
        stream = FalsePositiveFilter(python_profile).filter_unused(nodes)
        first = next(stream)
        assert first.identifier == "helper"
        assert first.reason == UNUSED_REASON
        assert first.start_line == 3
        assert str(first) == "helper (function_declaration) at line 3 - No call sites found"


class TestDeadCodeAnalyzer:

    def test_python_report(self, py_schema, python_profile, sample_python_code):
        analyzer = DeadCodeAnalyzer(SchemaExtractor(py_schema), python_profile)
        analyzer.add_tree(CSTParser("python").parse(sample_python_code), source_file="app.py")
        report = analyzer.report()

        assert [u.identifier for u in report.unused] == ["unused", "render"]
        assert all(u.source_file == "app.py" for u in report.unused)
        assert report.language == "python"
        assert report.definition_count == 8
        assert report.unused_count == 2

    def test_python_report_without_decorator_exclusion(self, py_schema, python_profile, sample_python_code):
        analyzer = DeadCodeAnalyzer(SchemaExtractor(py_schema), python_profile, exclude_decorated=False)
        analyzer.add_tree(CSTParser("python").parse(sample_python_code), source_file="app.py")
        assert [u.identifier for u in analyzer.report().unused] == ["unused", "render", "index"]

    def test_calls_across_files(self, js_schema, javascript_profile):
        parser = CSTParser("javascript")
        analyzer = DeadCodeAnalyzer(SchemaExtractor(js_schema), javascript_profile)
        analyzer.add_tree(parser.parse("function helper() {}\nfunction spare() {}"), source_file="b.js")
        analyzer.add_tree(parser.parse("function leftover() {}\nhelper();"), source_file="a.js")

        report = analyzer.report()

        assert [(u.source_file, u.identifier) for u in report.unused] == [("a.js", "leftover"), ("b.js", "spare")]
        assert report.definition_count == 3
        assert report.call_site_count == 1

    def test_empty_input(self, js_schema, javascript_profile):
        analyzer = DeadCodeAnalyzer(SchemaExtractor(js_schema), javascript_profile)
        analyzer.add_tree(CSTParser("javascript").parse(""))
        report = analyzer.report()
        assert report.unused == []
        assert report.to_dict()["stats"] == {"definitions": 0, "call_sites": 0, "unused": 0}

    def test_profile_without_call_types_is_skipped(self, js_schema, caplog):
        profile = LanguageProfile(name="toy", function_types=("function_declaration",))
        analyzer = DeadCodeAnalyzer(SchemaExtractor(js_schema), profile)
        analyzer.add_tree(CSTParser("javascript").parse("function lonely() {}"), source_file="toy.js")

        report = analyzer.report()
        assert report.unused == []
        assert report.definition_count == 0
        assert "Call node types not defined for toy" in caplog.text


@pytest.fixture
def bash_schema() -> SchemaModel:
    return SchemaModel.from_entries([
        {"type": "program", "named": True},
        {"type": "word", "named": True},
        {"type": "function_definition", "named": True, "fields": {"name": {"types": [{"type": "word", "named": True}]}}},
        {"type": "command", "named": True, "fields": {"name": {"types": [{"type": "word", "named": True}]}}},
    ])


def bash_tree(*calls: str) -> FakeNode:
    greet = FakeNode(
        "function_definition", "greet() { echo hi; }", start=(0, 0),
        fields={"name": FakeNode("word", "greet", start=(0, 0))},
    )
    commands = [
        FakeNode("command", name, start=(row, 0), fields={"name": FakeNode("word", name, start=(row, 0))})
        for row, name in enumerate(calls, start=1)
    ]
    return FakeNode("program", start=(0, 0), end=(len(calls) + 1, 0), children=[greet, *commands])


class TestBashCommands:

    def test_called_function_is_used(self, bash_schema, profiles):
        analyzer = DeadCodeAnalyzer(SchemaExtractor(bash_schema), profiles["bash"])
        analyzer.add_tree(bash_tree("greet"), source_file="greet.sh")

        report = analyzer.report()
        assert report.unused == []
        assert report.definition_count == 1
        assert report.call_site_count == 1

    def test_uncalled_function_is_reported(self, bash_schema, profiles):
        analyzer = DeadCodeAnalyzer(SchemaExtractor(bash_schema), profiles["bash"])
        analyzer.add_tree(bash_tree("echo"), source_file="greet.sh")
        assert [(u.source_file, u.identifier) for u in analyzer.report().unused] == [("greet.sh", "greet")]
