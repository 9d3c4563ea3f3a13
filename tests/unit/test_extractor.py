"""
Unit tests for variable extraction.
"""
import pytest
from jinja2 import TemplateSyntaxError

from templatev.extractor import (
    VariableExtractor,
    declared_names,
    extract_variables,
    unique_roots,
)
from templatev.models import VariableReference
from templatev.parser import parse_template


class TestExtractVariables:
    """Tests for extract_variables."""

    def test_extract_simple(self):
        """Test extracting a single variable."""
        refs = extract_variables("Hello ${name}!")

        assert refs == [VariableReference(root="name", lineno=1)]

    def test_extract_none(self):
        """Test template with no variables."""
        assert extract_variables("This is a static template with no variables") == []

    def test_extract_empty_template(self):
        """An empty template has no references."""
        assert extract_variables("") == []

    def test_extract_keeps_duplicates_and_paths(self):
        """Every occurrence is reported, member and index paths included."""
        refs = extract_variables("${x} and ${x.Name} and ${y[0]}")

        assert len(refs) == 3
        assert [r.root for r in refs] == ["x", "x", "y"]
        assert [r.expression for r in refs] == ["x", "x.Name", "y[0]"]
        assert refs[1].path == (".Name",)
        assert refs[2].path == ("[0]",)

    def test_extract_duplicate_names(self):
        """Test that duplicate variables are all listed."""
        refs = extract_variables("${name} said hello. ${name} waved goodbye.")

        assert [r.root for r in refs] == ["name", "name"]

    def test_extract_deep_path(self):
        """A chain of accesses is one reference with the full path."""
        refs = extract_variables("${user.address['city'].zip}")

        assert len(refs) == 1
        assert refs[0].root == "user"
        assert refs[0].expression == "user.address['city'].zip"

    def test_extract_variable_used_as_subscript(self):
        """Variables inside an index are discovered on their own."""
        refs = extract_variables("${rows[index]}")

        assert [r.expression for r in refs] == ["rows[index]", "index"]

    def test_extract_nested_subscript_path(self):
        """Index expressions that are themselves accesses are rendered in the path."""
        refs = extract_variables("${rows[cfg.row]}")

        assert [r.expression for r in refs] == ["rows[cfg.row]", "cfg.row"]

    def test_extract_with_filters(self):
        """Test extracting variables that use filters."""
        refs = extract_variables("${name|upper} has ${count|default(fallback)} items")

        assert [r.root for r in refs] == ["name", "count", "fallback"]

    def test_extract_call_arguments(self):
        """Variables passed to calls are discovered."""
        refs = extract_variables("${ fmt.join(parts, sep) }")

        assert [r.expression for r in refs] == ["fmt.join", "parts", "sep"]

    def test_extract_access_on_expression(self):
        """Accesses on non-variable targets still visit the target."""
        refs = extract_variables("${ (a ~ b).upper }")

        assert [r.root for r in refs] == ["a", "b"]

    def test_extract_multiline_line_numbers(self):
        """Test extracting variables from multiline template."""
        template = """Hello ${name},

You have ${count} new messages.

Best regards,
${sender}"""
        refs = extract_variables(template)

        assert [(r.root, r.lineno) for r in refs] == [("name", 1), ("count", 3), ("sender", 6)]

    def test_extract_skips_assignment_targets(self):
        """Loop and set targets are bindings, not reads."""
        refs = extract_variables(
            "{% set greeting = 'hi' %}{% for user in users %}${greeting} ${user.name}{% endfor %}"
        )

        assert [r.expression for r in refs] == ["users", "greeting", "user.name"]

    def test_extract_conditional_in_source_order(self):
        """a if b else c is read left to right."""
        refs = extract_variables("${a if b else c}")

        assert [r.root for r in refs] == ["a", "b", "c"]

    def test_extract_loop_filter_before_body(self):
        """The loop's if clause is written before its body."""
        refs = extract_variables("{% for x in xs if x.ok %}${y}{% endfor %}")

        assert [r.expression for r in refs] == ["xs", "x.ok", "y"]

    def test_extract_ignores_comments(self):
        """Commented-out references are not extracted."""
        assert extract_variables("{# ${hidden} #}visible") == []

    def test_extract_is_idempotent(self, sample_template):
        """Extracting twice gives identical output."""
        assert extract_variables(sample_template) == extract_variables(sample_template)

    def test_extract_sample_template(self, sample_template):
        """Test a realistic config template."""
        refs = extract_variables(sample_template)

        assert [r.expression for r in refs] == [
            "server.host", "server.port", "name", "users", "user",
        ]

    def test_extract_syntax_error_propagates(self):
        """Unparseable templates raise instead of returning an empty list."""
        with pytest.raises(TemplateSyntaxError):
            extract_variables("Hello ${name")


class TestDeclaredNames:
    """Tests for declared_names."""

    def test_declared_names(self):
        """set/for targets and macro parameters are declared."""
        tree = parse_template(
            "{% set a = 1 %}{% for b in items %}${loop.index}{% endfor %}"
            "{% macro m(c) %}${c}{% endmacro %}"
        )

        assert declared_names(tree) == ["a", "loop", "b", "c"]

    def test_no_declared_names(self):
        """A template without blocks declares nothing."""
        assert declared_names(parse_template("${a}")) == []


class TestVariableExtractor:
    """Tests for the VariableExtractor class."""

    def test_extract_with_declared(self):
        """One parse gives both references and local bindings."""
        extractor = VariableExtractor()
        refs, declared = extractor.extract_with_declared("{% for x in xs %}${x}{% endfor %}")

        assert [r.root for r in refs] == ["xs", "x"]
        assert declared == ["loop", "x"]

    def test_analyse_reports_free_names(self):
        """Free names come from Jinja2's scope analysis of the same parse."""
        refs, declared, free = VariableExtractor().analyse("${x}{% set x = 1 %}{% set y = 2 %}${y}")

        assert [r.root for r in refs] == ["x", "y"]
        assert declared == ["x", "y"]
        assert free == {"x"}

    def test_declared(self):
        """declared() parses and lists local bindings."""
        assert VariableExtractor().declared("{% set x = 1 %}") == ["x"]


class TestUniqueRoots:
    """Tests for unique_roots."""

    def test_unique_roots_preserves_first_appearance(self):
        """Duplicates are removed, first-appearance order kept."""
        refs = extract_variables("${b} ${a.x} ${b[0]} ${a}")

        assert unique_roots(refs) == ["b", "a"]

    def test_unique_roots_empty(self):
        """No references give no names."""
        assert unique_roots([]) == []


class TestVariableReference:
    """Tests for the VariableReference model."""

    def test_str_is_expression(self):
        """str() renders the reference as written."""
        ref = VariableReference(root="x", path=(".a", "[0]"))

        assert str(ref) == "x.a[0]"

    def test_reference_is_frozen(self):
        """References cannot be modified."""
        ref = VariableReference(root="x")

        with pytest.raises(Exception):
            ref.root = "y"
