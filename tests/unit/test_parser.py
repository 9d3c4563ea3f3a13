"""
Unit tests for template parsing.
"""
import pytest
from jinja2 import TemplateSyntaxError

from templatev.models import SyntaxConfig
from templatev.nodes import (
    Constant,
    IndexAccess,
    Interpolation,
    Literal,
    MemberAccess,
    NodeVisitor,
    Other,
    TemplateTree,
    VariableAccess,
    walk,
)
from templatev.parser import create_environment, parse_template


class TestParseTemplate:
    """Tests for parse_template."""

    def test_parse_simple_interpolation(self):
        """Text and slots become Literal and Interpolation nodes."""
        tree = parse_template("Hello ${name}!")

        assert isinstance(tree, TemplateTree)
        assert [type(n) for n in tree.body] == [Literal, Interpolation, Literal]
        assert tree.body[0].text == "Hello "
        assert tree.body[1].expression == VariableAccess(name="name", ctx="load", lineno=1)
        assert tree.body[2].text == "!"

    def test_parse_plain_text(self):
        """Text without delimiters is a single literal."""
        tree = parse_template("cost: $5 {not a variable}")

        assert tree.body == (Literal(text="cost: $5 {not a variable}", lineno=1),)

    def test_parse_empty_template(self):
        """An empty template has an empty body."""
        assert parse_template("").body == ()

    def test_parse_member_access(self):
        """x.Name is a member access on a variable."""
        tree = parse_template("${x.Name}")
        expression = tree.body[0].expression

        assert isinstance(expression, MemberAccess)
        assert expression.member == "Name"
        assert expression.target.name == "x"

    def test_parse_index_access(self):
        """y[0] is an index access with a constant index."""
        tree = parse_template("${y[0]}")
        expression = tree.body[0].expression

        assert isinstance(expression, IndexAccess)
        assert expression.target.name == "y"
        assert expression.index == Constant(value=0, lineno=1)

    def test_parse_for_loop_keeps_assignment_context(self):
        """Loop targets are stores, loop iterables are loads."""
        tree = parse_template("{% for item in items %}${item}{% endfor %}")
        loop = tree.body[0]

        assert isinstance(loop, Other)
        assert loop.label == "For"
        names = [(n.name, n.ctx) for n in walk(loop) if isinstance(n, VariableAccess)]
        assert names == [("item", "store"), ("items", "load"), ("item", "load")]

    def test_parse_filter_is_other(self):
        """Filters are kept as Other nodes with their operand as a child."""
        tree = parse_template("${name|upper}")
        expression = tree.body[0].expression

        assert isinstance(expression, Other)
        assert expression.label == "Filter"
        assert expression.children()[0].name == "name"

    def test_parse_line_numbers(self):
        """Nodes carry the line they start on."""
        tree = parse_template("first\nsecond ${value}\n")
        slot = [n for n in tree.body if isinstance(n, Interpolation)][0]

        assert slot.lineno == 2
        assert slot.expression.lineno == 2

    def test_parse_does_not_evaluate(self):
        """Parsing never calls anything in the template."""
        tree = parse_template("${ explode() }")

        assert tree.body[0].expression.label == "Call"

    def test_unbalanced_delimiter_raises(self):
        """A slot that is never closed is a syntax error."""
        with pytest.raises(TemplateSyntaxError):
            parse_template("Hello ${name")

    def test_unclosed_block_raises(self):
        """A block without its end tag is a syntax error."""
        with pytest.raises(TemplateSyntaxError):
            parse_template("{% for x in xs %}${x}")

    def test_custom_syntax(self):
        """Delimiters come from the syntax config."""
        environment = create_environment(SyntaxConfig(variable_start="{{", variable_end="}}"))
        tree = parse_template("Hi {{ name }} and ${literal}", environment)

        slots = [n for n in tree.body if isinstance(n, Interpolation)]
        assert len(slots) == 1
        assert slots[0].expression.name == "name"


class TestCreateEnvironment:
    """Tests for create_environment."""

    def test_unknown_undefined_policy(self):
        """Only known undefined policies are accepted."""
        with pytest.raises(ValueError, match="Unknown undefined policy"):
            create_environment(undefined="lenient")

    def test_keeps_trailing_newline(self):
        """Rendering preserves the final newline by default."""
        environment = create_environment()

        assert environment.from_string("a=${a}\n").render(a=1) == "a=1\n"


class TestNodeVisitor:
    """Tests for tree traversal."""

    def test_generic_visit_reaches_nested_nodes(self):
        """Fallback visiting recurses into every child."""
        seen = []

        class NameVisitor(NodeVisitor):
            def visit_VariableAccess(self, node):
                seen.append(node.name)

        tree = parse_template("${ a[b.c] | default(d) }")
        NameVisitor().visit(tree)

        assert seen == ["a", "b", "d"]

    def test_walk_is_depth_first(self):
        """walk yields parents before children, in source order."""
        tree = parse_template("${x.y}")
        kinds = [type(n).__name__ for n in walk(tree)]

        assert kinds == ["TemplateTree", "Interpolation", "MemberAccess", "VariableAccess"]
