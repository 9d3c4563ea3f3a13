"""
Typed syntax tree for parsed templates.

Every node kind lists its children in source order through ``children()``,
so a visitor that falls back to ``generic_visit`` reaches every
sub-expression.
"""
from dataclasses import dataclass
from typing import Any, Iterator, Tuple


class TemplateNode:
    """Base class for all tree nodes."""

    lineno: int

    def children(self) -> Tuple["TemplateNode", ...]:
        return ()


@dataclass(frozen=True)
class Literal(TemplateNode):
    """Static text between interpolations."""
    text: str
    lineno: int = 1


@dataclass(frozen=True)
class Constant(TemplateNode):
    """A literal value inside an expression."""
    value: Any
    lineno: int = 1


@dataclass(frozen=True)
class VariableAccess(TemplateNode):
    """A variable name. ``ctx`` is ``load``, ``store`` or ``param``."""
    name: str
    ctx: str = "load"
    lineno: int = 1


@dataclass(frozen=True)
class MemberAccess(TemplateNode):
    """``target.member``"""
    target: TemplateNode
    member: str
    lineno: int = 1

    def children(self) -> Tuple[TemplateNode, ...]:
        return (self.target,)


@dataclass(frozen=True)
class IndexAccess(TemplateNode):
    """``target[index]``"""
    target: TemplateNode
    index: TemplateNode
    lineno: int = 1

    def children(self) -> Tuple[TemplateNode, ...]:
        return (self.target, self.index)


@dataclass(frozen=True)
class Interpolation(TemplateNode):
    """One ``${ ... }`` slot."""
    expression: TemplateNode
    lineno: int = 1

    def children(self) -> Tuple[TemplateNode, ...]:
        return (self.expression,)


@dataclass(frozen=True)
class Other(TemplateNode):
    """Any other construct: filters, calls, operators, statements."""
    label: str
    nodes: Tuple[TemplateNode, ...] = ()
    lineno: int = 1

    def children(self) -> Tuple[TemplateNode, ...]:
        return self.nodes


@dataclass(frozen=True)
class TemplateTree(TemplateNode):
    """Root of a parsed template."""
    body: Tuple[TemplateNode, ...] = ()
    lineno: int = 1

    def children(self) -> Tuple[TemplateNode, ...]:
        return self.body


def walk(node: TemplateNode) -> Iterator[TemplateNode]:
    """Yield ``node`` and all of its descendants, depth first, in source order."""
    yield node
    for child in node.children():
        yield from walk(child)


class NodeVisitor:
    """
    Walks a tree and calls ``visit_<Kind>`` for each node.

    Kinds without a visit method are handled by ``generic_visit``, which
    visits every child.
    """

    def visit(self, node: TemplateNode) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            return self.generic_visit(node)
        return method(node)

    def generic_visit(self, node: TemplateNode) -> None:
        for child in node.children():
            self.visit(child)
