"""
Parse template text into a typed tree without evaluating it.

Template text is treated as the body of a Jinja2 template whose variable
delimiters are ``${`` and ``}``, so the same text can be analysed here and
rendered by the expander with one escaping scheme.
"""
import logging
from typing import Iterable, Iterator, List, Optional

from jinja2 import ChainableUndefined, Environment, StrictUndefined, Undefined, nodes

from templatev.models import SyntaxConfig
from templatev.nodes import (
    Constant,
    IndexAccess,
    Interpolation,
    Literal,
    MemberAccess,
    Other,
    TemplateNode,
    TemplateTree,
    VariableAccess,
)

logger = logging.getLogger(__name__)

UNDEFINED_CLASSES = {
    "chainable": ChainableUndefined,
    "strict": StrictUndefined,
    "default": Undefined,
}

# Jinja2 nodes whose fields are not declared in the order they are written
SOURCE_FIELD_ORDER = {
    nodes.CondExpr: ("expr1", "test", "expr2"),
    nodes.For: ("target", "iter", "test", "body", "else_"),
    nodes.FilterBlock: ("filter", "body"),
}


def create_environment(
    syntax: Optional[SyntaxConfig] = None,
    undefined: str = "chainable",
    keep_trailing_newline: bool = True,
) -> Environment:
    """
    Build the Jinja2 environment templates are parsed and rendered with.

    Args:
        syntax: Delimiter configuration (default: ``${ }`` interpolation)
        undefined: Policy for unbound names: "chainable", "strict" or "default"
        keep_trailing_newline: Preserve a final newline on rendering

    Returns:
        Configured Jinja2 Environment
    """
    syntax = syntax or SyntaxConfig()
    try:
        undefined_cls = UNDEFINED_CLASSES[undefined]
    except KeyError:
        raise ValueError(
            f"Unknown undefined policy '{undefined}'. "
            f"Expected one of: {', '.join(UNDEFINED_CLASSES)}"
        ) from None

    return Environment(
        variable_start_string=syntax.variable_start,
        variable_end_string=syntax.variable_end,
        block_start_string=syntax.block_start,
        block_end_string=syntax.block_end,
        comment_start_string=syntax.comment_start,
        comment_end_string=syntax.comment_end,
        undefined=undefined_cls,
        keep_trailing_newline=keep_trailing_newline,
        autoescape=False,
    )


def parse_template(template_text: str, environment: Optional[Environment] = None) -> TemplateTree:
    """
    Parse template text into a TemplateTree.

    Nothing in the template is executed.

    Raises:
        jinja2.TemplateSyntaxError: If the text is not a valid template

    Example:
        >>> tree = parse_template("Hello ${name}!")
        >>> [type(n).__name__ for n in tree.body]
        ['Literal', 'Interpolation', 'Literal']
    """
    environment = environment or create_environment()
    return tree_from_ast(environment.parse(template_text))


def tree_from_ast(ast: nodes.Template) -> TemplateTree:
    """Convert an already parsed Jinja2 template into a TemplateTree."""
    tree = _convert(ast)
    logger.debug(f"Parsed template into {len(tree.body)} top-level node(s)")
    return tree


def _convert(node: nodes.Node) -> TemplateNode:
    lineno = getattr(node, "lineno", None) or 1

    if isinstance(node, nodes.Template):
        return TemplateTree(body=_convert_all(node.body))
    if isinstance(node, nodes.TemplateData):
        return Literal(text=node.data, lineno=lineno)
    if isinstance(node, nodes.Name):
        return VariableAccess(name=node.name, ctx=node.ctx, lineno=lineno)
    if isinstance(node, nodes.Getattr):
        return MemberAccess(target=_convert(node.node), member=node.attr, lineno=lineno)
    if isinstance(node, nodes.Getitem):
        return IndexAccess(target=_convert(node.node), index=_convert(node.arg), lineno=lineno)
    if isinstance(node, nodes.Const):
        return Constant(value=node.value, lineno=lineno)

    return Other(
        label=type(node).__name__,
        nodes=_convert_all(_source_ordered_children(node)),
        lineno=lineno,
    )


def _source_ordered_children(node: nodes.Node) -> Iterator[nodes.Node]:
    fields = SOURCE_FIELD_ORDER.get(type(node))
    if fields is None:
        yield from node.iter_child_nodes()
        return
    for field in fields:
        value = getattr(node, field)
        if isinstance(value, list):
            yield from (item for item in value if isinstance(item, nodes.Node))
        elif isinstance(value, nodes.Node):
            yield value


def _convert_all(children: Iterable[nodes.Node]) -> tuple:
    # Output nodes are flattened into literal text and interpolation slots
    converted: List[TemplateNode] = []
    for child in children:
        if isinstance(child, nodes.Output):
            for item in child.nodes:
                if isinstance(item, nodes.TemplateData):
                    converted.append(_convert(item))
                else:
                    converted.append(Interpolation(expression=_convert(item), lineno=item.lineno or 1))
        else:
            converted.append(_convert(child))
    return tuple(converted)
