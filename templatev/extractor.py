"""
Variable discovery for templates.
"""
import logging
from typing import List, Optional, Sequence, Set, Tuple

from jinja2 import Environment, meta

from templatev.models import VariableReference
from templatev.nodes import (
    Constant,
    IndexAccess,
    MemberAccess,
    NodeVisitor,
    Other,
    TemplateNode,
    TemplateTree,
    VariableAccess,
    walk,
)
from templatev.parser import create_environment, parse_template, tree_from_ast

logger = logging.getLogger(__name__)

# Names a for loop binds without an explicit target
LOOP_IMPLICIT_NAMES = ("loop",)


class _ReferenceCollector(NodeVisitor):
    """Collects variable reads in textual order, duplicates included."""

    def __init__(self):
        self.references: List[VariableReference] = []

    def visit_VariableAccess(self, node: VariableAccess) -> None:
        if node.ctx == "load":
            self.references.append(VariableReference(root=node.name, lineno=node.lineno))

    def visit_MemberAccess(self, node: MemberAccess) -> None:
        self._visit_access_chain(node)

    def visit_IndexAccess(self, node: IndexAccess) -> None:
        self._visit_access_chain(node)

    def _visit_access_chain(self, node: TemplateNode) -> None:
        # Unwind x.a[i].b down to its innermost target
        chain: List[TemplateNode] = []
        target = node
        while isinstance(target, (MemberAccess, IndexAccess)):
            chain.append(target)
            target = target.target
        chain.reverse()

        if isinstance(target, VariableAccess) and target.ctx == "load":
            path = tuple(_segment(link) for link in chain)
            self.references.append(
                VariableReference(root=target.name, path=path, lineno=target.lineno)
            )
        else:
            self.visit(target)

        # Subscripts are expressions of their own
        for link in chain:
            if isinstance(link, IndexAccess):
                self.visit(link.index)


def _segment(link: TemplateNode) -> str:
    if isinstance(link, MemberAccess):
        return f".{link.member}"
    return f"[{_render_index(link.index)}]"


def _render_index(index: TemplateNode) -> str:
    if isinstance(index, Constant):
        return repr(index.value)
    if isinstance(index, VariableAccess):
        return index.name
    if isinstance(index, (MemberAccess, IndexAccess)):
        return _render_index(index.target) + _segment(index)
    return "..."


def extract_tree(tree: TemplateTree) -> List[VariableReference]:
    """Collect every variable read in an already parsed tree."""
    collector = _ReferenceCollector()
    collector.visit(tree)
    return collector.references


def extract_variables(template_text: str, environment: Optional[Environment] = None) -> List[VariableReference]:
    """
    Extract every variable reference from a template.

    One entry is returned per syntactic occurrence, in textual order.
    Member and index paths are kept on the reference; variables used as
    subscripts are reported as references of their own.

    Args:
        template_text: The template string to parse
        environment: Optional Jinja2 environment (default interpolation syntax)

    Returns:
        Ordered list of VariableReference, duplicates included

    Raises:
        jinja2.TemplateSyntaxError: If the template cannot be parsed

    Example:
        >>> refs = extract_variables("${x} and ${x.Name} and ${y[0]}")
        >>> [r.root for r in refs]
        ['x', 'x', 'y']
        >>> [r.expression for r in refs]
        ['x', 'x.Name', 'y[0]']
    """
    references = extract_tree(parse_template(template_text, environment))
    logger.debug(f"Extracted {len(references)} variable reference(s)")
    return references


def declared_names(tree: TemplateTree) -> List[str]:
    """
    Names the template binds itself: set/for targets, macro parameters
    and the implicit ``loop`` of for loops. First-appearance order.
    """
    names = {}
    for node in walk(tree):
        if isinstance(node, VariableAccess) and node.ctx in ("store", "param"):
            names.setdefault(node.name, None)
        elif isinstance(node, Other) and node.label == "For":
            for name in LOOP_IMPLICIT_NAMES:
                names.setdefault(name, None)
    return list(names)


def unique_roots(references: Sequence[VariableReference]) -> List[str]:
    """Root names of ``references`` without duplicates, in first-appearance order."""
    return list(dict.fromkeys(ref.root for ref in references))


class VariableExtractor:
    """Extractor bound to one Jinja2 environment."""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment

    def parse(self, template_text: str) -> TemplateTree:
        return parse_template(template_text, self.environment)

    def extract(self, template_text: str) -> List[VariableReference]:
        return extract_variables(template_text, self.environment)

    def extract_with_declared(self, template_text: str) -> Tuple[List[VariableReference], List[str]]:
        """Parse once and return both the references and the template's own bindings."""
        tree = self.parse(template_text)
        return extract_tree(tree), declared_names(tree)

    def declared(self, template_text: str) -> List[str]:
        return declared_names(self.parse(template_text))

    def analyse(self, template_text: str) -> Tuple[List[VariableReference], List[str], Set[str]]:
        """
        Parse once and return references, declared names and free names.

        Free names are those Jinja2's scope analysis resolves from the
        render context: a read before its ``set``, a loop target used
        after ``endfor`` or a macro parameter used outside the macro.
        """
        environment = self.environment or create_environment()
        ast = environment.parse(template_text)
        tree = tree_from_ast(ast)
        return extract_tree(tree), declared_names(tree), meta.find_undeclared_variables(ast)
