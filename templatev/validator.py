"""
Missing-variable reporting and template validation.
"""
import logging
from collections.abc import Mapping
from typing import List, Optional, Sequence, Union

from jinja2 import Environment

from templatev.bindings import BindingEnvironment, is_bound, snapshot
from templatev.extractor import VariableExtractor
from templatev.models import ValidationReport, VariableReference
from templatev.parser import create_environment

logger = logging.getLogger(__name__)


def find_missing(
    references: Sequence[VariableReference],
    bindings: Mapping,
    unique: bool = False,
) -> List[str]:
    """
    Return the root names in ``references`` that have no binding.

    Order follows ``references``. A name that occurs several times is
    reported once per occurrence unless ``unique`` is set.

    Example:
        >>> refs = [VariableReference(root=name) for name in ("a", "b", "a")]
        >>> find_missing(refs, {"b": 1})
        ['a', 'a']
        >>> find_missing(refs, {"b": 1}, unique=True)
        ['a']
    """
    missing = [ref.root for ref in references if not is_bound(ref.root, bindings)]
    if unique:
        missing = list(dict.fromkeys(missing))
    return missing


class TemplateValidator:
    """
    Checks that every variable a template reads is bound.

    The pipeline is parse, extract, check each reference, collect. Syntax
    errors from the parser propagate unchanged.

    Bindings are copied once per call. Callers that mutate a shared binding
    source concurrently still get a consistent view for that call.
    """

    def __init__(
        self,
        environment: Optional[Environment] = None,
        honor_template_locals: bool = True,
        unique_missing: bool = False,
    ):
        self.environment = environment or create_environment()
        self.extractor = VariableExtractor(self.environment)
        self.honor_template_locals = honor_template_locals
        self.unique_missing = unique_missing

    def check(self, template_text: str, bindings: Optional[Mapping] = None) -> ValidationReport:
        """
        Validate a template and return the full report.

        Raises:
            jinja2.TemplateSyntaxError: If the template cannot be parsed
        """
        references, declared, free = self.extractor.analyse(template_text)

        # Globals such as range() are always in scope for the evaluator
        layers = [snapshot(bindings or {})]
        if self.honor_template_locals:
            # A local only counts when no read of it escapes its scope
            layers.append(dict.fromkeys(name for name in declared if name not in free))
        layers.append(self.environment.globals)
        scope = BindingEnvironment(*layers)

        missing = find_missing(references, scope, unique=self.unique_missing)
        if missing:
            logger.info(f"Template has {len(missing)} unbound reference(s): {', '.join(missing)}")
        else:
            logger.debug(f"All {len(references)} reference(s) are bound")

        return ValidationReport(references=references, missing=missing, declared=declared)

    def validate(
        self,
        template_text: str,
        bindings: Optional[Mapping] = None,
        quiet: bool = False,
        as_exception: bool = False,
    ) -> Union[List[str], bool, None]:
        """
        Validate a template in one of three report modes.

        Args:
            template_text: The template to validate
            bindings: Mapping of names to values (default: empty)
            quiet: Return True/False instead of the missing list
            as_exception: Raise VariableMissingError if anything is missing

        Returns:
            - default: list of missing root names (possibly empty)
            - quiet: True if nothing is missing
            - as_exception without quiet: None when nothing is missing

        Raises:
            VariableMissingError: In as_exception mode when names are missing,
                even if quiet is also set
            jinja2.TemplateSyntaxError: If the template cannot be parsed

        Example:
            >>> validator = TemplateValidator()
            >>> validator.validate("Hello ${name}!", {})
            ['name']
            >>> validator.validate("Hello ${name}!", {"name": "World"}, quiet=True)
            True
        """
        report = self.check(template_text, bindings)
        if as_exception:
            report.raise_for_missing()
        if quiet:
            return report.ok
        if as_exception:
            return None
        return report.missing


def validate(
    template_text: str,
    bindings: Optional[Mapping] = None,
    quiet: bool = False,
    as_exception: bool = False,
) -> Union[List[str], bool, None]:
    """Validate with a default TemplateValidator. See TemplateValidator.validate."""
    return TemplateValidator().validate(template_text, bindings, quiet=quiet, as_exception=as_exception)
