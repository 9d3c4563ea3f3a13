"""
Template expansion: evaluate a template against bindings and write the result.
"""
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from jinja2 import Environment

from templatev.bindings import snapshot
from templatev.exceptions import TemplateNotFoundError
from templatev.parser import create_environment
from templatev.validator import TemplateValidator

logger = logging.getLogger(__name__)


class Evaluator(Protocol):
    """Evaluates template text as an interpolated string."""

    def evaluate_interpolated(self, template_text: str, bindings: Dict[str, Any]) -> str:
        ...


class JinjaEvaluator:
    """Evaluator backed by a Jinja2 environment."""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment or create_environment()

    def evaluate_interpolated(self, template_text: str, bindings: Dict[str, Any]) -> str:
        template = self.environment.from_string(template_text)
        return template.render(bindings)


def read_template(path: Union[str, Path], encoding: str = "utf-8") -> str:
    """
    Read template text from a file.

    Raises:
        TemplateNotFoundError: If ``path`` is not an existing file
    """
    path = Path(path)
    if not path.is_file():
        raise TemplateNotFoundError(str(path))
    return path.read_text(encoding=encoding)


class TemplateExpander:
    """
    Expands templates through an Evaluator.

    Unbound references follow the evaluator's own rules; with the default
    environment they expand to an empty string. Use ``validate=True`` (or a
    TemplateValidator beforehand) to reject such templates instead.
    """

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        validator: Optional[TemplateValidator] = None,
        encoding: str = "utf-8",
    ):
        self.evaluator = evaluator or JinjaEvaluator()
        self.validator = validator
        self.encoding = encoding

    def expand(self, template_text: str, bindings: Optional[Mapping] = None) -> str:
        """
        Expand template text.

        Example:
            >>> TemplateExpander().expand("Hello ${name}!", {"name": "World"})
            'Hello World!'
        """
        return self.evaluator.evaluate_interpolated(template_text, snapshot(bindings or {}))

    def expand_file(
        self,
        source: Union[str, Path],
        destination: Optional[Union[str, Path]] = None,
        bindings: Optional[Mapping] = None,
        validate: bool = False,
    ) -> str:
        """
        Read a template file, expand it, and optionally write the result.

        Args:
            source: Template file path
            destination: Output path; parent directories are created
            bindings: Mapping of names to values
            validate: Raise VariableMissingError before expanding if any
                reference is unbound

        Returns:
            The expanded text

        Raises:
            TemplateNotFoundError: If the source does not exist (checked before parsing)
            VariableMissingError: If ``validate`` is set and names are missing
            jinja2.TemplateSyntaxError: If the template cannot be parsed
        """
        template_text = read_template(source, encoding=self.encoding)
        bindings = snapshot(bindings or {})

        if validate:
            validator = self.validator or TemplateValidator()
            validator.validate(template_text, bindings, as_exception=True)

        expanded = self.expand(template_text, bindings)
        logger.debug(f"Expanded {source}: {len(template_text)} -> {len(expanded)} characters")

        if destination is not None:
            destination = Path(destination)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(expanded, encoding=self.encoding)
            logger.info(f"Wrote expanded template to {destination}")

        return expanded
