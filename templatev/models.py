"""
Pydantic models for templatev data structures.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Tuple

from templatev.exceptions import VariableMissingError


class VariableReference(BaseModel):
    """One syntactic occurrence of a variable inside a template."""
    model_config = ConfigDict(frozen=True)

    root: str
    path: Tuple[str, ...] = ()  # Member/index segments, e.g. ('.Name', '[0]')
    lineno: int = 1

    @property
    def expression(self) -> str:
        """The reference as written, e.g. ``x.Name[0]``."""
        return self.root + "".join(self.path)

    def __str__(self) -> str:
        return self.expression


class ValidationReport(BaseModel):
    """Outcome of checking a template against a set of bindings."""
    references: List[VariableReference] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    declared: List[str] = Field(default_factory=list)  # Names the template binds itself

    @property
    def ok(self) -> bool:
        return not self.missing

    def raise_for_missing(self) -> None:
        """Raise VariableMissingError if any reference is unbound."""
        if self.missing:
            raise VariableMissingError(self.missing)


class SyntaxConfig(BaseModel):
    """Delimiters of the interpolation syntax."""
    variable_start: str = "${"
    variable_end: str = "}"
    block_start: str = "{%"
    block_end: str = "%}"
    comment_start: str = "{#"
    comment_end: str = "#}"


UNDEFINED_POLICIES = ("chainable", "strict", "default")


class ExpansionConfig(BaseModel):
    """Expansion configuration."""
    undefined: str = "chainable"  # "chainable", "strict" or "default"
    encoding: str = "utf-8"
    keep_trailing_newline: bool = True

    @field_validator("undefined")
    @classmethod
    def _check_undefined(cls, value: str) -> str:
        if value not in UNDEFINED_POLICIES:
            raise ValueError(
                f"undefined must be one of: {', '.join(UNDEFINED_POLICIES)}"
            )
        return value


class ValidationConfig(BaseModel):
    """Validation configuration."""
    honor_template_locals: bool = True
    unique_missing: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "WARNING"


class Config(BaseModel):
    """Main configuration."""
    syntax: SyntaxConfig = Field(default_factory=SyntaxConfig)
    expansion: ExpansionConfig = Field(default_factory=ExpansionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
