"""
Configuration management for templatev.

Configuration lives in ~/.templatev/config.yaml (or the path in the
TEMPLATEV_CONFIG environment variable) and is created with defaults on
first use.
"""
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError
from jinja2 import Environment

from templatev.exceptions import ConfigManagerError
from templatev.expander import JinjaEvaluator, TemplateExpander
from templatev.models import Config
from templatev.parser import create_environment
from templatev.validator import TemplateValidator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TEMPLATEV_CONFIG"

CONFIG_HEADER = """# templatev configuration file
#
# syntax:      delimiters of ${...} interpolations, {% blocks %} and {# comments #}
# expansion:   undefined = chainable (unbound names expand to "") | strict | default
# validation:  honor_template_locals lets {% set %}/{% for %} targets count as bound
# logging:     level used by the CLI (DEBUG, INFO, WARNING, ERROR)

"""


def default_config_path() -> Path:
    """Config path from TEMPLATEV_CONFIG, else ~/.templatev/config.yaml."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path.home() / ".templatev" / "config.yaml"


class ConfigManager:
    """Loads, saves and updates the YAML configuration file."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else default_config_path()
        if not self.config_path.exists():
            self._write(Config())
            logger.debug(f"Created default config at {self.config_path}")

    def _write(self, config: Config) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                f.write(CONFIG_HEADER)
                yaml.safe_dump(config.model_dump(mode='json'), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigManagerError(f"Failed to write config file {self.config_path}: {e}") from e

    def get_config(self) -> Config:
        """
        Load the configuration.

        Missing sections and keys fall back to defaults; an empty file gives
        the default configuration.

        Raises:
            ConfigManagerError: If the file is not valid YAML or has invalid values
        """
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigManagerError(f"Failed to parse config file {self.config_path}: {e}") from e

        if data is None:
            return Config()
        if not isinstance(data, dict):
            raise ConfigManagerError(
                f"Failed to parse config file {self.config_path}: expected a mapping"
            )

        try:
            return Config(**data)
        except ValidationError as e:
            raise ConfigManagerError(f"Failed to parse config file {self.config_path}: {e}") from e

    def save_config(self, config: Config) -> None:
        """Persist the configuration."""
        self._write(config)
        logger.info(f"Saved config to {self.config_path}")

    def reset_to_defaults(self) -> Config:
        """Overwrite the file with default values and return them."""
        config = Config()
        self.save_config(config)
        return config

    def set_value(self, key: str, value: Any) -> Config:
        """
        Update one setting addressed as ``section.name``.

        Values are validated (and coerced, e.g. "false" -> False) by the
        config models.

        Example:
            >>> manager.set_value("expansion.undefined", "strict")

        Raises:
            ConfigManagerError: If the key is unknown or the value is invalid
        """
        section, _, name = key.partition('.')
        config = self.get_config()
        data = config.model_dump()

        if section not in data or not name or name not in data[section]:
            raise ConfigManagerError(
                f"Unknown config key '{key}'",
                suggestion="Run 'templatev config show' to see available keys"
            )

        data[section][name] = value
        try:
            updated = Config(**data)
        except ValidationError as e:
            raise ConfigManagerError(f"Invalid value for '{key}': {e}") from e

        self.save_config(updated)
        return updated


def build_environment(config: Config) -> Environment:
    """Jinja2 environment for the configured syntax and undefined policy."""
    return create_environment(
        config.syntax,
        undefined=config.expansion.undefined,
        keep_trailing_newline=config.expansion.keep_trailing_newline,
    )


def build_validator(config: Config) -> TemplateValidator:
    return TemplateValidator(
        build_environment(config),
        honor_template_locals=config.validation.honor_template_locals,
        unique_missing=config.validation.unique_missing,
    )


def build_expander(config: Config) -> TemplateExpander:
    return TemplateExpander(
        JinjaEvaluator(build_environment(config)),
        validator=build_validator(config),
        encoding=config.expansion.encoding,
    )
