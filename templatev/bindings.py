"""
Binding environments and the binding check.

A binding environment is an explicit, read-only mapping of names to values.
Validation and expansion take a snapshot of it, so one pass sees a
consistent view even if the underlying sources change in the meantime.
"""
import logging
import os
from collections import ChainMap
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Union

import yaml

from templatev.exceptions import BindingsFileError, TemplateNotFoundError

logger = logging.getLogger(__name__)


def is_bound(name: str, bindings: Mapping) -> bool:
    """
    Check whether ``name`` has a binding.

    Only existence matters: a name bound to None or "" is present, and the
    bound value is never read.
    """
    return name in bindings


class BindingEnvironment(Mapping):
    """
    Read-only view over ordered layers of bindings.

    Earlier layers take precedence over later ones.

    Examples:
        >>> env = BindingEnvironment({"name": "Alice"}, {"name": "Bob", "count": 5})
        >>> env["name"], env["count"]
        ('Alice', 5)
        >>> "missing" in env
        False
    """

    def __init__(self, *layers: Mapping):
        self._layers = tuple(layers)
        self._chain = ChainMap(*self._layers)

    def __getitem__(self, name: str) -> Any:
        return self._chain[name]

    def __contains__(self, name: object) -> bool:
        return name in self._chain

    def __iter__(self) -> Iterator[str]:
        return iter(self._chain)

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"BindingEnvironment({len(self._layers)} layer(s), {len(self)} name(s))"

    @property
    def layers(self) -> tuple:
        return self._layers

    def layered(self, *others: Mapping) -> "BindingEnvironment":
        """Return a new environment with ``others`` as lower-priority layers."""
        return BindingEnvironment(*self._layers, *others)

    def snapshot(self) -> Dict[str, Any]:
        """Copy the merged view into a plain dict."""
        return dict(self._chain)

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> "BindingEnvironment":
        """
        Build an environment from ``key=value`` strings.

        Raises:
            ValueError: If a pair has no '='
        """
        bindings = {}
        for pair in pairs:
            if '=' not in pair:
                raise ValueError(f"Invalid variable format '{pair}'. Expected key=value")
            key, value = pair.split('=', 1)
            bindings[key.strip()] = value
        return cls(bindings)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "BindingEnvironment":
        """
        Load bindings from a YAML mapping.

        Raises:
            TemplateNotFoundError: If the file does not exist
            BindingsFileError: If the file is not a YAML mapping
        """
        path = Path(path)
        if not path.is_file():
            raise TemplateNotFoundError(str(path))

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise BindingsFileError(str(path), str(e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise BindingsFileError(str(path), f"expected a mapping, got {type(data).__name__}")

        logger.debug(f"Loaded {len(data)} binding(s) from {path}")
        return cls({str(key): value for key, value in data.items()})

    @classmethod
    def from_environ(cls, prefix: str = "") -> "BindingEnvironment":
        """
        Snapshot the process environment.

        When ``prefix`` is given, only names starting with it are kept and the
        prefix is stripped (``APP_NAME`` -> ``NAME`` for prefix ``APP_``).
        """
        bindings = {
            key[len(prefix):]: value
            for key, value in os.environ.items()
            if key.startswith(prefix) and len(key) > len(prefix)
        }
        return cls(bindings)


def snapshot(bindings: Mapping) -> Dict[str, Any]:
    """Take a consistent copy of any mapping of bindings."""
    if isinstance(bindings, BindingEnvironment):
        return bindings.snapshot()
    return dict(bindings)
