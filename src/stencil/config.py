"""Configuration helpers shared by the renderer, the scaffolder and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .cache import RenderCache
from .errors import ConfigurationError
from .schema import TemplateOption

__all__ = ["RenderOptions", "build_configuration", "coerce_option_value"]


_TRUE_WORDS = {"true", "yes", "y", "on", "1"}
_FALSE_WORDS = {"false", "no", "n", "off", "0"}


@dataclass(slots=True)
class RenderOptions:
    """Per-call rendering switches.

    Attributes
    ----------
    enable_cache:
        Look up and store rendered content in a :class:`RenderCache`.
    cache:
        The cache to use. When omitted the renderer falls back to its own
        instance-level cache.
    """

    enable_cache: bool = False
    cache: RenderCache | None = None


def coerce_option_value(option: TemplateOption, value: Any) -> Any:
    """Convert ``value`` to the type declared by ``option``.

    Strings are parsed for boolean and number options so values collected from
    a command line or prompt can be passed straight through.
    """

    if option.type == "boolean" and isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ConfigurationError(f"option '{option.name}' expects a boolean, got '{value}'")

    if option.type == "number" and isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise ConfigurationError(
                f"option '{option.name}' expects a number, got '{value}'"
            ) from None

    if option.type == "select" and option.choices and value not in option.choices:
        allowed = ", ".join(option.choices)
        raise ConfigurationError(f"option '{option.name}' must be one of: {allowed}")

    return value


def _assign(tree: dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    node = tree
    for segment in parents:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigurationError(f"'{dotted_key}' conflicts with the value already set for '{segment}'")
        node = child
    if isinstance(node.get(leaf), dict) and not isinstance(value, Mapping):
        raise ConfigurationError(f"'{dotted_key}' conflicts with nested values already set beneath it")
    node[leaf] = value


def build_configuration(
    options: Iterable[TemplateOption | Mapping[str, Any]] = (),
    values: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a configuration tree from bundle ``options`` and supplied ``values``.

    Parameters
    ----------
    options:
        Option declarations from a bundle. Their defaults fill in anything not
        present in ``values``.
    values:
        Values collected by the host. Keys containing dots produce nested
        mappings; keys without a matching option are copied unchanged.
    """

    supplied = dict(values or {})
    tree: dict[str, Any] = {}

    for raw in options:
        option = raw if isinstance(raw, TemplateOption) else TemplateOption.model_validate(raw)
        if option.name in supplied:
            value = coerce_option_value(option, supplied.pop(option.name))
        elif option.default is not None:
            value = option.default
        elif option.required:
            raise ConfigurationError(f"option '{option.name}' requires a value")
        else:
            continue
        _assign(tree, option.name, value)

    for key, value in supplied.items():
        if not key:
            raise ConfigurationError("configuration keys must not be empty")
        _assign(tree, key, value)

    return tree
