"""Dotted-path variable resolution and the shared truthiness rule."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

from .tokens import TokenKind, Tokenizer, is_variable_name

__all__ = [
    "MISSING",
    "extract_variables",
    "is_truthy",
    "missing_variables",
    "resolve",
    "stringify",
]


class _Missing:
    """Marker for a path that does not resolve to a value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def resolve(path: str, configuration: Mapping[str, Any]) -> Any:
    """Return the value stored at ``path`` or :data:`MISSING`.

    ``path`` is split on ``.`` and walked through nested mappings. Any missing
    segment, empty segment or non-mapping intermediate yields :data:`MISSING`.
    """

    value: Any = configuration
    for segment in path.split("."):
        if not segment or not isinstance(value, Mapping) or segment not in value:
            return MISSING
        value = value[segment]
    return value


def is_truthy(value: Any) -> bool:
    """Apply the truthiness rule shared by rendering and validation."""

    if value is MISSING or value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    return True


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def extract_variables(text: str) -> list[str]:
    """Return the dotted paths referenced by ``{{ }}`` tokens in ``text``.

    The list keeps first-occurrence order and contains each path once. Tokens
    whose content is not identifier shaped are ignored.
    """

    seen: dict[str, None] = {}
    for token in Tokenizer(text):
        if token.kind is TokenKind.VARIABLE and is_variable_name(token.content):
            seen.setdefault(token.content, None)
    return list(seen)


def missing_variables(text: str, configuration: Mapping[str, Any]) -> list[str]:
    """Return the referenced variables that ``configuration`` does not supply."""

    missing = []
    for name in extract_variables(text):
        value = resolve(name, configuration)
        if value is MISSING or value is None:
            missing.append(name)
    return missing
