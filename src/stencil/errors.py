"""Custom exception types used by the stencil template engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import TemplateValidationResult


class TemplateError(RuntimeError):
    """Base class for template engine failures."""


class ExpressionSyntaxError(TemplateError, ValueError):
    """Raised when a conditional guard expression cannot be parsed."""

    def __init__(self, message: str, expression: str = "") -> None:
        super().__init__(message)
        self.expression = expression


class ConfigurationError(TemplateError, ValueError):
    """Raised when a configuration tree cannot be built from bundle options."""


class TemplateValidationError(TemplateError):
    """Raised when a bundle fails validation before files are written."""

    def __init__(self, result: "TemplateValidationResult") -> None:
        count = len(result.errors)
        super().__init__(f"template '{result.template_id}' failed validation with {count} error(s)")
        self.result = result
