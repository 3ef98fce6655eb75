"""Template rendering and validation for project scaffolding.

Templates mix literal text, ``{{ dotted.path }}`` variables and
``{% if EXPR %}...{% endif %}`` blocks. The package renders them against a
configuration tree, optionally through a shared render cache, and validates
template bundles before any file is written.
"""

from __future__ import annotations

from .bundle import render_bundle
from .cache import RenderCache, make_cache_key
from .config import RenderOptions, build_configuration
from .errors import (
    ConfigurationError,
    ExpressionSyntaxError,
    TemplateError,
    TemplateValidationError,
)
from .expression import conditional_variables, evaluate, parse_expression
from .resolver import MISSING, extract_variables, is_truthy, missing_variables, resolve
from .scaffold import BundleScaffolder
from .schema import (
    RenderResult,
    TemplateBundle,
    TemplateFile,
    TemplateOption,
    TemplateValidationResult,
)
from .template import TemplateRenderer, render
from .validator import (
    TemplateValidator,
    categorize_validation_errors,
    format_validation_result,
    validate_template,
    validate_template_syntax,
)

__all__ = [
    "MISSING",
    "BundleScaffolder",
    "ConfigurationError",
    "ExpressionSyntaxError",
    "RenderCache",
    "RenderOptions",
    "RenderResult",
    "TemplateBundle",
    "TemplateError",
    "TemplateFile",
    "TemplateOption",
    "TemplateRenderer",
    "TemplateValidationError",
    "TemplateValidationResult",
    "TemplateValidator",
    "build_configuration",
    "categorize_validation_errors",
    "conditional_variables",
    "evaluate",
    "extract_variables",
    "format_validation_result",
    "is_truthy",
    "make_cache_key",
    "missing_variables",
    "parse_expression",
    "render",
    "render_bundle",
    "resolve",
    "validate_template",
    "validate_template_syntax",
]

__version__ = "0.1.0"
