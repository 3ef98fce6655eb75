"""Static validation of template bundles.

A bundle is checked in four independent passes whose results are combined
into a single :class:`~stencil.schema.TemplateValidationResult`:

``metadata``
    Required fields are present and have the right types.
``syntax``
    Every file body tokenizes into well-formed variables and balanced,
    parsable ``if``/``endif`` tags.
``configuration``
    Name, version and option declarations follow the naming rules.
``files``
    File entries are complete, paths are safe and unique.

Nothing here evaluates templates. Presentation helpers at the bottom of the
module derive text from the structured result so every host shares the same
data.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from .errors import ExpressionSyntaxError
from .expression import parse_expression
from .schema import (
    CheckResult,
    FileCheckResult,
    TemplateBundle,
    TemplateValidationResult,
    ValidationSummary,
)
from .tokens import TagType, TokenKind, Tokenizer, is_variable_name

__all__ = [
    "TemplateValidator",
    "categorize_validation_errors",
    "format_validation_result",
    "validate_file_syntax",
    "validate_template",
    "validate_template_syntax",
]


LOGGER = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "description", "version", "files")
OPTION_TYPES = ("string", "boolean", "number", "select")

_BUNDLE_NAME = re.compile(r"^[a-zA-Z0-9\s_.-]+$")
_OPTION_NAME = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+$")
_INVALID_PATH_CHARS = re.compile(r'[<>"|?*]')
_DRIVE_PATH = re.compile(r"^[A-Za-z]:[\\/]")

_CRITICAL_MARKERS = ("required", "missing", "malformed", "unclosed", "invalid type", "duplicate")


def _check(errors: list[str], warnings: list[str]) -> CheckResult:
    return CheckResult(is_valid=not errors, errors=errors, warnings=warnings)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_mapping(bundle: TemplateBundle | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(bundle, BaseModel):
        return bundle.model_dump(exclude_none=True)
    if isinstance(bundle, Mapping):
        return bundle
    raise TypeError(f"bundle must be a mapping or TemplateBundle, not {type(bundle).__name__}")


def _file_entries(bundle: Mapping[str, Any]) -> list[Any]:
    files = bundle.get("files")
    return list(files) if isinstance(files, (list, tuple)) else []


@dataclass(slots=True)
class TemplateValidator:
    """Validate bundles and individual template bodies.

    Attributes
    ----------
    max_line_length:
        Lines longer than this produce a warning.
    max_nesting_depth:
        Conditional nesting deeper than this produces a warning.
    max_name_length:
        Upper bound for the bundle name.
    max_path_length:
        File paths longer than this produce a warning.
    """

    max_line_length: int = 120
    max_nesting_depth: int = 10
    max_name_length: int = 100
    max_description_length: int = 500
    max_path_length: int = 260

    def validate_template(
        self, bundle: TemplateBundle | Mapping[str, Any], template_id: str
    ) -> TemplateValidationResult:
        """Run every check on ``bundle`` and aggregate the outcome."""

        data = _as_mapping(bundle)
        metadata = self.validate_metadata(data)
        syntax = self.validate_template_syntax(data)
        configuration = self.validate_configuration(data)
        files = self.validate_files(data)

        checks = (metadata, syntax, configuration, files)
        result = TemplateValidationResult(
            template_id=template_id,
            is_valid=all(check.is_valid for check in checks),
            errors=[error for check in checks for error in check.errors],
            warnings=[warning for check in checks for warning in check.warnings],
            metadata=metadata,
            syntax=syntax,
            configuration=configuration,
            files=files,
        )
        LOGGER.debug(
            "validated template %s: %d error(s), %d warning(s)",
            template_id,
            len(result.errors),
            len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Syntax
    # ------------------------------------------------------------------
    def validate_template_syntax(self, bundle: TemplateBundle | Mapping[str, Any]) -> CheckResult:
        """Check the template syntax of every file body in ``bundle``."""

        errors: list[str] = []
        warnings: list[str] = []
        for entry in _file_entries(_as_mapping(bundle)):
            if not isinstance(entry, Mapping) or not isinstance(entry.get("content"), str):
                continue
            result = self.validate_file_syntax(entry["content"])
            path = entry.get("path", "")
            if result.errors:
                errors.append(f"File '{path}': {', '.join(result.errors)}")
            if result.warnings:
                warnings.append(f"File '{path}': {', '.join(result.warnings)}")
        return _check(errors, warnings)

    def validate_file_syntax(self, content: str) -> CheckResult:
        """Check a single template body."""

        errors: list[str] = []
        warnings: list[str] = []
        expression_errors: list[str] = []
        malformed: list[str] = []
        if_count = endif_count = 0
        depth = deepest = 0
        unclosed_variables = unclosed_tags = 0
        empty_blocks = 0
        body_empty = False

        for token in Tokenizer(content):
            if token.kind is TokenKind.TEXT:
                unclosed_variables += token.text.count("{{")
                unclosed_tags += token.text.count("{%")
                if token.text.strip():
                    body_empty = False
                continue

            if token.kind is TokenKind.VARIABLE:
                body_empty = False
                name = token.content
                if not name:
                    errors.append(f"Empty variable at position {token.start}")
                elif not is_variable_name(name):
                    errors.append(f"Invalid variable name '{name}' at position {token.start}")
                elif name.endswith("."):
                    warnings.append(f"Variable '{name}' starts or ends with a dot")
                elif ".." in name:
                    warnings.append(f"Variable '{name}' contains an empty path segment")
                continue

            tag_type = token.tag_type
            if tag_type is TagType.IF:
                if_count += 1
                depth += 1
                deepest = max(deepest, depth)
                body_empty = True
                try:
                    parse_expression(token.expression)
                except ExpressionSyntaxError as exc:
                    expression_errors.append(
                        f"Invalid conditional expression '{token.expression}': {exc}"
                    )
            elif tag_type is TagType.ENDIF:
                endif_count += 1
                if body_empty:
                    empty_blocks += 1
                body_empty = False
                if depth:
                    depth -= 1
                else:
                    errors.append(f"Unexpected endif at position {token.start} without a matching if")
            else:
                body_empty = False
                malformed.append(token.text)

        if if_count != endif_count:
            errors.append(
                f"Mismatched if/endif blocks: {if_count} if blocks, {endif_count} endif blocks"
            )
        if malformed:
            errors.append(f"Malformed conditional syntax: {', '.join(malformed)}")
        errors.extend(expression_errors)
        if unclosed_variables:
            errors.append(f"Unclosed variable tags detected: {unclosed_variables} instances")
        if unclosed_tags:
            errors.append(f"Unclosed tags detected: {unclosed_tags} instances")

        if deepest > self.max_nesting_depth:
            warnings.append(
                f"Deep conditional nesting detected (depth: {deepest}), consider simplifying"
            )
        if empty_blocks:
            warnings.append(f"Empty conditional blocks detected: {empty_blocks} blocks")
        long_lines = sum(
            1 for line in content.split("\n") if len(line.rstrip("\r")) > self.max_line_length
        )
        if long_lines:
            warnings.append(f"{long_lines} lines exceed {self.max_line_length} characters")
        crlf = content.count("\r\n")
        if crlf and content.count("\n") > crlf:
            warnings.append("Mixed line endings detected (CRLF and LF)")

        return _check(errors, warnings)

    # ------------------------------------------------------------------
    # Metadata and configuration
    # ------------------------------------------------------------------
    def validate_metadata(self, bundle: TemplateBundle | Mapping[str, Any]) -> CheckResult:
        data = _as_mapping(bundle)
        errors: list[str] = []
        warnings: list[str] = []

        for name in REQUIRED_FIELDS:
            if name not in data:
                errors.append(f"Required metadata field '{name}' is missing")

        for name in ("name", "description", "version"):
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                errors.append(f"Template {name} must be a string")

        files = data.get("files")
        if files is not None and not isinstance(files, (list, tuple)):
            errors.append("Template files must be a list")
        options = data.get("options")
        if options is not None and not isinstance(options, (list, tuple)):
            errors.append("Template options must be a list")

        name, description = data.get("name"), data.get("description")
        if isinstance(name, str) and isinstance(description, str) and description:
            if len(name) > len(description):
                warnings.append("Template name is longer than description")

        return _check(errors, warnings)

    def validate_configuration(self, bundle: TemplateBundle | Mapping[str, Any]) -> CheckResult:
        data = _as_mapping(bundle)
        errors: list[str] = []
        warnings: list[str] = []

        for name in ("name", "description", "version"):
            if _blank(data.get(name)):
                errors.append(f"Template {name} is required")
        files = data.get("files")
        if files is None or (isinstance(files, (list, tuple)) and not files):
            errors.append("Template must have at least one file")

        name = data.get("name")
        if isinstance(name, str) and name:
            if not _BUNDLE_NAME.match(name):
                errors.append("Template name contains invalid characters")
            if len(name) > self.max_name_length:
                errors.append(f"Template name is too long (max {self.max_name_length} characters)")

        description = data.get("description")
        if isinstance(description, str) and len(description) > self.max_description_length:
            warnings.append(
                f"Template description is very long (max {self.max_description_length} characters recommended)"
            )

        version = data.get("version")
        if isinstance(version, str) and version.strip() and not _SEMVER.match(version):
            warnings.append("Template version should follow semantic versioning (e.g., 1.0.0)")

        options = data.get("options")
        if isinstance(options, (list, tuple)):
            option_result = self.validate_options(options)
            errors.extend(option_result.errors)
            warnings.extend(option_result.warnings)

        return _check(errors, warnings)

    def validate_options(self, options: list[Any] | tuple[Any, ...]) -> CheckResult:
        errors: list[str] = []
        warnings: list[str] = []
        seen: dict[str, int] = {}

        for index, option in enumerate(options, start=1):
            label = f"Option {index}"
            if not isinstance(option, Mapping):
                errors.append(f"{label}: must be a mapping")
                continue

            name = option.get("name")
            option_type = option.get("type")
            if _blank(name) or not isinstance(name, str):
                errors.append(f"{label}: name is required")
            elif not _OPTION_NAME.match(name):
                errors.append(
                    f"{label}: name must start with a letter and contain only letters, numbers, and underscores"
                )
            if option_type not in OPTION_TYPES:
                errors.append(f"{label}: invalid type '{option_type}'")
            if _blank(option.get("description")):
                errors.append(f"{label}: description is required")

            choices = option.get("choices")
            if option_type == "select" and (not isinstance(choices, (list, tuple)) or not choices):
                errors.append(f"{label}: select type requires choices")

            if isinstance(name, str) and name:
                if name in seen:
                    errors.append(
                        f"{label}: duplicate name '{name}' (also used by option {seen[name]})"
                    )
                else:
                    seen[name] = index

            default = option.get("default")
            if default is not None and option_type in OPTION_TYPES:
                if not _default_matches(option_type, default, choices):
                    warnings.append(f"{label}: default value does not match type '{option_type}'")

        return _check(errors, warnings)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def validate_files(self, bundle: TemplateBundle | Mapping[str, Any]) -> FileCheckResult:
        data = _as_mapping(bundle)
        errors: list[str] = []
        warnings: list[str] = []
        file_results: dict[str, CheckResult] = {}

        files = data.get("files")
        if not isinstance(files, (list, tuple)) or not files:
            errors.append("Template must have at least one file")
            return FileCheckResult(is_valid=False, errors=errors, warnings=warnings)

        seen: set[str] = set()
        duplicates: list[str] = []
        for entry in files:
            path = entry.get("path") if isinstance(entry, Mapping) else None
            if not isinstance(path, str) or not path.strip():
                continue
            if path in seen and path not in duplicates:
                duplicates.append(path)
            seen.add(path)
        if duplicates:
            errors.append(f"Duplicate file paths: {', '.join(duplicates)}")

        for index, entry in enumerate(files, start=1):
            path = entry.get("path") if isinstance(entry, Mapping) else None
            key = path if isinstance(path, str) and path.strip() else f"#{index}"
            result = self.validate_file_entry(entry)
            file_results.setdefault(key, result)
            if result.errors:
                errors.append(f"File '{key}': {', '.join(result.errors)}")
            if result.warnings:
                warnings.append(f"File '{key}': {', '.join(result.warnings)}")

        return FileCheckResult(
            is_valid=not errors, errors=errors, warnings=warnings, file_results=file_results
        )

    def validate_file_entry(self, entry: Any) -> CheckResult:
        errors: list[str] = []
        warnings: list[str] = []
        if not isinstance(entry, Mapping):
            return _check(["File entry must be a mapping"], warnings)

        path = entry.get("path")
        if _blank(path) or not isinstance(path, str):
            errors.append("File path is required")
        else:
            path_result = self.validate_file_path(path)
            errors.extend(path_result.errors)
            warnings.extend(path_result.warnings)

        content = entry.get("content")
        if content is None:
            errors.append("File content is required")
        elif not isinstance(content, str):
            errors.append("File content must be a string")
        elif not content:
            warnings.append("File content is empty")

        overwrite = entry.get("overwrite")
        if overwrite is not None and not isinstance(overwrite, bool):
            errors.append("Overwrite flag must be a boolean")

        condition = entry.get("condition")
        if condition is not None:
            if not isinstance(condition, str):
                errors.append("File condition must be a string")
            else:
                try:
                    parse_expression(condition)
                except ExpressionSyntaxError as exc:
                    errors.append(f"Invalid file condition '{condition}': {exc}")

        return _check(errors, warnings)

    def validate_file_path(self, path: str) -> CheckResult:
        errors: list[str] = []
        warnings: list[str] = []

        if _INVALID_PATH_CHARS.search(path):
            errors.append('File path contains invalid characters (<>"|?*)')
        if "\0" in path:
            errors.append("File path contains null bytes")
        if len(path) > self.max_path_length:
            warnings.append("File path is very long and may cause issues on some systems")
        if ".." in re.split(r"[\\/]", path):
            warnings.append("File path uses relative navigation, which may be unsafe")
        if path.startswith(("/", "\\")) or _DRIVE_PATH.match(path):
            warnings.append("File path is absolute, consider using relative paths")

        return _check(errors, warnings)


def _default_matches(option_type: str, default: Any, choices: Any) -> bool:
    if option_type == "boolean":
        return isinstance(default, bool)
    if option_type == "number":
        return isinstance(default, (int, float)) and not isinstance(default, bool)
    if not isinstance(default, str):
        return False
    if option_type == "select" and isinstance(choices, (list, tuple)) and choices:
        return default in choices
    return True


_DEFAULT_VALIDATOR = TemplateValidator()


def validate_template(
    bundle: TemplateBundle | Mapping[str, Any], template_id: str
) -> TemplateValidationResult:
    return _DEFAULT_VALIDATOR.validate_template(bundle, template_id)


def validate_template_syntax(bundle: TemplateBundle | Mapping[str, Any]) -> CheckResult:
    return _DEFAULT_VALIDATOR.validate_template_syntax(bundle)


def validate_file_syntax(content: str) -> CheckResult:
    return _DEFAULT_VALIDATOR.validate_file_syntax(content)


def categorize_validation_errors(result: TemplateValidationResult) -> ValidationSummary:
    """Group sub-check findings into critical issues, errors and warnings."""

    critical: list[str] = []
    errors: list[str] = []
    warnings: list[str] = []
    sections = (
        ("Metadata", result.metadata),
        ("Syntax", result.syntax),
        ("Configuration", result.configuration),
        ("Files", result.files),
    )
    for prefix, check in sections:
        for error in check.errors:
            lowered = error.lower()
            bucket = critical if any(marker in lowered for marker in _CRITICAL_MARKERS) else errors
            bucket.append(f"{prefix}: {error}")
        warnings.extend(f"{prefix}: {warning}" for warning in check.warnings)

    suggestions: list[str] = []
    if critical:
        suggestions.append("Fix critical errors before using this template")
    if errors:
        suggestions.append("Review and fix validation errors")
    if warnings:
        suggestions.append("Consider addressing warnings for better template quality")

    return ValidationSummary(
        critical=critical, errors=errors, warnings=warnings, suggestions=suggestions
    )


def format_validation_result(result: TemplateValidationResult) -> str:
    """Render ``result`` as human readable text."""

    summary = categorize_validation_errors(result)
    lines = [f"Template Validation Results for '{result.template_id}':", ""]
    for title, entries in (
        ("Critical Issues", summary.critical),
        ("Errors", summary.errors),
        ("Warnings", summary.warnings),
        ("Suggestions", summary.suggestions),
    ):
        if not entries:
            continue
        lines.append(f"{title}:")
        lines.extend(f"  - {entry}" for entry in entries)
        lines.append("")

    if result.is_valid:
        lines.append("Template is valid and ready to use")
    else:
        lines.append("Template has validation issues that need to be resolved")
    return "\n".join(lines)
