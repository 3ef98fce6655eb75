"""Write a rendered bundle to disk."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .bundle import render_bundle
from .cache import RenderCache
from .errors import TemplateValidationError
from .schema import TemplateBundle, TemplateValidationResult
from .template import TemplateRenderer
from .validator import TemplateValidator

__all__ = ["BundleScaffolder"]


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BundleScaffolder:
    """Validate, render and write the files of a template bundle."""

    renderer: TemplateRenderer
    validator: TemplateValidator
    cache: RenderCache | None

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        validator: TemplateValidator | None = None,
        cache: RenderCache | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.validator = validator or TemplateValidator()
        self.cache = cache

    def create(
        self,
        bundle: TemplateBundle | Mapping[str, Any],
        configuration: Mapping[str, Any],
        target_dir: str | Path,
        *,
        template_id: str | None = None,
        force: bool = False,
    ) -> list[Path]:
        """Render ``bundle`` with ``configuration`` into ``target_dir``.

        Raises :class:`TemplateValidationError` before touching the file system
        when the bundle is invalid, and :class:`FileExistsError` when a file
        already exists unless ``force`` is set or the file allows overwriting.
        Returns the written paths in bundle order.
        """

        result = self.validate(bundle, template_id)
        if not result.is_valid:
            raise TemplateValidationError(result)
        return self.write(bundle, configuration, target_dir, force=force)

    def validate(
        self, bundle: TemplateBundle | Mapping[str, Any], template_id: str | None = None
    ) -> TemplateValidationResult:
        return self.validator.validate_template(bundle, template_id or _bundle_name(bundle))

    def write(
        self,
        bundle: TemplateBundle | Mapping[str, Any],
        configuration: Mapping[str, Any],
        target_dir: str | Path,
        *,
        force: bool = False,
    ) -> list[Path]:
        """Render and write ``bundle`` without validating it first.

        Raises :class:`ValueError` when a rendered path leaves ``target_dir``
        and :class:`FileExistsError` for existing files, before anything is
        written.
        """

        target_path = Path(target_dir).expanduser().resolve()
        rendered = render_bundle(bundle, configuration, renderer=self.renderer, cache=self.cache)

        planned: list[tuple[Path, str]] = []
        for rendered_file in rendered.files:
            destination = (target_path / rendered_file.path).resolve()
            if not destination.is_relative_to(target_path):
                raise ValueError(f"{rendered_file.path} resolves outside {target_path}")
            if destination.exists() and not (force or rendered_file.overwrite):
                raise FileExistsError(f"{destination} already exists")
            planned.append((destination, rendered_file.content))

        target_path.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for destination, content in planned:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(content, encoding="utf-8")
            LOGGER.info("wrote %s", destination)
            written.append(destination)

        return written


def _bundle_name(bundle: TemplateBundle | Mapping[str, Any]) -> str:
    name = bundle.name if isinstance(bundle, TemplateBundle) else bundle.get("name")
    return name if isinstance(name, str) and name else "template"
