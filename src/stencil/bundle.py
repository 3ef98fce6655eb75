"""Render every file of a template bundle in memory."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .cache import RenderCache
from .config import RenderOptions
from .expression import evaluate
from .schema import BundleRenderResult, RenderedFile, SkippedFile, TemplateBundle, TemplateFile
from .template import TemplateRenderer

__all__ = ["render_bundle"]


LOGGER = logging.getLogger(__name__)


def render_bundle(
    bundle: TemplateBundle | Mapping[str, Any],
    configuration: Mapping[str, Any],
    *,
    renderer: TemplateRenderer | None = None,
    cache: RenderCache | None = None,
    max_workers: int | None = None,
) -> BundleRenderResult:
    """Render the paths and contents of every file in ``bundle``.

    Files carrying a ``condition`` that evaluates to false are reported in
    :attr:`BundleRenderResult.skipped` instead of being rendered. When
    ``cache`` is given, file bodies are rendered through it. ``max_workers``
    renders the files on a thread pool; the result keeps bundle order either
    way.
    """

    if not isinstance(bundle, TemplateBundle):
        bundle = TemplateBundle.model_validate(bundle)
    renderer = renderer or TemplateRenderer()
    options = RenderOptions(enable_cache=cache is not None, cache=cache)

    selected: list[TemplateFile] = []
    skipped: list[SkippedFile] = []
    for template_file in bundle.files:
        if template_file.condition and not evaluate(template_file.condition, configuration):
            LOGGER.debug("skipping %s: condition %r not met", template_file.path, template_file.condition)
            skipped.append(SkippedFile(path=template_file.path, condition=template_file.condition))
            continue
        selected.append(template_file)

    def render_file(template_file: TemplateFile) -> RenderedFile:
        path = renderer.render_string(template_file.path, configuration)
        result = renderer.render(template_file.content, configuration, options)
        return RenderedFile(
            path=path,
            content=result.content,
            overwrite=template_file.overwrite,
            cache_hit=result.cache_hit,
        )

    if max_workers is not None and max_workers > 1 and len(selected) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            rendered = list(pool.map(render_file, selected))
    else:
        rendered = [render_file(template_file) for template_file in selected]

    return BundleRenderResult(files=rendered, skipped=skipped)
