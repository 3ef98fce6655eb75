"""Template rendering: conditional resolution followed by variable substitution."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .cache import RenderCache, make_cache_key
from .conditionals import process_conditionals
from .config import RenderOptions
from .resolver import MISSING, resolve, stringify
from .schema import RenderResult
from .tokens import TokenKind, Tokenizer, is_variable_name

__all__ = ["TemplateRenderer", "render", "substitute_variables"]


LOGGER = logging.getLogger(__name__)


def substitute_variables(text: str, configuration: Mapping[str, Any]) -> str:
    """Replace ``{{ path }}`` tokens with their configured values.

    Tokens that are malformed or whose path does not resolve, or resolves to
    ``None``, are kept verbatim.
    """

    parts: list[str] = []
    for token in Tokenizer(text):
        if token.kind is TokenKind.VARIABLE and is_variable_name(token.content):
            value = resolve(token.content, configuration)
            if value is not MISSING and value is not None:
                parts.append(stringify(value))
                continue
        parts.append(token.text)
    return "".join(parts)


@dataclass(slots=True)
class TemplateRenderer:
    """Render templates with ``{{ variables }}`` and ``{% if %}`` blocks.

    Rendering never fails because of template content: unknown variables stay
    in the output and unparsable guards count as false. Use
    :mod:`stencil.validator` to detect such problems up front.
    """

    cache: RenderCache = field(default_factory=RenderCache)

    def render(
        self,
        template: str,
        configuration: Mapping[str, Any],
        options: RenderOptions | None = None,
        *,
        enable_cache: bool | None = None,
        cache: RenderCache | None = None,
    ) -> RenderResult:
        """Render ``template`` against ``configuration``.

        Parameters
        ----------
        template:
            Template source text.
        configuration:
            Read-only tree of values referenced by the template.
        options:
            Caching switches. ``enable_cache`` and ``cache`` keyword arguments
            override the corresponding fields.
        """

        if not isinstance(template, str):
            raise TypeError(f"template must be a str, not {type(template).__name__}")
        if not isinstance(configuration, Mapping):
            raise TypeError(f"configuration must be a mapping, not {type(configuration).__name__}")

        options = options or RenderOptions()
        use_cache = options.enable_cache if enable_cache is None else enable_cache
        store = cache if cache is not None else options.cache
        if store is None:
            store = self.cache

        started = time.perf_counter()
        key = None
        if use_cache:
            key = make_cache_key(template, configuration)
            cached = store.get(key)
            if cached is not None:
                LOGGER.debug("render cache hit %s", key[:12])
                return RenderResult(content=cached, render_time_ms=_elapsed_ms(started), cache_hit=True)
            LOGGER.debug("render cache miss %s", key[:12])

        content = self.render_string(template, configuration)

        if key is not None:
            store.set(key, content)

        return RenderResult(content=content, render_time_ms=_elapsed_ms(started), cache_hit=False)

    def render_string(self, template: str, configuration: Mapping[str, Any]) -> str:
        """Render ``template`` without timing or caching."""

        resolved = process_conditionals(template, configuration)
        return substitute_variables(resolved, configuration)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def render(
    template: str,
    configuration: Mapping[str, Any],
    options: RenderOptions | None = None,
) -> RenderResult:
    """Render with a throwaway :class:`TemplateRenderer`.

    Pass a :class:`RenderCache` through ``options`` to share results between
    calls.
    """

    return TemplateRenderer().render(template, configuration, options)
