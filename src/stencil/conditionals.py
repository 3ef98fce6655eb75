"""Resolve ``{% if %}...{% endif %}`` spans in template text."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .expression import evaluate
from .tokens import TagType, Token, tokenize

__all__ = ["nesting_depth", "process_conditionals"]


LOGGER = logging.getLogger(__name__)


def _pair_tags(tokens: list[Token]) -> set[int]:
    """Return the indices of ``if`` and ``endif`` tokens that have a partner."""

    paired: set[int] = set()
    open_ifs: list[int] = []
    for index, token in enumerate(tokens):
        tag_type = token.tag_type
        if tag_type is TagType.IF:
            open_ifs.append(index)
        elif tag_type is TagType.ENDIF and open_ifs:
            paired.add(open_ifs.pop())
            paired.add(index)
    return paired


def process_conditionals(text: str, configuration: Mapping[str, Any]) -> str:
    """Return ``text`` with every conditional span resolved.

    A span whose guard is true is replaced by its body, with nested spans
    resolved the same way. A false span is dropped entirely and the guards
    inside it are never evaluated. Tags without a partner are kept as literal
    text.
    """

    tokens = tokenize(text)
    paired = _pair_tags(tokens)
    parts: list[str] = []
    # one entry per open span: whether its body is emitted
    open_spans: list[bool] = []
    dropped = 0

    for index, token in enumerate(tokens):
        if index in paired:
            if token.tag_type is TagType.IF:
                keep = not dropped and evaluate(token.expression, configuration)
                open_spans.append(keep)
                if not keep:
                    dropped += 1
            elif not open_spans.pop():
                dropped -= 1
            continue

        if dropped:
            continue
        if token.tag_type is TagType.IF:
            LOGGER.debug("unmatched if at offset %d left verbatim", token.start)
        elif token.tag_type is TagType.ENDIF:
            LOGGER.debug("unmatched endif at offset %d left verbatim", token.start)
        parts.append(token.text)

    return "".join(parts)


def nesting_depth(text: str) -> int:
    """Return the deepest level of ``if`` nesting found in ``text``."""

    depth = deepest = 0
    for token in tokenize(text):
        tag_type = token.tag_type
        if tag_type is TagType.IF:
            depth += 1
            deepest = max(deepest, depth)
        elif tag_type is TagType.ENDIF and depth:
            depth -= 1
    return deepest
