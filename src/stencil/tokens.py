"""Tokenizer shared by the renderer and the validator.

Template text is split into three kinds of token:

* ``TEXT`` - literal content, including any brace sequences that do not form
  a complete tag.
* ``VARIABLE`` - a ``{{ ... }}`` token. The content may be empty or malformed;
  callers decide what to do with it via :func:`is_variable_name`.
* ``TAG`` - a ``{% ... %}`` tag, classified as ``if``, ``endif`` or anything
  else. A tag ends at the first ``%}`` and never contains ``{%``; any other
  ``%``, such as one inside a quoted guard literal, belongs to the tag.

Both the conditional processor and the syntax validator walk the same token
stream so that a tag is recognised identically at render and validate time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

__all__ = [
    "TagType",
    "Token",
    "TokenKind",
    "Tokenizer",
    "is_variable_name",
    "tokenize",
]


_TOKEN_PATTERN = re.compile(r"\{\{(?P<variable>[^{}]*)\}\}|\{%(?P<tag>(?:[^%]|(?<!\{)%(?!\}))*)%\}")
_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


class TokenKind(str, Enum):
    TEXT = "text"
    VARIABLE = "variable"
    TAG = "tag"


class TagType(str, Enum):
    IF = "if"
    ENDIF = "endif"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Token:
    """A slice of template source.

    Attributes
    ----------
    kind:
        The token category.
    text:
        The raw source text, delimiters included.
    start, end:
        Offsets of ``text`` inside the source string.
    content:
        For variables and tags, the stripped text between the delimiters. Empty
        for text tokens.
    """

    kind: TokenKind
    text: str
    start: int
    end: int
    content: str = ""

    @property
    def tag_type(self) -> TagType | None:
        if self.kind is not TokenKind.TAG:
            return None
        parts = self.content.split(None, 1)
        if parts and parts[0] == "if":
            return TagType.IF
        if self.content == "endif":
            return TagType.ENDIF
        return TagType.OTHER

    @property
    def expression(self) -> str:
        """Guard expression of an ``if`` tag, empty for every other token."""

        if self.tag_type is not TagType.IF:
            return ""
        parts = self.content.split(None, 1)
        return parts[1].strip() if len(parts) > 1 else ""


def is_variable_name(content: str) -> bool:
    """Return whether ``content`` is an identifier-shaped dotted path."""

    return bool(_VARIABLE_NAME.match(content))


class Tokenizer:
    """Pull-based scanner over template text."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def next_token(self) -> Token | None:
        """Return the next token, or ``None`` once the text is exhausted."""

        text = self._text
        start = self._pos
        if start >= len(text):
            return None

        match = _TOKEN_PATTERN.search(text, start)
        if match is None or match.start() > start:
            end = match.start() if match else len(text)
            self._pos = end
            return Token(TokenKind.TEXT, text[start:end], start, end)

        self._pos = match.end()
        if match.group("variable") is not None:
            kind = TokenKind.VARIABLE
            content = match.group("variable")
        else:
            kind = TokenKind.TAG
            content = match.group("tag")
        return Token(kind, match.group(0), match.start(), match.end(), content.strip())

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            if token is None:
                return
            yield token


def tokenize(text: str) -> list[Token]:
    """Return every token of ``text`` in source order."""

    return list(Tokenizer(text))
