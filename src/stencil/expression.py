"""Boolean guard expressions used by ``{% if %}`` tags.

Grammar, lowest precedence first::

    or_expr    := and_expr ("or" and_expr)*
    and_expr   := not_expr ("and" not_expr)*
    not_expr   := "not" not_expr | comparison
    comparison := atom (("==" | "!=" | ">" | "<" | ">=" | "<=") atom)?
    atom       := STRING | NUMBER | "true" | "false" | PATH | "(" or_expr ")"

Equality compares values of the same kind only. Ordering operators are
defined for numbers and evaluate to ``False`` for anything else.
Parentheses and ``not`` may nest at most 64 levels deep.
"""

from __future__ import annotations

import logging
import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from .errors import ExpressionSyntaxError
from .resolver import MISSING, is_truthy, resolve
from .tokens import TagType, Tokenizer

__all__ = [
    "And",
    "Compare",
    "Expression",
    "Literal",
    "Not",
    "Or",
    "Variable",
    "conditional_variables",
    "evaluate",
    "evaluate_expression",
    "parse_expression",
]


LOGGER = logging.getLogger(__name__)

_LEXEME_PATTERN = re.compile(
    r"""
    (?P<string>"[^"]*"|'[^']*')
    | (?P<number>-?\d+(?:\.\d+)?)(?![A-Za-z0-9_.])
    | (?P<op>==|!=|>=|<=|>|<)
    | (?P<paren>[()])
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)
    """,
    re.VERBOSE,
)
_KEYWORDS = {"and", "or", "not", "true", "false"}
_MAX_NESTING = 64

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


@dataclass(frozen=True, slots=True)
class Literal:
    value: str | int | float | bool


@dataclass(frozen=True, slots=True)
class Variable:
    path: str


@dataclass(frozen=True, slots=True)
class Not:
    operand: "Expression"


@dataclass(frozen=True, slots=True)
class And:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Or:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Compare:
    op: str
    left: "Expression"
    right: "Expression"


Expression = Union[Literal, Variable, Not, And, Or, Compare]


@dataclass(frozen=True, slots=True)
class _Lexeme:
    kind: str
    value: str
    position: int


def _lex(source: str) -> list[_Lexeme]:
    lexemes: list[_Lexeme] = []
    pos = 0
    length = len(source)
    while True:
        while pos < length and source[pos].isspace():
            pos += 1
        if pos >= length:
            break

        match = _LEXEME_PATTERN.match(source, pos)
        if match is None:
            raise ExpressionSyntaxError(
                f"unexpected character '{source[pos]}' at position {pos}", source
            )

        kind = match.lastgroup or ""
        value = match.group(0)
        if kind == "name" and value in _KEYWORDS:
            kind = value
        lexemes.append(_Lexeme(kind, value, pos))
        pos = match.end()

    lexemes.append(_Lexeme("end", "", length))
    return lexemes


class _Parser:
    def __init__(self, source: str) -> None:
        self._source = source
        self._lexemes = _lex(source)
        self._index = 0
        self._depth = 0

    def parse(self) -> Expression:
        if self._peek().kind == "end":
            raise ExpressionSyntaxError("empty expression", self._source)
        node = self._or_expr()
        trailing = self._peek()
        if trailing.kind != "end":
            raise self._error(f"unexpected '{trailing.value}'", trailing)
        return node

    def _peek(self) -> _Lexeme:
        return self._lexemes[self._index]

    def _advance(self) -> _Lexeme:
        lexeme = self._lexemes[self._index]
        if lexeme.kind != "end":
            self._index += 1
        return lexeme

    def _error(self, message: str, lexeme: _Lexeme) -> ExpressionSyntaxError:
        return ExpressionSyntaxError(f"{message} at position {lexeme.position}", self._source)

    def _nest(self, lexeme: _Lexeme) -> None:
        self._depth += 1
        if self._depth > _MAX_NESTING:
            raise self._error("expression nested too deeply", lexeme)

    def _or_expr(self) -> Expression:
        node = self._and_expr()
        while self._peek().kind == "or":
            self._advance()
            node = Or(node, self._and_expr())
        return node

    def _and_expr(self) -> Expression:
        node = self._not_expr()
        while self._peek().kind == "and":
            self._advance()
            node = And(node, self._not_expr())
        return node

    def _not_expr(self) -> Expression:
        if self._peek().kind == "not":
            self._nest(self._advance())
            node = Not(self._not_expr())
            self._depth -= 1
            return node
        return self._comparison()

    def _comparison(self) -> Expression:
        left = self._atom()
        if self._peek().kind == "op":
            op = self._advance().value
            return Compare(op, left, self._atom())
        return left

    def _atom(self) -> Expression:
        lexeme = self._advance()
        if lexeme.kind == "string":
            return Literal(lexeme.value[1:-1])
        if lexeme.kind == "number":
            text = lexeme.value
            return Literal(float(text) if "." in text else int(text))
        if lexeme.kind in ("true", "false"):
            return Literal(lexeme.kind == "true")
        if lexeme.kind == "name":
            return Variable(lexeme.value)
        if lexeme.kind == "paren" and lexeme.value == "(":
            self._nest(lexeme)
            node = self._or_expr()
            closing = self._advance()
            if closing.kind != "paren" or closing.value != ")":
                raise self._error("expected ')'", closing)
            self._depth -= 1
            return node
        if lexeme.kind == "end":
            raise self._error("unexpected end of expression", lexeme)
        raise self._error(f"unexpected '{lexeme.value}'", lexeme)


def parse_expression(source: str) -> Expression:
    """Parse ``source`` into an expression tree.

    Raises :class:`~stencil.errors.ExpressionSyntaxError` when the text does not
    follow the guard grammar.
    """

    return _Parser(source).parse()


def _kind(value: Any) -> str:
    if value is MISSING or value is None:
        return "absent"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


def _operand(node: Expression, configuration: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Variable):
        return resolve(node.path, configuration)
    return evaluate_expression(node, configuration)


def _compare(op: str, left: Any, right: Any) -> bool:
    left_kind, right_kind = _kind(left), _kind(right)
    if op in ("==", "!="):
        equal = left_kind == right_kind and (left_kind == "absent" or left == right)
        return equal if op == "==" else not equal
    if left_kind != "number" or right_kind != "number":
        return False
    return _ORDERING[op](left, right)


def _chain(node: Expression, kind: type) -> list[Expression]:
    """Flatten a left-leaning run of ``kind`` nodes into its operands."""

    operands: list[Expression] = []
    while isinstance(node, kind):
        operands.append(node.right)
        node = node.left
    operands.append(node)
    operands.reverse()
    return operands


def evaluate_expression(node: Expression, configuration: Mapping[str, Any]) -> bool:
    """Evaluate a parsed expression tree against ``configuration``."""

    if isinstance(node, Or):
        return any(evaluate_expression(operand, configuration) for operand in _chain(node, Or))
    if isinstance(node, And):
        return all(evaluate_expression(operand, configuration) for operand in _chain(node, And))
    if isinstance(node, Not):
        return not evaluate_expression(node.operand, configuration)
    if isinstance(node, Compare):
        return _compare(
            node.op, _operand(node.left, configuration), _operand(node.right, configuration)
        )
    return is_truthy(_operand(node, configuration))


def evaluate(source: str, configuration: Mapping[str, Any]) -> bool:
    """Parse and evaluate ``source``; unparsable expressions are ``False``."""

    try:
        node = parse_expression(source)
    except ExpressionSyntaxError as exc:
        LOGGER.debug("treating unparsable guard %r as false: %s", source, exc)
        return False
    return evaluate_expression(node, configuration)


def _collect_paths(node: Expression, seen: dict[str, None]) -> None:
    if isinstance(node, Variable):
        seen.setdefault(node.path, None)
    elif isinstance(node, Not):
        _collect_paths(node.operand, seen)
    elif isinstance(node, (And, Or)):
        for operand in _chain(node, type(node)):
            _collect_paths(operand, seen)
    elif isinstance(node, Compare):
        _collect_paths(node.left, seen)
        _collect_paths(node.right, seen)


def conditional_variables(text: str) -> list[str]:
    """Return variable paths referenced by ``if`` guards in ``text``."""

    seen: dict[str, None] = {}
    for token in Tokenizer(text):
        if token.tag_type is not TagType.IF:
            continue
        try:
            node = parse_expression(token.expression)
        except ExpressionSyntaxError:
            continue
        _collect_paths(node, seen)
    return list(seen)
