from __future__ import annotations

import pytest

from stencil.errors import ExpressionSyntaxError
from stencil.expression import (
    And,
    Compare,
    Literal,
    Not,
    Or,
    Variable,
    conditional_variables,
    evaluate,
    parse_expression,
)


def test_parse_respects_precedence():
    node = parse_expression("a or b and not c == 1")
    assert node == Or(Variable("a"), And(Variable("b"), Not(Compare("==", Variable("c"), Literal(1)))))


def test_parse_literals():
    assert parse_expression('"text"') == Literal("text")
    assert parse_expression("'text'") == Literal("text")
    assert parse_expression("42") == Literal(42)
    assert parse_expression("-1.5") == Literal(-1.5)
    assert parse_expression("true") == Literal(True)
    assert parse_expression("false") == Literal(False)


def test_parentheses_group():
    assert parse_expression("not (a or b)") == Not(Or(Variable("a"), Variable("b")))


@pytest.mark.parametrize(
    "source",
    ["", "   ", "a ==", "a and", "(a or b", "a b", '"unterminated', "a == b == c", "a = b", "1.2.3", "or a"],
)
def test_malformed_expressions_raise(source):
    with pytest.raises(ExpressionSyntaxError):
        parse_expression(source)


@pytest.mark.parametrize("flag, expected", [(True, True), ("x", True), (1, True), (False, False), (0, False), ("", False)])
def test_truthiness_of_variable_reference(flag, expected):
    assert evaluate("flag", {"flag": flag}) is expected


def test_undefined_variable_is_false():
    assert evaluate("flag", {}) is False
    assert evaluate("not flag", {}) is True


@pytest.mark.parametrize(
    "source, expected",
    [
        ('status == "active"', True),
        ('status != "inactive"', True),
        ("count > 5", True),
        ("count <= 10", True),
        ("count >= 7", True),
        ("count < 7", False),
        ("flag == true", True),
        ("flag == false", False),
        ("ratio == 0.5", True),
        ("user.name == 'Bob'", True),
        ("count == \"7\"", False),
        ("count != \"7\"", True),
        ("status > 1", False),
        ('status < "z"', False),
        ("missing == missing_too", True),
        ("missing > 0", False),
    ],
)
def test_comparisons(source, expected):
    configuration = {"status": "active", "count": 7, "flag": True, "ratio": 0.5, "user": {"name": "Bob"}}
    assert evaluate(source, configuration) is expected


def test_booleans_are_not_numbers():
    assert evaluate("flag == 1", {"flag": True}) is False
    assert evaluate("flag > 0", {"flag": True}) is False


@pytest.mark.parametrize(
    "configuration, expected",
    [
        ({"a": True, "b": False}, True),
        ({"a": True, "b": True}, False),
        ({"a": False, "b": False}, False),
    ],
)
def test_logical_composition(configuration, expected):
    assert evaluate("a and not b", configuration) is expected


def test_or_and_parentheses():
    assert evaluate("isAdmin or isModerator", {"isModerator": True}) is True
    assert evaluate("not (a or b)", {"a": False, "b": False}) is True
    assert evaluate("a and (b or c)", {"a": True, "c": 1}) is True


def test_unparsable_expression_evaluates_false():
    assert evaluate("a ==", {"a": 1}) is False
    assert evaluate("", {}) is False


def test_conditional_variables():
    template = "{% if isActive and not isHidden %}Hello {{name}}{% endif %}{% if count > 0 or isActive %}{% endif %}{% if == %}{% endif %}"
    assert conditional_variables(template) == ["isActive", "isHidden", "count"]


def test_deeply_nested_guard_is_a_syntax_error():
    nested = "(" * 250 + "a" + ")" * 250
    with pytest.raises(ExpressionSyntaxError, match="nested too deeply"):
        parse_expression(nested)
    with pytest.raises(ExpressionSyntaxError, match="nested too deeply"):
        parse_expression("not " * 1500 + "a")
    assert evaluate(nested, {"a": True}) is False
    assert evaluate("not " * 1500 + "a", {"a": False}) is False


def test_moderate_nesting_still_parses():
    assert evaluate("(" * 30 + "a" + ")" * 30, {"a": True}) is True
    assert evaluate("not " * 31 + "a", {"a": False}) is True


def test_long_boolean_chains_evaluate():
    names = [f"v{index}" for index in range(2000)]
    everything = {name: True for name in names}
    assert evaluate(" and ".join(names), everything) is True
    assert evaluate(" and ".join(names), {**everything, "v1999": False}) is False
    assert evaluate(" or ".join(names), {"v1999": 1}) is True
    assert conditional_variables("{% if " + " or ".join(names) + " %}{% endif %}") == names


def test_percent_inside_quoted_literal():
    assert evaluate('p == "100%"', {"p": "100%"}) is True
