from __future__ import annotations

import ast

import pytest

from tests.support.harness import AssertionSyntaxError
from vouch.parser import LetTest, parse_assertion, source_text

VALID = [
    pytest.param("a == b", ast.Compare, id="plain-compare"),
    pytest.param("  x  ", ast.Name, id="strips-whitespace"),
    pytest.param("a and b and c", ast.BoolOp, id="plain-and"),
    pytest.param("let Ok(v) = r", LetTest, id="let-single"),
    pytest.param("let [a, *rest] = xs and a > 1", ast.BoolOp, id="let-chain"),
    pytest.param("x == 1 and let {'k': v} = d", ast.BoolOp, id="let-second"),
    pytest.param("items == [\n  1,\n  2,\n]", ast.Compare, id="multi-line"),
    pytest.param("a == 1  # trailing comment", ast.Compare, id="comment"),
    pytest.param("letter == 'l'", ast.Compare, id="let-prefix-name"),
]


@pytest.mark.parametrize("text, expected_type", VALID)
def test_parse_valid(text: str, expected_type: type) -> None:
    assert isinstance(parse_assertion(text), expected_type)


INVALID = [
    pytest.param("", id="empty"),
    pytest.param("   ", id="blank"),
    pytest.param("a ==", id="dangling-op"),
    pytest.param("let = 3", id="let-missing-pattern"),
    pytest.param("let Ok(x) 3", id="let-missing-equal"),
    pytest.param("let 1 + = x", id="let-bad-pattern"),
    pytest.param("let x = (", id="let-bad-value"),
]


@pytest.mark.parametrize("text", INVALID)
def test_parse_invalid(text: str) -> None:
    with pytest.raises(AssertionSyntaxError):
        parse_assertion(text)


def test_let_chain_keeps_conjunct_text() -> None:
    tree = parse_assertion("let Ok(value) = parse(data)   and value > 3")

    assert isinstance(tree, ast.BoolOp)
    first, second = tree.values
    assert isinstance(first, LetTest)
    assert first.pattern_source == "Ok(value)"
    assert first.source == "let Ok(value) = parse(data)"
    assert source_text(first.value) == "parse(data)"
    assert source_text(second) == "value > 3"


def test_and_inside_brackets_is_not_split() -> None:
    tree = parse_assertion("let x = f(a and b) and [p and q]")

    assert isinstance(tree, ast.BoolOp)
    assert len(tree.values) == 2
    assert source_text(tree.values[1]) == "[p and q]"


CONDITIONAL_TAILS = [
    pytest.param("let Ok(v) = r if a and b else s", ["r if a and b else s"], id="let-value-conditional"),
    pytest.param("let v = a if b and c and d else e", ["a if b and c and d else e"], id="several-ands-in-condition"),
    pytest.param("let [x] = xs and y if p and q else z", ["xs", "y if p and q else z"], id="plain-conditional"),
    pytest.param("let [x] = xs and lambda: a and b", ["xs", "lambda: a and b"], id="lambda-body"),
    pytest.param("let v = a if b else c and v", ["a if b else c", "v"], id="finished-conditional-splits"),
]


@pytest.mark.parametrize("text, values", CONDITIONAL_TAILS)
def test_and_inside_conditional_or_lambda_is_not_split(text: str, values: list) -> None:
    tree = parse_assertion(text)

    conjuncts = tree.values if isinstance(tree, ast.BoolOp) else [tree]
    texts = [source_text(c.value if isinstance(c, LetTest) else c) for c in conjuncts]
    assert texts == values


def test_and_inside_strings_is_not_split() -> None:
    tree = parse_assertion("let s = 'cats and dogs' and s")

    assert isinstance(tree, ast.BoolOp)
    assert source_text(tree.values[0].value) == "'cats and dogs'"


def test_source_text_keeps_original_spelling() -> None:
    tree = parse_assertion("foo( 1,2 )  ==  [ 3 ]")

    assert isinstance(tree, ast.Compare)
    assert source_text(tree.left) == "foo( 1,2 )"
    assert source_text(tree.comparators[0]) == "[ 3 ]"


def test_source_text_falls_back_to_unparse() -> None:
    node = ast.BinOp(left=ast.Constant(1), op=ast.Add(), right=ast.Name(id="x", ctx=ast.Load()))

    assert source_text(node) == "1 + x"


def test_syntax_error_carries_position() -> None:
    with pytest.raises(AssertionSyntaxError) as exc_info:
        parse_assertion("a == == b")

    assert exc_info.value.line is not None
    assert "invalid assertion expression" in str(exc_info.value)
