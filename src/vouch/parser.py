"""Turn assertion text into a Python syntax tree.

Plain Python expressions go straight through ``ast.parse``. Text that uses the
``let PATTERN = EXPR`` form is first split into top-level conjuncts by the lark
grammar in ``assertion.lark``; every chunk is then parsed by Python itself.

Every ``ast.expr`` node produced here remembers the text it was parsed from,
so ``source_text`` can recover what the user actually wrote.
"""
from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from lark import Lark, Token, Transformer, Tree, UnexpectedInput, v_args
from lark.exceptions import VisitError

from .types import AssertionSyntaxError

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).with_name("assertion.lark")

_SOURCE_ATTR = "_vouch_source"


@dataclass(frozen=True)
class LetTest:
    """``let PATTERN = VALUE``: does VALUE match PATTERN."""
    pattern: ast.pattern
    value: ast.expr
    pattern_source: str
    source: str


@lru_cache(maxsize=1)
def make_parser() -> Lark:
    grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
    return Lark(grammar, parser="lalr", propagate_positions=True)

def _annotate(tree: ast.AST, text: str) -> None:
    for node in ast.walk(tree):
        if isinstance(node, ast.expr):
            setattr(node, _SOURCE_ATTR, text)

def source_text(node: ast.expr) -> str:
    """Original text of a node, or a reconstruction when it was not recorded."""
    text = getattr(node, _SOURCE_ATTR, None)

    if text is not None:
        segment = ast.get_source_segment(text, node)
        if segment is not None:
            return segment

    return ast.unparse(node)

def parse_expression(text: str) -> ast.expr:
    # Parenthesise so that line breaks inside the assertion are legal; the
    # trailing newline lets a comment end the text.
    wrapped = f"({text}\n)"
    try:
        tree = ast.parse(wrapped, mode="eval")
    except SyntaxError as exc:
        raise AssertionSyntaxError(
            f"invalid assertion expression {text!r}: {exc.msg}",
            exc.lineno,
            exc.offset,
        ) from exc

    _annotate(tree, wrapped)
    return tree.body

def parse_pattern(text: str) -> ast.pattern:
    wrapped = f"match _:\n    case ({text}\n    ):\n        pass\n"
    try:
        module = ast.parse(wrapped, mode="exec")
    except SyntaxError as exc:
        raise AssertionSyntaxError(f"invalid pattern {text!r}: {exc.msg}") from exc

    match_stmt = module.body[0]
    assert isinstance(match_stmt, ast.Match)
    return match_stmt.cases[0].pattern


@dataclass(frozen=True)
class _Span:
    start: int
    end: int
    # top-level names, used to spot an unfinished `if` or a `lambda`
    names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class _Chunk:
    """One stretch of text between top-level ``and`` keywords."""
    start: int
    end: int
    value_start: int
    names: Tuple[str, ...]
    pattern: Optional[_Span] = None

    @property
    def open_ended(self) -> bool:
        # `x if a and b else y` and `lambda: a and b` own the next `and`
        return "lambda" in self.names or self.names.count("if") > self.names.count("else")

    def extended(self, other: _Chunk) -> _Chunk:
        return replace(self, end=other.end, names=self.names + other.names)


class ConjunctBuilder(Transformer):
    """Build python syntax nodes out of the coarse lark tree."""

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def _span(self, meta, children) -> _Span:
        names = tuple(c.value for c in children if isinstance(c, Token) and c.type == "NAME")
        return _Span(meta.start_pos, meta.end_pos, names)

    @v_args(meta=True)
    def pattern(self, meta, children) -> _Span:
        return self._span(meta, children)

    @v_args(meta=True)
    def expr(self, meta, children) -> _Span:
        return self._span(meta, children)

    @v_args(meta=True)
    def let_test(self, meta, children) -> _Chunk:
        # children: LET, pattern span, EQUAL, value span
        pattern, value = [c for c in children if isinstance(c, _Span)]
        return _Chunk(meta.start_pos, meta.end_pos, value.start, value.names, pattern)

    @v_args(meta=True)
    def plain(self, meta, children) -> _Chunk:
        value = children[0]
        return _Chunk(meta.start_pos, meta.end_pos, value.start, value.names)

    def _build(self, chunk: _Chunk) -> object:
        value_text = self.text[chunk.value_start:chunk.end]
        if chunk.pattern is None:
            return parse_expression(value_text)

        pattern_text = self.text[chunk.pattern.start:chunk.pattern.end]
        return LetTest(
            pattern=parse_pattern(pattern_text),
            value=parse_expression(value_text),
            pattern_source=pattern_text,
            source=self.text[chunk.start:chunk.end],
        )

    def start(self, children) -> ast.expr:
        chunks: List[_Chunk] = []
        for child in children:
            if isinstance(child, Token):
                continue
            if chunks and chunks[-1].open_ended:
                chunks[-1] = chunks[-1].extended(child)
            else:
                chunks.append(child)

        conjuncts = [self._build(chunk) for chunk in chunks]
        if len(conjuncts) == 1:
            return conjuncts[0]  # type: ignore[return-value]

        return ast.BoolOp(op=ast.And(), values=conjuncts)


def _has_let(tree: Tree) -> bool:
    return any(True for _ in tree.find_data("let_test"))

def parse_assertion(text: str) -> ast.expr:
    """Parse assertion text into an expression tree for the classifier.

    In a ``let`` chain each top-level ``and`` starts a new conjunct, except
    where the text before it holds an ``if`` still waiting for its ``else``
    or a ``lambda``; there the ``and`` stays inside that expression.
    """
    text = text.strip()
    if not text:
        raise AssertionSyntaxError("empty assertion")

    lark_error: Optional[UnexpectedInput] = None
    coarse: Optional[Tree] = None

    try:
        coarse = make_parser().parse(text)
    except UnexpectedInput as exc:
        lark_error = exc

    if coarse is not None and _has_let(coarse):
        logger.debug("splitting let-chain assertion %r", text)
        try:
            return ConjunctBuilder(text).transform(coarse)
        except VisitError as exc:
            # lark wraps callback errors; surface our own
            if isinstance(exc.orig_exc, AssertionSyntaxError):
                raise exc.orig_exc from None
            raise

    try:
        return parse_expression(text)
    except AssertionSyntaxError:
        if lark_error is not None and text.startswith("let"):
            raise AssertionSyntaxError(
                f"invalid let assertion {text!r}",
                getattr(lark_error, "line", None),
                getattr(lark_error, "column", None),
            ) from lark_error
        raise
