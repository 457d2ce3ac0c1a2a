"""Expression classification.

Rules, in priority order:
1. top-level ``and`` chain -> BooleanAnd (each conjunct classified one level)
2. ``let PATTERN = VALUE`` -> PatternMatch
3. single relational operator -> Comparison
4. anything else -> Generic

Classification looks at syntax only and never fails.
"""
from __future__ import annotations

import ast
import logging
from typing import Dict, List, Optional, Tuple, Type

from .parser import LetTest, source_text
from .tree import BooleanAnd, Comparison, Conjunct, ExpressionNode, Generic, OperandHandle, PatternMatch, shape_name

logger = logging.getLogger(__name__)

OPERATORS: Dict[Type[ast.cmpop], str] = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
}


def pattern_bindings(pattern: ast.pattern) -> Tuple[str, ...]:
    """Names a pattern introduces, in the order they are written."""
    names: List[str] = []

    def visit(node: ast.pattern) -> None:
        match node:
            case ast.MatchAs(pattern=inner, name=name):
                if inner is not None:
                    visit(inner)
                if name is not None:
                    names.append(name)
            case ast.MatchStar(name=name):
                if name is not None:
                    names.append(name)
            case ast.MatchSequence(patterns=items):
                for item in items:
                    visit(item)
            case ast.MatchMapping(patterns=items, rest=rest):
                for item in items:
                    visit(item)
                if rest is not None:
                    names.append(rest)
            case ast.MatchClass(patterns=items, kwd_patterns=kwd_items):
                for item in [*items, *kwd_items]:
                    visit(item)
            case ast.MatchOr(patterns=alternatives):
                # every alternative binds the same names
                if alternatives:
                    visit(alternatives[0])
            case _:
                pass

    visit(pattern)
    return tuple(names)

def _handle(node: ast.expr) -> OperandHandle:
    return OperandHandle(node=node, source=source_text(node))

def classify_conjunct(node: object) -> Conjunct:
    match node:
        case LetTest(pattern=pattern, value=value, pattern_source=pattern_source, source=source):
            return PatternMatch(
                pattern=pattern,
                pattern_source=pattern_source,
                bindings=pattern_bindings(pattern),
                scrutinee=_handle(value),
                source=source,
            )
        case ast.Compare(left=left, ops=[op], comparators=[right]) if type(op) in OPERATORS:
            return Comparison(
                operator=OPERATORS[type(op)],
                left=_handle(left),
                right=_handle(right),
                source=source_text(node),
            )
        case ast.expr():
            return Generic(operand=_handle(node), source=source_text(node))
        case _:
            # Not an expression node at all; keep it assertable as an opaque value.
            constant = ast.Constant(value=node)
            return Generic(operand=OperandHandle(constant, repr(node)), source=repr(node))

def _conjunct_text(node: object) -> str:
    if isinstance(node, LetTest):
        return node.source
    if isinstance(node, ast.expr):
        return source_text(node)
    return repr(node)

def classify(tree: object, source: Optional[str] = None) -> ExpressionNode:
    """Classify a parsed assertion into exactly one ExpressionNode."""
    match tree:
        case ast.BoolOp(op=ast.And(), values=values):
            conjuncts = tuple(classify_conjunct(v) for v in values)
            text = source if source is not None else " and ".join(_conjunct_text(v) for v in values)
            result: ExpressionNode = BooleanAnd(conjuncts=conjuncts, source=text)
        case _:
            result = classify_conjunct(tree)

    logger.debug("classified assertion as %s", shape_name(result))
    return result
