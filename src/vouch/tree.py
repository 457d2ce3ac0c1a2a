"""Classified expression shapes shared by the classifier, evaluator and renderer.

The union is closed: every assertion classifies to exactly one of
Comparison, BooleanAnd, PatternMatch or Generic.
"""
from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from typing_extensions import TypeAlias, TypeGuard


@dataclass(frozen=True)
class OperandHandle:
    """A sub-expression plus the text it was written as (if known)."""
    node: ast.expr
    source: Optional[str] = None

    def text(self) -> str:
        if self.source is not None:
            return self.source
        return ast.unparse(self.node)


@dataclass(frozen=True)
class Comparison:
    operator: str
    left: OperandHandle
    right: OperandHandle
    source: str


@dataclass(frozen=True)
class PatternMatch:
    pattern: ast.pattern
    pattern_source: str
    bindings: Tuple[str, ...]
    scrutinee: OperandHandle
    source: str


@dataclass(frozen=True)
class Generic:
    operand: OperandHandle
    source: str


Conjunct: TypeAlias = Union[Comparison, PatternMatch, Generic]


@dataclass(frozen=True)
class BooleanAnd:
    conjuncts: Tuple[Conjunct, ...]
    source: str


ExpressionNode: TypeAlias = Union[Comparison, BooleanAnd, PatternMatch, Generic]


def is_conjunction(node: ExpressionNode) -> TypeGuard[BooleanAnd]:
    return isinstance(node, BooleanAnd)

def conjuncts_of(node: ExpressionNode) -> Tuple[Conjunct, ...]:
    """Flatten a classified node into its evaluation-ordered conjuncts."""
    if is_conjunction(node):
        return node.conjuncts

    return (node,)

def shape_name(node: ExpressionNode) -> str:
    match node:
        case Comparison(operator=op):
            return f"comparison({op})"
        case BooleanAnd(conjuncts=parts):
            return "and(" + ", ".join(shape_name(p) for p in parts) + ")"
        case PatternMatch(bindings=names):
            return f"match[{', '.join(names)}]"
        case _:
            return "generic"
