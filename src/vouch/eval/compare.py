from __future__ import annotations

import operator
from typing import Any, Callable, Dict

from ..types import BinaryExpansion, Observation

COMPARATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def apply_comparison(op: str, left: Any, right: Any) -> bool:
    # bool() may raise for objects like numpy arrays; that propagates.
    return bool(COMPARATORS[op](left, right))

def binary_expansion(left: Any, op: str, right: Any) -> BinaryExpansion:
    return BinaryExpansion(left=Observation(left), operator=op, right=Observation(right))
