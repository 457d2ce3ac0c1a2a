"""
Structural Match Logic for ``let PATTERN = VALUE`` conjuncts

The pattern is a Python ``case`` pattern, so matching is delegated to a
compiled ``match`` statement:
- The scrutinee is evaluated once by the caller and passed in.
- The match runs in a scratch copy of the namespace; Python may bind some
  names before a match fails, and those must not leak.
- On success the declared names are read back in declaration order.
"""
from __future__ import annotations

import ast
from dataclasses import dataclass
from types import CodeType
from typing import Any, Dict, Tuple

from .common import Namespace

SUBJECT_NAME = "__vouch_subject__"
MATCHED_NAME = "__vouch_matched__"


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    bindings: Dict[str, Any]


def compile_pattern(pattern: ast.pattern, filename: str) -> CodeType:
    flag = ast.Assign(
        targets=[ast.Name(id=MATCHED_NAME, ctx=ast.Store())],
        value=ast.Constant(value=True),
    )
    stmt = ast.Match(
        subject=ast.Name(id=SUBJECT_NAME, ctx=ast.Load()),
        cases=[ast.match_case(pattern=pattern, guard=None, body=[flag])],
    )
    module = ast.Module(body=[stmt], type_ignores=[])
    ast.fix_missing_locations(module)
    return compile(module, filename, "exec")

def match_pattern(
    pattern: ast.pattern,
    names: Tuple[str, ...],
    subject: Any,
    namespace: Namespace,
    filename: str,
) -> MatchResult:
    """Test subject against pattern; bindings are only returned on success."""
    code = compile_pattern(pattern, filename)

    scratch = dict(namespace)
    scratch[SUBJECT_NAME] = subject
    scratch[MATCHED_NAME] = False
    exec(code, scratch)  # noqa: S102 - pattern text is caller code

    if not scratch[MATCHED_NAME]:
        return MatchResult(matched=False, bindings={})

    return MatchResult(matched=True, bindings={name: scratch[name] for name in names})
