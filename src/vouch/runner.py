from __future__ import annotations

import builtins
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .classify import classify
from .eval.common import build_namespace, eval_operand
from .evaluator import evaluate
from .options import ConfigSnapshot, FormatPolicy, resolve_policy
from .parser import parse_assertion, parse_expression
from .render import FailureContext, render_failure
from .tree import ExpressionNode
from .types import AssertionSyntaxError, EvaluationOutcome, Failed


@dataclass(frozen=True)
class Location:
    filename: str
    line: int
    column: int


@lru_cache(maxsize=512)
def analyse(text: str) -> ExpressionNode:
    """Parse and classify assertion text. Cached: both steps are pure."""
    return classify(parse_assertion(text), text.strip())

def run_assertion(
    text: str,
    globals_: Mapping[str, Any],
    locals_: Optional[Mapping[str, Any]] = None,
    filename: str = "<assertion>",
) -> Tuple[ExpressionNode, EvaluationOutcome]:
    node = analyse(text)
    namespace = build_namespace(globals_, locals_)
    return node, evaluate(node, namespace, filename)

def failure_report(
    node: ExpressionNode,
    outcome: Failed,
    location: Location,
    call_name: str,
    message: Optional[str] = None,
    policy: Optional[FormatPolicy] = None,
) -> str:
    # resolved per failure so environment changes apply to the next report
    if policy is None:
        policy = resolve_policy(ConfigSnapshot.capture())

    context = FailureContext(
        filename=location.filename,
        line=location.line,
        column=location.column,
        call_name=call_name,
        expression=node,
        message=message,
    )
    return render_failure(context, outcome, policy)

# ---------- CLI ----------

USAGE = "usage: vouch [--namespace KEY=EXPR ...] EXPRESSION"

def _load_expression(arg: Optional[str]) -> str:
    """
    Resolve CLI input into assertion text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as the assertion itself.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data.strip():
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def _bind(binding: str, namespace: Dict[str, Any]) -> None:
    key, sep, expr = binding.partition("=")
    key = key.strip()

    if not sep or not key.isidentifier():
        raise SystemExit(f"--namespace expects KEY=EXPR, got {binding!r}")

    namespace[key] = eval_operand(parse_expression(expr), namespace, "<namespace>")

def main(argv: Optional[List[str]] = None) -> int:
    namespace: Dict[str, Any] = {"__builtins__": builtins}
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if token.startswith("--namespace="):
            _bind(token.split("=", 1)[1], namespace)
            continue

        if token == "--namespace":
            try:
                _bind(next(it), namespace)
            except StopIteration:
                raise SystemExit("--namespace flag requires KEY=EXPR") from None
            continue

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    text = _load_expression(arg)

    try:
        node, outcome = run_assertion(text, namespace, filename="<command line>")
    except AssertionSyntaxError as exc:
        raise SystemExit(f"vouch: {exc}") from None

    if isinstance(outcome, Failed):
        report = failure_report(node, outcome, Location("<command line>", 1, 1), "vouch")
        print(report, file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
