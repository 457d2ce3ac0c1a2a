from __future__ import annotations

import ast
from types import CodeType
from typing import Any, Dict, Mapping, MutableMapping, Optional

import builtins

Namespace = MutableMapping[str, Any]


def build_namespace(globals_: Mapping[str, Any], locals_: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Private evaluation namespace for one assertion.

    Globals and locals are merged into a single dict so that comprehensions and
    lambdas inside the assertion can see the caller's locals. The caller's own
    mappings are never written to.
    """
    namespace: Dict[str, Any] = dict(globals_)
    if locals_ is not None:
        namespace.update(locals_)
    namespace.setdefault("__builtins__", builtins)
    return namespace

def compile_expr(node: ast.expr, filename: str) -> CodeType:
    tree = ast.Expression(body=node)
    ast.fix_missing_locations(tree)
    return compile(tree, filename, "eval")

def eval_operand(node: ast.expr, namespace: Namespace, filename: str) -> Any:
    """Evaluate a sub-expression once. Errors propagate untouched."""
    code = compile_expr(node, filename)
    return eval(code, namespace)  # noqa: S307 - assertion text is caller code
