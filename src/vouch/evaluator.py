from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from .eval.common import Namespace, eval_operand
from .eval.compare import apply_comparison, binary_expansion
from .eval.match import match_pattern
from .tree import Comparison, Conjunct, ExpressionNode, Generic, PatternMatch, conjuncts_of
from .types import (
    Bindings,
    BoolExpansion,
    ConjunctResult,
    EvaluationOutcome,
    Failed,
    MatchExpansion,
    Observation,
    Passed,
)

logger = logging.getLogger(__name__)


class Evaluator:
    """Evaluates a classified assertion exactly once.

    Walrus targets and pattern bindings are written into ``namespace`` so later
    conjuncts can use them; pass a private copy, never a live frame dict.
    """

    def __init__(self, namespace: Namespace, filename: str = "<assertion>"):
        self.namespace = namespace
        self.filename = filename

    def evaluate(self, node: ExpressionNode) -> EvaluationOutcome:
        results: List[ConjunctResult] = []
        bindings: Dict[str, Any] = {}

        # Conjuncts run strictly left to right; the first failure stops the
        # chain, later ones may depend on bindings that never happened.
        for index, conjunct in enumerate(conjuncts_of(node)):
            result, captured = self.eval_conjunct(index, conjunct)
            results.append(result)

            if not result.passed:
                logger.debug("conjunct %d failed; %d later conjunct(s) skipped",
                             index, len(conjuncts_of(node)) - index - 1)
                return Failed(failed_index=index, results=tuple(results), bindings=Bindings(bindings))

            bindings.update(captured)

        return Passed(bindings=Bindings(bindings), results=tuple(results))

    def eval_conjunct(self, index: int, node: Conjunct) -> Tuple[ConjunctResult, Dict[str, Any]]:
        match node:
            case Comparison():
                return self.eval_comparison(index, node), {}
            case PatternMatch():
                return self.eval_pattern(index, node)
            case _:
                return self.eval_generic(index, node), {}

    def eval_comparison(self, index: int, node: Comparison) -> ConjunctResult:
        left = eval_operand(node.left.node, self.namespace, self.filename)
        right = eval_operand(node.right.node, self.namespace, self.filename)
        passed = apply_comparison(node.operator, left, right)
        return ConjunctResult(index, node, passed, binary_expansion(left, node.operator, right))

    def eval_pattern(self, index: int, node: PatternMatch) -> Tuple[ConjunctResult, Dict[str, Any]]:
        subject = eval_operand(node.scrutinee.node, self.namespace, self.filename)
        result = match_pattern(node.pattern, node.bindings, subject, self.namespace, self.filename)

        if result.matched:
            self.namespace.update(result.bindings)

        expansion = MatchExpansion(scrutinee=Observation(subject))
        return ConjunctResult(index, node, result.matched, expansion), result.bindings

    def eval_generic(self, index: int, node: Generic) -> ConjunctResult:
        value = eval_operand(node.operand.node, self.namespace, self.filename)
        return ConjunctResult(index, node, bool(value), BoolExpansion(value=Observation(value)))

def evaluate(node: ExpressionNode, namespace: Namespace, filename: str = "<assertion>") -> EvaluationOutcome:
    return Evaluator(namespace, filename).evaluate(node)
