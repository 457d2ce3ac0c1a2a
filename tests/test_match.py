from __future__ import annotations

import pytest

from tests.support.harness import Err, Ok
from vouch.classify import pattern_bindings
from vouch.eval.common import build_namespace
from vouch.eval.match import SUBJECT_NAME, match_pattern
from vouch.parser import parse_pattern

SCENARIOS = [
    pytest.param("Ok(y)", Ok(3), {"y": 3}, id="class-match"),
    pytest.param("Ok(y)", Err(3), None, id="class-mismatch"),
    pytest.param("[x, *rest]", [1, 2, 3], {"x": 1, "rest": [2, 3]}, id="sequence"),
    pytest.param("[x, *rest]", [], None, id="sequence-too-short"),
    pytest.param("{'k': v}", {"k": 1, "other": 2}, {"v": 1}, id="mapping-subset"),
    pytest.param("{'k': v}", {"j": 1}, None, id="mapping-missing-key"),
    pytest.param("1 | 2", 2, {}, id="or-literal"),
    pytest.param("str() as s", "hi", {"s": "hi"}, id="as-type"),
    pytest.param("str()", 3, None, id="type-mismatch"),
    pytest.param("_", object(), {}, id="wildcard"),
]


@pytest.mark.parametrize("pattern, subject, expected", SCENARIOS)
def test_match_pattern(pattern: str, subject: object, expected) -> None:
    node = parse_pattern(pattern)
    namespace = build_namespace({"Ok": Ok, "Err": Err})

    result = match_pattern(node, pattern_bindings(node), subject, namespace, "<test>")

    if expected is None:
        assert not result.matched
        assert result.bindings == {}
    else:
        assert result.matched
        assert result.bindings == expected


def test_match_never_writes_namespace() -> None:
    node = parse_pattern("[a, b]")
    namespace = build_namespace({})
    before = dict(namespace)

    match_pattern(node, ("a", "b"), [1, 2], namespace, "<test>")

    assert namespace == before
    assert SUBJECT_NAME not in namespace


def test_value_patterns_resolve_in_namespace() -> None:
    class Color:
        RED = "red"

    node = parse_pattern("Color.RED")
    namespace = build_namespace({"Color": Color})

    assert match_pattern(node, (), "red", namespace, "<test>").matched
    assert not match_pattern(node, (), "blue", namespace, "<test>").matched


def test_build_namespace_merges_locals_over_globals() -> None:
    namespace = build_namespace({"a": 1, "b": 1}, {"b": 2})

    assert (namespace["a"], namespace["b"]) == (1, 2)
    assert "__builtins__" in namespace
