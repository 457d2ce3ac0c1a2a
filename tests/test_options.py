from __future__ import annotations

import pytest

from tests.support.harness import snapshot
from vouch.options import (
    DEFAULT_WIDTH,
    ConfigSnapshot,
    DebugStyle,
    FormatPolicy,
    is_compact_good,
    resolve_policy,
    use_pretty,
)

STYLES = [
    pytest.param({}, DebugStyle.AUTO, id="default-auto"),
    pytest.param({"VOUCH": "pretty"}, DebugStyle.PRETTY, id="pretty"),
    pytest.param({"VOUCH": "compact"}, DebugStyle.COMPACT, id="compact"),
    pytest.param({"VOUCH": "auto"}, DebugStyle.AUTO, id="auto"),
    pytest.param({"VOUCH": " Pretty , color "}, DebugStyle.PRETTY, id="case-and-spaces"),
    pytest.param({"VOUCH": "pretty,compact"}, DebugStyle.COMPACT, id="last-wins"),
    pytest.param({"VOUCH": "compact,auto"}, DebugStyle.COMPACT, id="explicit-beats-auto"),
    pytest.param({"VOUCH": "fancy"}, DebugStyle.AUTO, id="unknown-ignored"),
]


@pytest.mark.parametrize("env, expected", STYLES)
def test_debug_style(env: dict, expected: DebugStyle) -> None:
    assert resolve_policy(snapshot(**env)).debug_style is expected


# (VOUCH, NO_COLOR, CLICOLOR, CLICOLOR_FORCE, tty) -> color
COLORS = [
    pytest.param(None, None, None, None, False, False, id="nothing-no-tty"),
    pytest.param(None, None, None, None, True, True, id="nothing-tty"),
    pytest.param("color", None, None, None, False, True, id="vouch-color"),
    pytest.param("no-color", None, None, None, True, False, id="vouch-no-color"),
    pytest.param("no-color,color", None, None, None, False, True, id="vouch-color-beats-no-color"),
    pytest.param("color,no-color", None, None, None, False, True, id="vouch-color-beats-no-color-any-order"),
    pytest.param("color", "1", "0", None, False, True, id="vouch-color-beats-conventions"),
    pytest.param("no-color", None, None, "1", True, False, id="vouch-no-color-beats-force"),
    pytest.param("pretty", "1", None, None, True, False, id="vouch-without-color-token-defers"),
    pytest.param(None, "1", None, None, True, False, id="no-color-beats-tty"),
    pytest.param(None, "1", None, "1", True, False, id="no-color-beats-force"),
    pytest.param(None, "", None, None, True, True, id="empty-no-color-ignored"),
    pytest.param(None, "0", None, None, True, True, id="false-like-no-color-ignored"),
    pytest.param(None, None, None, "1", False, True, id="force-without-tty"),
    pytest.param(None, None, "0", "1", False, True, id="force-beats-clicolor"),
    pytest.param(None, None, None, "0", False, False, id="force-zero-ignored"),
    pytest.param(None, None, None, "false", True, True, id="force-false-falls-through"),
    pytest.param(None, None, "0", None, True, False, id="clicolor-zero-disables"),
    pytest.param(None, None, "false", None, True, False, id="clicolor-false-disables"),
    pytest.param(None, None, "1", None, False, False, id="clicolor-one-needs-tty"),
    pytest.param(None, None, "1", None, True, True, id="clicolor-one-with-tty"),
]


@pytest.mark.parametrize("vouch, no_color, clicolor, force, tty, expected", COLORS)
def test_color_precedence(vouch, no_color, clicolor, force, tty, expected) -> None:
    env = {
        name: value
        for name, value in (
            ("VOUCH", vouch),
            ("NO_COLOR", no_color),
            ("CLICOLOR", clicolor),
            ("CLICOLOR_FORCE", force),
        )
        if value is not None
    }

    assert resolve_policy(ConfigSnapshot(env=env, is_terminal=tty)).color is expected


@pytest.mark.parametrize("tty", [True, False], ids=["tty", "no-tty"])
@pytest.mark.parametrize(
    "conventions",
    [{}, {"CLICOLOR_FORCE": "1"}, {"CLICOLOR": "1"}, {"NO_COLOR": "1"}],
    ids=["none", "force", "clicolor", "no-color"],
)
def test_no_color_pretty_ignores_conventions(tty: bool, conventions: dict) -> None:
    policy = resolve_policy(snapshot(tty=tty, VOUCH="no-color,pretty", **conventions))

    assert policy.color is False
    assert policy.debug_style is DebugStyle.PRETTY


def test_resolution_is_idempotent() -> None:
    snap = snapshot(tty=True, VOUCH="compact", CLICOLOR="0", COLUMNS="120")

    assert resolve_policy(snap) == resolve_policy(snap)
    assert resolve_policy(snap) == FormatPolicy(DebugStyle.COMPACT, color=False, width=120)


WIDTHS = [
    pytest.param({}, DEFAULT_WIDTH, id="default"),
    pytest.param({"COLUMNS": "132"}, 132, id="columns"),
    pytest.param({"COLUMNS": "wide"}, DEFAULT_WIDTH, id="not-a-number"),
    pytest.param({"COLUMNS": "0"}, DEFAULT_WIDTH, id="zero"),
]


@pytest.mark.parametrize("env, expected", WIDTHS)
def test_width(env: dict, expected: int) -> None:
    assert resolve_policy(snapshot(**env)).width == expected


def test_capture_reads_environment_each_time(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VOUCH", "pretty")
    first = ConfigSnapshot.capture()

    monkeypatch.setenv("VOUCH", "compact")
    second = ConfigSnapshot.capture()

    assert resolve_policy(first).debug_style is DebugStyle.PRETTY
    assert resolve_policy(second).debug_style is DebugStyle.COMPACT


def test_capture_handles_streams_without_isatty() -> None:
    assert ConfigSnapshot.capture(stream=object()).is_terminal is False


COMPACT = [
    pytest.param(["1", "2"], True, id="short"),
    pytest.param(["x" * 40], True, id="at-limit"),
    pytest.param(["x" * 41], False, id="too-long"),
    pytest.param(["a\nb"], False, id="multi-line"),
    pytest.param([], True, id="nothing"),
]


@pytest.mark.parametrize("values, expected", COMPACT)
def test_is_compact_good(values: list, expected: bool) -> None:
    assert is_compact_good(values) is expected


def test_use_pretty_follows_style() -> None:
    long_value = ["x" * 50]

    assert use_pretty(DebugStyle.PRETTY, ["1"]) is True
    assert use_pretty(DebugStyle.COMPACT, long_value) is False
    assert use_pretty(DebugStyle.AUTO, long_value) is True
    assert use_pretty(DebugStyle.AUTO, ["1"]) is False
