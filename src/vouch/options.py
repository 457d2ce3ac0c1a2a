"""Output format and color policy.

The policy is resolved from a ConfigSnapshot every time an assertion fails,
so changing the environment at runtime affects the next report.

``VOUCH`` takes comma separated tokens: ``auto``, ``pretty``, ``compact``,
``color``, ``no-color``. For colors the precedence is:

1. ``color`` in VOUCH (wins over ``no-color`` when both are given)
2. ``no-color`` in VOUCH
3. NO_COLOR set and not false-like        -> off
4. CLICOLOR_FORCE set and not false-like  -> on
5. CLICOLOR false-like                    -> off
6. stderr is a terminal

CLICOLOR_FORCE is consulted before CLICOLOR, so ``CLICOLOR_FORCE=1`` turns
colors on even with ``CLICOLOR=0``. This deliberately differs from tools that
check ``CLICOLOR=0`` first.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

OPTIONS_VAR = "VOUCH"

# Compact reprs longer than this switch AUTO to the pretty style.
COMPACT_MAX_WIDTH = 40
DEFAULT_WIDTH = 80

_FALSE_LIKE = frozenset({"0", "false", "no", "off"})


class DebugStyle(Enum):
    AUTO = "auto"
    PRETTY = "pretty"
    COMPACT = "compact"


@dataclass(frozen=True)
class FormatPolicy:
    debug_style: DebugStyle = DebugStyle.AUTO
    color: bool = False
    width: int = DEFAULT_WIDTH


@dataclass(frozen=True)
class ConfigSnapshot:
    env: Mapping[str, str] = field(default_factory=dict)
    is_terminal: bool = False

    @classmethod
    def capture(cls, stream=None) -> ConfigSnapshot:
        """Snapshot of the process environment and terminal state right now."""
        stream = sys.stderr if stream is None else stream
        try:
            tty = bool(stream.isatty())
        except (AttributeError, ValueError):
            # detached or closed stream
            tty = False
        return cls(env=dict(os.environ), is_terminal=tty)


def _is_false_like(value: str) -> bool:
    return value.strip().lower() in _FALSE_LIKE

def _is_set(env: Mapping[str, str], name: str) -> bool:
    value = env.get(name)
    return value is not None and value.strip() != "" and not _is_false_like(value)

def _tokens(raw: Optional[str]) -> Iterable[str]:
    if not raw:
        return []
    return [word.strip().lower() for word in raw.split(",") if word.strip()]

def _terminal_color(snapshot: ConfigSnapshot) -> bool:
    env = snapshot.env

    if _is_set(env, "NO_COLOR"):
        return False

    if _is_set(env, "CLICOLOR_FORCE"):
        return True

    clicolor = env.get("CLICOLOR")
    if clicolor is not None and _is_false_like(clicolor):
        return False

    return snapshot.is_terminal

def _width(env: Mapping[str, str]) -> int:
    try:
        width = int(env.get("COLUMNS", ""))
    except ValueError:
        return DEFAULT_WIDTH

    return width if width > 0 else DEFAULT_WIDTH

def resolve_policy(snapshot: ConfigSnapshot) -> FormatPolicy:
    """Pure function of the snapshot; equal snapshots give equal policies."""
    style = DebugStyle.AUTO
    force_on = force_off = False

    for token in _tokens(snapshot.env.get(OPTIONS_VAR)):
        match token:
            case "pretty":
                style = DebugStyle.PRETTY
            case "compact":
                style = DebugStyle.COMPACT
            case "auto":
                pass
            case "color":
                force_on = True
            case "no-color":
                force_off = True
            case _:
                logger.debug("ignoring unknown %s option %r", OPTIONS_VAR, token)

    if force_on:
        color = True
    elif force_off:
        color = False
    else:
        color = _terminal_color(snapshot)

    policy = FormatPolicy(debug_style=style, color=color, width=_width(snapshot.env))
    logger.debug("resolved format policy %s", policy)
    return policy

# ---------- Expansion helpers ----------

def is_compact_good(expanded: Iterable[str]) -> bool:
    """True when every compact repr is short and single-line."""
    return all(len(text) <= COMPACT_MAX_WIDTH and "\n" not in text for text in expanded)

def use_pretty(style: DebugStyle, compact: Iterable[str]) -> bool:
    match style:
        case DebugStyle.PRETTY:
            return True
        case DebugStyle.COMPACT:
            return False
        case _:
            return not is_compact_good(compact)
