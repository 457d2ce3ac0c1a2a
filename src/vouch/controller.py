"""Immediate and deferred failure handling.

``assert_`` raises AssertionFailure as soon as its assertion fails.

``check`` inside ``check_scope`` records the report and lets execution
continue; the scope raises CheckFailure with every recorded report once it
exits. When the scope is left through an exception, the reports are attached
to that exception as a note instead. Outside any scope ``check`` fails at once.
"""
from __future__ import annotations

import inspect
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from types import FrameType
from typing import Iterator, List, Optional, Tuple

from .runner import Location, failure_report, run_assertion
from .types import AssertionFailure, Bindings, CheckFailure, Failed

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40


class PendingFailures:
    """Reports recorded by ``check`` for one scope entry, in recording order."""

    def __init__(self) -> None:
        self._reports: List[str] = []

    def record(self, report: str) -> None:
        self._reports.append(report)

    def drain(self) -> Tuple[str, ...]:
        reports = tuple(self._reports)
        self._reports.clear()
        return reports

    def __len__(self) -> int:
        return len(self._reports)


_scopes: ContextVar[Tuple[PendingFailures, ...]] = ContextVar("vouch_check_scopes", default=())


def aggregate(reports: Tuple[str, ...]) -> str:
    noun = "check" if len(reports) == 1 else "checks"
    body = f"\n{SEPARATOR}\n".join(reports)
    return f"{len(reports)} {noun} failed\n{body}"


@contextmanager
def check_scope() -> Iterator[PendingFailures]:
    """Collect ``check`` failures until the block (or decorated call) exits.

    Usable as a decorator; every call of the decorated function opens its own
    scope, so recursion and concurrent calls never share pending reports.
    """
    pending = PendingFailures()
    token = _scopes.set(_scopes.get() + (pending,))

    try:
        yield pending
    except BaseException as exc:
        reports = pending.drain()
        if reports:
            logger.debug("check scope unwound with %d failure(s)", len(reports))
            exc.add_note(aggregate(reports))
        raise
    finally:
        _scopes.reset(token)

    reports = pending.drain()
    if reports:
        logger.debug("check scope closed with %d failure(s)", len(reports))
        raise CheckFailure(reports, aggregate(reports))


def _location(frame: FrameType) -> Location:
    positions = inspect.getframeinfo(frame, context=0).positions
    column = positions.col_offset + 1 if positions and positions.col_offset is not None else 1
    return Location(frame.f_code.co_filename, frame.f_lineno, column)

def _run(frame: FrameType, expression: str, call_name: str, message: Optional[str]) -> Tuple[Bindings, Optional[str]]:
    location = _location(frame)
    node, outcome = run_assertion(
        expression,
        frame.f_globals,
        frame.f_locals,
        filename=f"<{call_name} at {location.filename}:{location.line}>",
    )

    if isinstance(outcome, Failed):
        return Bindings(), failure_report(node, outcome, location, call_name, message)

    return outcome.bindings, None

def assert_(expression: str, message: Optional[str] = None) -> Bindings:
    """Evaluate ``expression`` in the caller's scope; raise at once on failure.

    Returns the names bound by ``let`` patterns.
    """
    frame = sys._getframe(1)
    try:
        bindings, report = _run(frame, expression, "assert_", message)
    finally:
        del frame

    if report is not None:
        raise AssertionFailure(report)

    return bindings

def debug_assert(expression: str, message: Optional[str] = None) -> Bindings:
    """Like assert_, but skipped entirely when Python runs with -O."""
    if not __debug__:
        return Bindings()

    frame = sys._getframe(1)
    try:
        bindings, report = _run(frame, expression, "debug_assert", message)
    finally:
        del frame

    if report is not None:
        raise AssertionFailure(report)

    return bindings

def check(expression: str, message: Optional[str] = None) -> None:
    """Evaluate ``expression``; inside check_scope a failure is only recorded."""
    frame = sys._getframe(1)
    try:
        _, report = _run(frame, expression, "check", message)
    finally:
        del frame

    if report is None:
        return

    scopes = _scopes.get()
    if not scopes:
        raise AssertionFailure(report)

    scopes[-1].record(report)
    logger.debug("deferred check failure recorded (%d pending)", len(scopes[-1]))
