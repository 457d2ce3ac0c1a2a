"""Assertions that explain themselves.

    from vouch import assert_, check, check_scope

    assert_("response.status == 200")

    with check_scope():
        check("len(items) == 3")
        check("let {'id': ident} = items[0]")
"""
import logging

from .controller import PendingFailures, assert_, check, check_scope, debug_assert
from .types import AssertionFailure, AssertionSyntaxError, Bindings, CheckFailure, VouchError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AssertionFailure",
    "AssertionSyntaxError",
    "Bindings",
    "CheckFailure",
    "PendingFailures",
    "VouchError",
    "assert_",
    "check",
    "check_scope",
    "debug_assert",
]
