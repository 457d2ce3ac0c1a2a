from __future__ import annotations

import pprint
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Tuple, Union
from typing_extensions import TypeAlias

from .tree import Conjunct

# Width handed to pprint for the pretty variant. Narrow on purpose so that
# containers break one element per line and line diffs stay readable.
PRETTY_WIDTH = 40

# ---------- Observed values ----------

def safe_repr(value: Any, pretty: bool = False) -> str:
    """Format a value for a report; a failing __repr__ never escapes."""
    try:
        if pretty:
            return pprint.pformat(value, width=PRETTY_WIDTH, sort_dicts=False)
        return repr(value)
    except Exception as exc:
        return f"<unprintable {type(value).__name__} object ({type(exc).__name__}: {exc})>"


class Observation:
    """Borrowed view of an evaluated operand.

    Holds a reference only; nothing here copies, consumes or mutates the value.
    """
    __slots__ = ("_value",)

    def __init__(self, value: Any):
        self._value = value

    @property
    def value(self) -> Any:
        return self._value

    def compact(self) -> str:
        return safe_repr(self._value)

    def pretty(self) -> str:
        return safe_repr(self._value, pretty=True)

    def __repr__(self) -> str:
        return f"Observation({self.compact()})"


@dataclass(frozen=True)
class BinaryExpansion:
    left: Observation
    operator: str
    right: Observation


@dataclass(frozen=True)
class MatchExpansion:
    scrutinee: Observation


@dataclass(frozen=True)
class BoolExpansion:
    value: Observation


Expansion: TypeAlias = Union[BinaryExpansion, MatchExpansion, BoolExpansion]

# ---------- Bindings ----------

class Bindings(Mapping[str, Any]):
    """Read-only name -> value view of pattern captures.

    Names are reachable both as keys and as attributes: ``m["x"]`` / ``m.x``.
    Names starting with an underscore are only reachable as keys.
    """
    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        object.__setattr__(self, "_values", dict(values or {}))

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> Any:
        # copy and pickle look up private names before __init__ has run
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"no binding named '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("bindings are read-only")

    def __reduce__(self):
        return (Bindings, (dict(self._values),))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={safe_repr(v)}" for k, v in self._values.items())
        return f"Bindings({inner})"

# ---------- Evaluation outcome ----------

@dataclass(frozen=True)
class ConjunctResult:
    index: int
    node: Conjunct
    passed: bool
    expansion: Expansion


@dataclass(frozen=True)
class Passed:
    bindings: Bindings = field(default_factory=Bindings)
    results: Tuple[ConjunctResult, ...] = ()


@dataclass(frozen=True)
class Failed:
    failed_index: int
    results: Tuple[ConjunctResult, ...]
    bindings: Bindings = field(default_factory=Bindings)

    @property
    def failed(self) -> ConjunctResult:
        return self.results[self.failed_index]


EvaluationOutcome: TypeAlias = Union[Passed, Failed]

# ---------- Exceptions (keep Vouch* canonical) ----------

class VouchError(Exception):
    pass

class AssertionSyntaxError(VouchError):
    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class AssertionFailure(VouchError, AssertionError):
    """Raised at once by the immediate call style."""
    def __init__(self, report: str):
        super().__init__(report)
        self.report = report

class CheckFailure(VouchError, AssertionError):
    """Raised at scope exit when deferred checks recorded failures."""
    def __init__(self, reports: Tuple[str, ...], message: str):
        super().__init__(message)
        self.reports = reports
