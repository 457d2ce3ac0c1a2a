"""
Line and word diffs for assertion output

Two debug representations are aligned line by line:
- Lines present on both sides are UNCHANGED; left-only lines are REMOVED,
  right-only lines are ADDED. Removals come before additions at each change.
- A diff that is mostly changes is not shown at all (ratio rule).
- Long runs of changed lines keep their markers but lose highlighting.

One removed line directly followed by one added line is additionally diffed
word by word so the renderer can highlight the changed words only.
"""
from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import groupby
from typing import List, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# Suppress the whole diff when more than this share of all lines changed.
MAX_CHANGED_RATIO = 0.75
# The ratio rule only applies once one side has this many lines.
MIN_LINES_FOR_RATIO = 4
# Longer runs of consecutive changed lines are printed without highlighting.
MAX_HIGHLIGHT_RUN = 6


class LineKind(Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class DiffLine:
    kind: LineKind
    text: str
    highlight: bool = True

    @property
    def changed(self) -> bool:
        return self.kind is not LineKind.UNCHANGED


@dataclass(frozen=True)
class DiffResult:
    lines: Tuple[DiffLine, ...]
    show_diff: bool

    @property
    def added(self) -> Tuple[DiffLine, ...]:
        return tuple(line for line in self.lines if line.kind is LineKind.ADDED)

    @property
    def removed(self) -> Tuple[DiffLine, ...]:
        return tuple(line for line in self.lines if line.kind is LineKind.REMOVED)

    @property
    def changed_count(self) -> int:
        return sum(1 for line in self.lines if line.changed)

# ---------- Line diff ----------

def _lcs_table(left: Sequence[str], right: Sequence[str]) -> List[List[int]]:
    """table[i][j] is the LCS length of left[i:] and right[j:]."""
    n, m = len(left), len(right)
    table = [[0] * (m + 1) for _ in range(n + 1)]

    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        for j in range(m - 1, -1, -1):
            if left[i] == right[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    return table

def align_lines(left: Sequence[str], right: Sequence[str]) -> List[DiffLine]:
    table = _lcs_table(left, right)
    out: List[DiffLine] = []
    i = j = 0

    while i < len(left) and j < len(right):
        if left[i] == right[j]:
            out.append(DiffLine(LineKind.UNCHANGED, left[i]))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            out.append(DiffLine(LineKind.REMOVED, left[i]))
            i += 1
        else:
            out.append(DiffLine(LineKind.ADDED, right[j]))
            j += 1

    out.extend(DiffLine(LineKind.REMOVED, text) for text in left[i:])
    out.extend(DiffLine(LineKind.ADDED, text) for text in right[j:])
    return out

def _limit_runs(lines: List[DiffLine]) -> List[DiffLine]:
    out: List[DiffLine] = []

    for changed, run in groupby(lines, key=lambda line: line.changed):
        block = list(run)
        if changed and len(block) > MAX_HIGHLIGHT_RUN:
            block = [DiffLine(line.kind, line.text, highlight=False) for line in block]
        out.extend(block)

    return out

def diff_lines(left: str, right: str) -> DiffResult:
    """Diff two debug representations line by line."""
    left_lines = left.splitlines()
    right_lines = right.splitlines()
    lines = _limit_runs(align_lines(left_lines, right_lines))

    changed = sum(1 for line in lines if line.changed)
    total = len(left_lines) + len(right_lines)
    show = True

    if max(len(left_lines), len(right_lines)) >= MIN_LINES_FOR_RATIO and changed > MAX_CHANGED_RATIO * total:
        logger.debug("diff suppressed: %d of %d lines changed", changed, total)
        show = False

    return DiffResult(lines=tuple(lines), show_diff=show)

# ---------- Word diff ----------

def _is_break_point(a: str, b: str) -> bool:
    if a.isalpha():
        return not b.isalpha() or (a.islower() and not b.islower())
    if a in "0123456789":
        return b not in "0123456789"
    if a.isspace():
        return not b.isspace()
    return True

def split_words(text: str) -> List[str]:
    """Split a line into words: letter runs (split at lower->upper), digit
    runs, whitespace runs, and every other character on its own."""
    words: List[str] = []
    start = 0

    for pos in range(1, len(text)):
        if _is_break_point(text[pos - 1], text[pos]):
            words.append(text[start:pos])
            start = pos

    if text:
        words.append(text[start:])

    return words


@dataclass
class Highlights:
    """Alternating plain/highlighted ranges over one line."""
    ranges: List[Tuple[bool, int, int]] = field(default_factory=list)
    total_highlighted: int = 0

    def push(self, length: int, highlight: bool) -> None:
        if length == 0:
            return

        if highlight:
            self.total_highlighted += length

        if self.ranges and self.ranges[-1][0] == highlight:
            flag, start, end = self.ranges[-1]
            self.ranges[-1] = (flag, start, end + length)
            return

        start = self.ranges[-1][2] if self.ranges else 0
        self.ranges.append((highlight, start, start + length))

    def worth_highlighting(self, text: str) -> bool:
        # A line that is mostly highlighted reads better without highlights.
        plain = len(text) - self.total_highlighted
        return plain >= -(-self.total_highlighted // 2)

    def pieces(self, text: str) -> List[Tuple[bool, str]]:
        if not self.worth_highlighting(text):
            return [(False, text)] if text else []
        return [(flag, text[start:end]) for flag, start, end in self.ranges]


def word_diff(left: str, right: str) -> Tuple[Highlights, Highlights]:
    left_words = split_words(left)
    right_words = split_words(right)
    matcher = difflib.SequenceMatcher(None, left_words, right_words, autojunk=False)

    left_hl, right_hl = Highlights(), Highlights()

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        left_len = sum(len(w) for w in left_words[i1:i2])
        right_len = sum(len(w) for w in right_words[j1:j2])
        left_hl.push(left_len, tag != "equal")
        right_hl.push(right_len, tag != "equal")

    return left_hl, right_hl

# ---------- Rendering groups ----------

@dataclass(frozen=True)
class Replacement:
    """Exactly one removed line replaced by exactly one added line."""
    removed: DiffLine
    added: DiffLine


DiffEntry = Union[DiffLine, Replacement]


def group_replacements(lines: Sequence[DiffLine]) -> List[DiffEntry]:
    """Pair a lone REMOVED line with a lone ADDED line that follows it."""
    out: List[DiffEntry] = []
    index = 0

    while index < len(lines):
        line = lines[index]
        lone_removed = (
            line.kind is LineKind.REMOVED
            and (index == 0 or lines[index - 1].kind is not LineKind.REMOVED)
        )
        pair_end = index + 2

        if (
            lone_removed
            and pair_end <= len(lines)
            and lines[index + 1].kind is LineKind.ADDED
            and (pair_end == len(lines) or lines[pair_end].kind is not LineKind.ADDED)
        ):
            out.append(Replacement(line, lines[index + 1]))
            index = pair_end
            continue

        out.append(line)
        index += 1

    return out
