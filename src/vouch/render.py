"""Failure reports.

A report is assembled from the classified expression, the evaluation outcome
and the resolved FormatPolicy. Nothing here performs I/O; the finished report
is returned as a string.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from prompt_toolkit.formatted_text import StyleAndTextTuples

from .diff import DiffEntry, DiffLine, Highlights, LineKind, Replacement, diff_lines, group_replacements, word_diff
from .highlight import group
from .options import FormatPolicy, use_pretty
from .tree import Comparison, Conjunct, ExpressionNode, PatternMatch, conjuncts_of
from .types import BinaryExpansion, BoolExpansion, Failed, MatchExpansion, Observation
from .writer import WrappingWriter

IDENTICAL_EQ_NOTE = "Note: left and right compare unequal, but their reprs are identical!"
IDENTICAL_NOTE = "Note: reprs of left and right are identical."


@dataclass(frozen=True)
class FailureContext:
    """Where and how the failing assertion was written."""
    filename: str
    line: int
    column: int
    call_name: str
    expression: ExpressionNode
    message: Optional[str] = None


def conjunct_fragments(node: Conjunct, failed: bool) -> StyleAndTextTuples:
    def style(name: str) -> str:
        return group(name) if failed else group("dimmed")

    match node:
        case Comparison(operator=op, left=left, right=right):
            return [
                (style("left"), left.text()),
                (style(""), " "),
                (style("operator"), op),
                (style(""), " "),
                (style("right"), right.text()),
            ]
        case PatternMatch(pattern_source=pattern, scrutinee=scrutinee):
            return [
                (style("operator"), "let "),
                (style("left"), pattern),
                (style("operator"), " = "),
                (style("right"), scrutinee.text()),
            ]
        case _:
            return [(style("right"), node.source)]

def write_assertion(writer: WrappingWriter, context: FailureContext, failed_index: int) -> None:
    conjuncts = conjuncts_of(context.expression)

    writer.write_styled("Assertion failed", group("error"))
    writer.write(" at ")
    writer.write_styled(context.filename, group("note"))
    writer.write(f":{context.line}:{context.column}")
    writer.flush_line()

    writer.write("  ")
    writer.write_styled(f"{context.call_name}( ", group("macro"))

    for index, node in enumerate(conjuncts[:failed_index + 1]):
        if index > 0:
            writer.write_styled(" and ", group("dimmed"))

        is_failed = index == failed_index
        undercurl = group("error") if is_failed and len(conjuncts) > 1 else None
        writer.write_fragments(conjunct_fragments(node, is_failed), undercurl)

    if failed_index + 1 < len(conjuncts):
        writer.write_styled(" and ...", group("dimmed"))

    writer.write_styled(" )", group("macro"))
    writer.flush_line()

# ---------- Expansions ----------

def _highlighted_line(text: str, highlights: Highlights, side: str) -> StyleAndTextTuples:
    return [
        (group(f"{side}-highlight") if flag else group(side), piece)
        for flag, piece in highlights.pieces(text)
    ]

def write_binary(writer: WrappingWriter, expansion: BinaryExpansion, policy: FormatPolicy) -> None:
    left = expansion.left.compact()
    right = expansion.right.compact()

    if not use_pretty(policy.debug_style, [left, right]):
        left_hl, right_hl = word_diff(left, right)
        writer.write("with expansion:\n")
        writer.write("  ")
        writer.write_fragments(_highlighted_line(left, left_hl, "left"))
        writer.write(" ")
        writer.write_styled(expansion.operator, group("operator"))
        writer.write(" ")
        writer.write_fragments(_highlighted_line(right, right_hl, "right"))

        if left == right:
            writer.flush_line()
            if expansion.operator == "==":
                writer.write_styled(IDENTICAL_EQ_NOTE, group("error"))
            else:
                writer.write_styled(IDENTICAL_NOTE, group("note"))
        writer.flush_line()
        return

    pretty_left = expansion.left.pretty()
    pretty_right = expansion.right.pretty()
    diff = diff_lines(pretty_left, pretty_right)

    if not diff.show_diff:
        write_side_by_side(writer, pretty_left, pretty_right)
        return

    writer.write("with diff:\n")
    for entry in group_replacements(diff.lines):
        write_diff_entry(writer, entry)

def write_side_by_side(writer: WrappingWriter, left: str, right: str) -> None:
    writer.write("with expansion:\n")

    for label, text in (("left", left), ("right", right)):
        writer.write(f"  {label}:\n")
        for line in text.splitlines() or [""]:
            writer.write("    ")
            writer.write(line)
            writer.flush_line()

def write_diff_entry(writer: WrappingWriter, entry: DiffEntry) -> None:
    markers = {LineKind.REMOVED: ("<", "left"), LineKind.ADDED: (">", "right")}

    match entry:
        case Replacement(removed=removed, added=added) if removed.highlight:
            left_hl, right_hl = word_diff(removed.text, added.text)
            writer.write_styled("< ", group("left"))
            writer.write_fragments(_highlighted_line(removed.text, left_hl, "left"))
            writer.flush_line()
            writer.write_styled("> ", group("right"))
            writer.write_fragments(_highlighted_line(added.text, right_hl, "right"))
            writer.flush_line()
        case Replacement(removed=removed, added=added):
            write_diff_entry(writer, removed)
            write_diff_entry(writer, added)
        case DiffLine(kind=LineKind.UNCHANGED, text=text):
            writer.write_styled(f"  {text}", group("dimmed"))
            writer.flush_line()
        case DiffLine(kind=kind, text=text, highlight=highlight):
            marker, side = markers[kind]
            writer.write_styled(f"{marker} {text}", group(side) if highlight else "")
            writer.flush_line()

def write_value(writer: WrappingWriter, observation: Observation, policy: FormatPolicy) -> None:
    compact = observation.compact()
    text = observation.pretty() if use_pretty(policy.debug_style, [compact]) else compact

    writer.write("with expansion:\n")
    for line in text.splitlines() or [""]:
        writer.write("  ")
        writer.write_styled(line, group("right"))
        writer.flush_line()

def write_expansion(writer: WrappingWriter, outcome: Failed, policy: FormatPolicy) -> None:
    match outcome.failed.expansion:
        case BinaryExpansion() as expansion:
            write_binary(writer, expansion, policy)
        case MatchExpansion(scrutinee=scrutinee):
            write_value(writer, scrutinee, policy)
        case BoolExpansion(value=value):
            write_value(writer, value, policy)

def render_failure(context: FailureContext, outcome: Failed, policy: FormatPolicy) -> str:
    writer = WrappingWriter(policy.width, policy.color)

    write_assertion(writer, context, outcome.failed_index)
    write_expansion(writer, outcome, policy)

    if context.message is not None:
        writer.write("with message:\n  ")
        writer.write_styled(context.message, group("note"))
        writer.flush_line()

    return writer.getvalue().rstrip("\n")
