"""prompt_toolkit styles for failure reports, rendered through a VT100 output."""

from __future__ import annotations

from io import StringIO

from prompt_toolkit.data_structures import Size
from prompt_toolkit.output import ColorDepth
from prompt_toolkit.output.vt100 import Vt100_Output
from prompt_toolkit.styles import DEFAULT_ATTRS, Style
from prompt_toolkit.utils import get_cwidth

# Map report groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "error": "bold ansibrightred",
    "macro": "ansimagenta",
    "operator": "bold ansiblue",
    "left": "ansicyan",
    "right": "ansiyellow",
    "note": "bold",
    "dimmed": "ansibrightblack",
    "left-highlight": "bold ansiblack bg:ansicyan",
    "right-highlight": "bold ansiblack bg:ansiyellow",
}

REPORT_STYLE = Style.from_dict(GROUP_STYLE)

# Reports only use the 16 named ANSI colors.
COLOR_DEPTH = ColorDepth.DEPTH_4_BIT


def group(name: str) -> str:
    """Style string for a report group, usable in StyleAndTextTuples."""
    return f"class:{name}" if name else ""

def _report_size() -> Size:
    return Size(rows=24, columns=80)

def paint(text: str, style_str: str, enabled: bool) -> str:
    """Wrap text in the escape sequences prompt_toolkit emits for style_str."""
    if not enabled or not text or not style_str:
        return text

    attrs = REPORT_STYLE.get_attrs_for_style_str(style_str)
    if attrs == DEFAULT_ATTRS:
        return text

    buffer = StringIO()
    output = Vt100_Output(
        buffer,
        _report_size,
        term="xterm",
        default_color_depth=COLOR_DEPTH,
        enable_cpr=False,
    )
    output.set_attributes(attrs, COLOR_DEPTH)
    output.write(text)
    output.reset_attributes()
    output.flush()
    return buffer.getvalue()

def text_width(text: str) -> int:
    """Terminal cells taken by text; tabs count as 4."""
    return sum(4 if ch == "\t" else get_cwidth(ch) for ch in text)
