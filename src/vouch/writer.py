from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from prompt_toolkit.formatted_text import StyleAndTextTuples

from .highlight import group, paint, text_width


@dataclass(frozen=True)
class Snippet:
    content: str
    style: str = ""
    undercurl: Optional[str] = None

    def underlined(self, style: str) -> Snippet:
        return replace(self, undercurl=style)

    def undercurl_error(self) -> Snippet:
        return self.underlined(group("error"))


class WrappingWriter:
    """Writer that supports styling, wrapping and marking with ``^^^``.

    Lines longer than ``width`` cells are broken. Snippets with an undercurl
    get a line of carets under them once their line is flushed.
    """

    def __init__(self, width: int, color: bool):
        self.width = max(1, width)
        self.color = color
        self._parts: List[str] = []
        self._line_width = 0
        self._undercurl: List[Tuple[int, int, str]] = []
        self._need_flush = False

    def write(self, data: str) -> None:
        self.write_snippet(Snippet(data))

    def write_styled(self, data: str, style: str) -> None:
        self.write_snippet(Snippet(data, style))

    def write_fragments(self, fragments: StyleAndTextTuples, undercurl: Optional[str] = None) -> None:
        for style, text, *_ in fragments:
            self.write_snippet(Snippet(text, style, undercurl))

    def write_snippet(self, snippet: Snippet) -> None:
        content = snippet.content

        while content:
            start = self._line_width
            used = 0
            end: Optional[int] = None

            for pos, ch in enumerate(content):
                if ch == "\n":
                    end = pos
                    break

                cells = text_width(ch)
                if start + used + cells > self.width and (start + used) > 0:
                    end = pos
                    break

                used += cells

            head = content if end is None else content[:end]
            tail = "" if end is None else content[end:]
            if tail.startswith("\n"):
                tail = tail[1:]

            self._write_piece(head, used, snippet.style, snippet.undercurl)
            content = tail

            if end is not None:
                self.flush_line()

    def _write_piece(self, content: str, width: int, style: str, undercurl: Optional[str]) -> None:
        if not content:
            return

        self._parts.append(paint(content, style, self.color))

        if undercurl is not None:
            self._undercurl.append((self._line_width, self._line_width + width, undercurl))

        self._need_flush = True
        self._line_width += width

    def flush_line(self) -> None:
        self._need_flush = False
        self._parts.append("\n")
        self._line_width = 0

        if not self._undercurl:
            return

        column = 0
        for start, end, style in self._undercurl:
            self._parts.append(" " * (start - column))
            self._parts.append(paint("^" * (end - start), style, self.color))
            column = end

        self._parts.append("\n")
        self._undercurl = []

    def getvalue(self) -> str:
        """Everything written so far, with any open line flushed."""
        if self._need_flush:
            self.flush_line()
        return "".join(self._parts)
