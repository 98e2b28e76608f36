"""Document access contract and an in-memory text document."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from .models import Position, Span


@runtime_checkable
class Document(Protocol):
    """Editor buffer operations a job needs before and after the LLM call."""

    def has_selection(self) -> bool: ...

    def selection_range(self) -> Optional[Span]: ...

    def selection_text(self) -> str: ...

    def cursor_position(self) -> Position: ...

    def line_count(self) -> int: ...

    def line_text(self, line: int) -> str: ...

    def text_between(self, start: Position, end: Position) -> str: ...

    def apply_edit(self, removal: Optional[Span], insert_at: Position, text: str) -> None: ...

    def reposition_cursor_after_edit(self) -> None: ...


class TextDocument:
    """Line-based buffer used by the CLI, the HTTP service and tests.

    ``apply_edit`` removes the optional range first and then inserts; the
    insertion point is interpreted against the text left after the removal.
    Lines are held without terminators; ``newline`` is restored on ``write``.
    """

    def __init__(
        self,
        text: str = "",
        *,
        cursor: Position | None = None,
        selection: Span | None = None,
        newline: str = "\n",
    ) -> None:
        self.newline = newline
        self._lines: List[str] = text.split("\n")
        self._cursor = self._clamp(cursor or Position(0, 0))
        self._selection = selection.normalized() if selection is not None else None
        self._last_insert_end: Optional[Position] = None

    @classmethod
    def from_path(
        cls,
        path: Path,
        *,
        cursor: Position | None = None,
        selection: Span | None = None,
    ) -> "TextDocument":
        with path.open(encoding="utf-8", newline="") as handle:
            raw = handle.read()
        newline = _dominant_newline(raw)
        if newline == "\r\n":
            raw = raw.replace("\r\n", "\n")
        return cls(raw, cursor=cursor, selection=selection, newline=newline)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def write(self, path: Path) -> None:
        text = self.text
        if self.newline != "\n":
            text = text.replace("\n", self.newline)
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(text)

    def has_selection(self) -> bool:
        return self._selection is not None and not self._selection.is_empty

    def selection_range(self) -> Optional[Span]:
        if self._selection is None:
            return None
        return Span(self._clamp(self._selection.start), self._clamp(self._selection.end))

    def selection_text(self) -> str:
        selection = self.selection_range()
        if selection is None:
            return ""
        return self.text_between(selection.start, selection.end)

    def cursor_position(self) -> Position:
        return self._cursor

    def line_count(self) -> int:
        return len(self._lines)

    def line_text(self, line: int) -> str:
        if line < 0 or line >= len(self._lines):
            raise IndexError(f"line {line} out of range (0-{len(self._lines) - 1})")
        return self._lines[line]

    def text_between(self, start: Position, end: Position) -> str:
        start, end = self._clamp(start), self._clamp(end)
        if end < start:
            start, end = end, start
        if start.line == end.line:
            return self._lines[start.line][start.column : end.column]
        parts = [self._lines[start.line][start.column :]]
        parts.extend(self._lines[start.line + 1 : end.line])
        parts.append(self._lines[end.line][: end.column])
        return "\n".join(parts)

    def apply_edit(self, removal: Optional[Span], insert_at: Position, text: str) -> None:
        lines = list(self._lines)
        text = text.replace("\r\n", "\n")
        if removal is not None:
            span = removal.normalized()
            start, end = self._clamp(span.start), self._clamp(span.end)
            head = lines[start.line][: start.column]
            tail = lines[end.line][end.column :]
            lines[start.line : end.line + 1] = [head + tail]

        line = min(max(insert_at.line, 0), len(lines) - 1)
        column = min(max(insert_at.column, 0), len(lines[line]))
        head = lines[line][:column]
        tail = lines[line][column:]
        inserted = text.split("\n")
        if len(inserted) == 1:
            end_position = Position(line, column + len(inserted[0]))
        else:
            end_position = Position(line + len(inserted) - 1, len(inserted[-1]))
        inserted[0] = head + inserted[0]
        inserted[-1] = inserted[-1] + tail
        lines[line : line + 1] = inserted

        self._lines = lines
        self._last_insert_end = end_position
        self._selection = None

    def reposition_cursor_after_edit(self) -> None:
        if self._last_insert_end is not None:
            self._cursor = self._last_insert_end
        self._cursor = self._clamp(self._cursor)

    def _clamp(self, position: Position) -> Position:
        line = min(max(position.line, 0), len(self._lines) - 1)
        column = min(max(position.column, 0), len(self._lines[line]))
        return Position(line, column)


def _dominant_newline(raw: str) -> str:
    """CRLF when most line breaks in ``raw`` are CRLF, otherwise LF.

    In an LF file a stray ``\\r`` stays inside its line and is written back as is.
    """
    crlf = raw.count("\r\n")
    return "\r\n" if crlf and crlf >= raw.count("\n") - crlf else "\n"


__all__ = ["Document", "TextDocument"]
