"""Collects the lines surrounding the insertion point for the prompt."""

from __future__ import annotations

from typing import Tuple

from .document import Document
from .models import Position

DEFAULT_CONTEXT_LINES = 100


class ContextWindowResolver:
    """Computes the context before and after a reference position.

    Ranges are clamped to the document, never padded, and use whole lines.
    """

    def __init__(self, line_budget: int = DEFAULT_CONTEXT_LINES) -> None:
        self.line_budget = max(0, line_budget)

    def resolve(
        self,
        reference: Position,
        line_budget: int | None,
        document: Document,
        *,
        end_line: int | None = None,
    ) -> Tuple[str, str]:
        """Return ``(before, after)``.

        ``before`` covers the lines above ``reference``; ``after`` starts on the
        line following ``end_line`` (the reference line unless given).
        """
        budget = self.line_budget if line_budget is None else max(0, line_budget)
        total = document.line_count()
        if total <= 0:
            return "", ""
        ref_line = min(max(reference.line, 0), total - 1)
        last_line = ref_line if end_line is None else min(max(end_line, 0), total - 1)
        return (
            self._before(document, ref_line, budget),
            self._after(document, last_line, budget, total),
        )

    @staticmethod
    def _before(document: Document, ref_line: int, budget: int) -> str:
        if ref_line == 0:
            return ""
        start = max(0, ref_line - budget)
        stop = ref_line - 1
        if stop < start:
            return ""
        return _span_of_lines(document, start, stop)

    @staticmethod
    def _after(document: Document, end_line: int, budget: int, total: int) -> str:
        if end_line >= total - 1:
            return ""
        start = end_line + 1
        stop = min(total - 1, end_line + budget)
        if stop < start:
            return ""
        return _span_of_lines(document, start, stop)


def _span_of_lines(document: Document, first: int, last: int) -> str:
    last_text = document.line_text(last)
    return document.text_between(Position(first, 0), Position(last, len(last_text)))


__all__ = ["ContextWindowResolver", "DEFAULT_CONTEXT_LINES"]
