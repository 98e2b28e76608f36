"""Extract a single top-level string field from a template file.

Template files are YAML documents, but only one construct is ever needed: a
top-level ``key: value`` pair whose value is a plain scalar, a quoted scalar or
a literal (``|``) / folded (``>``) block scalar. The reader below walks the
lines once instead of pulling in a full YAML parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

_LITERAL = "|"
_FOLDED = ">"
_QUOTES = ("'", '"')


class ScalarStatus(str, Enum):
    FOUND = "found"
    FOUND_EMPTY = "found_empty"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ScalarResult:
    """Outcome of looking up one key in a template document."""

    status: ScalarStatus
    value: str = ""

    @classmethod
    def found(cls, value: str) -> "ScalarResult":
        if not value:
            return cls(status=ScalarStatus.FOUND_EMPTY)
        return cls(status=ScalarStatus.FOUND, value=value)

    @classmethod
    def not_found(cls) -> "ScalarResult":
        return cls(status=ScalarStatus.NOT_FOUND)

    @property
    def key_present(self) -> bool:
        return self.status is not ScalarStatus.NOT_FOUND


def extract_scalar(document_text: str, key: str) -> ScalarResult:
    """Return the string value of the first top-level ``key:`` line.

    The key may start on any line at column 0, not only the first line of the
    file, so templates that open with a comment or another key still resolve.

    Malformed block indentation never raises; the block simply ends at the
    first line that does not belong to it.
    """
    lines = document_text.splitlines()
    prefix = f"{key}:"
    for index, line in enumerate(lines):
        if not line.startswith(prefix):
            continue
        remainder = line[len(prefix):].strip()
        if remainder[:1] in (_LITERAL, _FOLDED):
            block = _read_block(lines[index + 1 :])
            if remainder[0] == _FOLDED:
                value = _fold(block)
            else:
                value = "\n".join(block)
            return ScalarResult.found(_trim_final_newline(value))
        return ScalarResult.found(_unquote(remainder))
    return ScalarResult.not_found()


def _read_block(lines: Sequence[str]) -> List[str]:
    content: List[str] = []
    base_indent: int | None = None
    for raw in lines:
        indent = _indent_width(raw)
        if not raw.strip():
            # whitespace-only lines stay in the block as empty content lines
            if indent == 0 or (base_indent is not None and indent < base_indent):
                break
            content.append("")
            continue
        if base_indent is None:
            if indent == 0:
                break
            base_indent = indent
        elif indent < base_indent:
            break
        content.append(raw[base_indent:])
    return content


def _fold(lines: Sequence[str]) -> str:
    parts: List[str] = []
    previous_blank = True
    for line in lines:
        if not line.strip():
            if not previous_blank:
                parts.append("\n")
            previous_blank = True
            continue
        if not previous_blank:
            parts.append(" ")
        parts.append(line.lstrip())
        previous_blank = False
    return "".join(parts)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return value


def _trim_final_newline(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


__all__ = ["ScalarResult", "ScalarStatus", "extract_scalar"]
