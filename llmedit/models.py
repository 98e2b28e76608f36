"""Core data models shared across llmedit components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Mode(str, Enum):
    """Operation requested by the user."""

    GENERATE = "generate"
    MODIFY = "modify"


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based document location; columns count characters."""

    line: int
    column: int

    @classmethod
    def parse(cls, value: str) -> "Position":
        """Parse ``LINE:COLUMN`` (or a bare ``LINE``) into a position."""
        line_part, _, column_part = value.strip().partition(":")
        try:
            line = int(line_part)
            column = int(column_part) if column_part else 0
        except ValueError as exc:
            raise ValueError(f"Invalid position '{value}', expected LINE:COLUMN") from exc
        if line < 0 or column < 0:
            raise ValueError(f"Invalid position '{value}', values must be non-negative")
        return cls(line=line, column=column)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Span:
    """Half-open range of text between two positions."""

    start: Position
    end: Position

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def normalized(self) -> "Span":
        if self.end < self.start:
            return Span(start=self.end, end=self.start)
        return self


@dataclass(frozen=True)
class JobRequest:
    """User input for a single generate/modify invocation."""

    mode: Mode
    user_request: str = ""
    system_override: Optional[str] = None
    template_name: Optional[str] = None


@dataclass(frozen=True)
class TemplateDescriptor:
    """System prompt recovered from a named template file.

    ``system_prompt`` is ``None`` when the file could not be read and an empty
    string when the file was readable but carries no ``system`` value.
    """

    name: str
    system_prompt: Optional[str]

    @property
    def readable(self) -> bool:
        return self.system_prompt is not None


__all__ = ["JobRequest", "Mode", "Position", "Span", "TemplateDescriptor"]
