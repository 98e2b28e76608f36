"""Error taxonomy for llmedit jobs and template lookups."""

from __future__ import annotations


class LLMEditError(RuntimeError):
    """Base class for failures surfaced to the user as a single status line."""


class PreconditionError(LLMEditError):
    """Raised before any work starts, e.g. no request text or nothing selected."""


class ResourceError(LLMEditError):
    """Raised when the prompt file cannot be written or the process cannot start."""


class ExternalFailure(LLMEditError):
    """The external command reported a fatal error on standard error."""


class EmptyResultError(LLMEditError):
    """The external command exited without producing usable text."""


class TemplateLookupError(LLMEditError):
    """The template directory is unavailable or a named template is unreadable."""


__all__ = [
    "EmptyResultError",
    "ExternalFailure",
    "LLMEditError",
    "PreconditionError",
    "ResourceError",
    "TemplateLookupError",
]
