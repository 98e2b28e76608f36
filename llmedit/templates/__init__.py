"""Template file lookup and system prompt extraction."""

from .scalar import ScalarResult, ScalarStatus, extract_scalar
from .store import TemplateStore

__all__ = ["ScalarResult", "ScalarStatus", "TemplateStore", "extract_scalar"]
