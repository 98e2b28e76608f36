"""Prompt assembly for generate and modify jobs."""

from .builder import PromptAssembler, PromptAssembly

__all__ = ["PromptAssembler", "PromptAssembly"]
