"""External llm command construction and process management."""

from .command import CommandBuilder, Invocation
from .process import AsyncioProcessLauncher, ProcessHandle, ProcessLauncher

__all__ = [
    "AsyncioProcessLauncher",
    "CommandBuilder",
    "Invocation",
    "ProcessHandle",
    "ProcessLauncher",
]
