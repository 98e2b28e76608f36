"""Asynchronous process spawning with streamed stdout/stderr callbacks."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol, Sequence

ChunkHandler = Callable[[bytes], None]

DEFAULT_CHUNK_SIZE = 4096


class ProcessHandle(Protocol):
    """A spawned process whose output is being delivered to callbacks."""

    async def wait(self) -> Optional[int]:
        """Wait until both streams are drained and the process has exited."""
        ...


class ProcessLauncher(Protocol):
    async def spawn(
        self,
        argv: Sequence[str],
        *,
        stdin_path: Path,
        on_stdout: ChunkHandler,
        on_stderr: ChunkHandler,
    ) -> ProcessHandle: ...


class AsyncioProcessHandle:
    """Pumps a subprocess' pipes into chunk handlers until EOF."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        on_stdout: ChunkHandler,
        on_stderr: ChunkHandler,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._process = process
        self._pumps = [
            asyncio.ensure_future(_pump(process.stdout, on_stdout, chunk_size)),
            asyncio.ensure_future(_pump(process.stderr, on_stderr, chunk_size)),
        ]

    @property
    def pid(self) -> int:
        return self._process.pid

    async def wait(self) -> Optional[int]:
        await asyncio.gather(*self._pumps)
        return await self._process.wait()


class AsyncioProcessLauncher:
    """Starts the external command with the prompt file attached to stdin."""

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.chunk_size = chunk_size
        self.env = dict(env) if env is not None else None

    async def spawn(
        self,
        argv: Sequence[str],
        *,
        stdin_path: Path,
        on_stdout: ChunkHandler,
        on_stderr: ChunkHandler,
    ) -> AsyncioProcessHandle:
        env = None
        if self.env is not None:
            env = {**os.environ, **self.env}
        with open(stdin_path, "rb") as stdin:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        return AsyncioProcessHandle(
            process, on_stdout, on_stderr, chunk_size=self.chunk_size
        )


async def _pump(
    stream: Optional[asyncio.StreamReader], handler: ChunkHandler, chunk_size: int
) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break
        handler(chunk)


__all__ = [
    "AsyncioProcessHandle",
    "AsyncioProcessLauncher",
    "ChunkHandler",
    "ProcessHandle",
    "ProcessLauncher",
]
