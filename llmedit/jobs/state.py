"""Per-invocation job state and its lifecycle."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ..document import Document
from ..errors import LLMEditError
from ..models import JobRequest, Mode, Position, Span
from .artifact import ScratchArtifact


class JobStatus(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    SPAWNED = "spawned"
    STREAMING = "streaming"
    CLASSIFYING = "classifying"
    APPLIED = "applied"
    FAILED = "failed"
    SUPERSEDED = "superseded"


TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset(
    {JobStatus.APPLIED, JobStatus.FAILED, JobStatus.SUPERSEDED}
)

_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.IDLE: frozenset({JobStatus.BUILDING}),
    JobStatus.BUILDING: frozenset({JobStatus.SPAWNED, JobStatus.FAILED}),
    JobStatus.SPAWNED: frozenset({JobStatus.STREAMING, JobStatus.FAILED}),
    JobStatus.STREAMING: frozenset({JobStatus.CLASSIFYING}),
    JobStatus.CLASSIFYING: TERMINAL_STATUSES,
}


@dataclass
class JobOutcome:
    """Terminal result of a job, success or failure."""

    status: JobStatus
    mode: Mode
    text: str = ""
    error: Optional[LLMEditError] = None
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    invocation: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status is JobStatus.APPLIED

    @property
    def message(self) -> str:
        if self.error is not None:
            return f"ERROR: {self.error}"
        if self.status is JobStatus.APPLIED:
            return f"LLM {self.mode.value}: Text updated."
        return f"LLM {self.mode.value}: {self.status.value}"


@dataclass(eq=False)
class Job:
    """Everything one generate/modify invocation owns.

    ``removal_range`` is set if and only if the job runs in modify mode.
    """

    token: int
    request: JobRequest
    document: Optional[Document] = None
    status: JobStatus = JobStatus.IDLE
    stdout_chunks: List[bytes] = field(default_factory=list)
    stderr_chunks: List[bytes] = field(default_factory=list)
    exit_code: Optional[int] = None
    insertion_point: Optional[Position] = None
    removal_range: Optional[Span] = None
    artifact: Optional[ScratchArtifact] = None
    invocation: str = ""
    outcome: Optional[JobOutcome] = None
    _exited: bool = field(default=False, repr=False)
    _finished: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    watcher: Optional["asyncio.Future[None]"] = field(default=None, repr=False)

    @property
    def mode(self) -> Mode:
        return self.request.mode

    @property
    def done(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def advance(self, status: JobStatus) -> None:
        allowed = _TRANSITIONS.get(self.status, frozenset())
        if status not in allowed:
            raise RuntimeError(
                f"Job {self.token}: illegal transition {self.status.value} -> {status.value}"
            )
        self.status = status

    def record_exit(self, exit_code: Optional[int]) -> None:
        if self._exited:
            raise RuntimeError(f"Job {self.token}: exit already recorded")
        self._exited = True
        self.exit_code = exit_code

    def stdout_text(self) -> str:
        return b"".join(self.stdout_chunks).decode("utf-8", errors="replace")

    def stderr_text(self) -> str:
        return b"".join(self.stderr_chunks).decode("utf-8", errors="replace")

    def finish(self, outcome: JobOutcome) -> JobOutcome:
        self.advance(outcome.status)
        self.outcome = outcome
        self._finished.set()
        return outcome

    async def wait(self) -> JobOutcome:
        """Wait for the terminal outcome."""
        await self._finished.wait()
        assert self.outcome is not None
        return self.outcome


__all__ = ["Job", "JobOutcome", "JobStatus", "TERMINAL_STATUSES"]
