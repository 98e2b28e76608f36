"""Job orchestration: prompt -> external llm process -> document edit."""

from __future__ import annotations

import asyncio
import itertools
from functools import partial
from typing import Callable, Optional

from ..config import EditorConfig
from ..context import ContextWindowResolver
from ..document import Document
from ..errors import (
    EmptyResultError,
    ExternalFailure,
    LLMEditError,
    PreconditionError,
    ResourceError,
)
from ..llm.command import CommandBuilder
from ..llm.process import AsyncioProcessLauncher, ProcessHandle, ProcessLauncher
from ..logging import get_logger
from ..models import JobRequest, Mode
from ..prompting.builder import PromptAssembler
from .artifact import ScratchArtifact
from .classifier import OutputClassifier, Verdict
from .state import Job, JobOutcome, JobStatus

Notifier = Callable[[str], None]


class JobOrchestrator:
    """Runs at most one generate/modify job at a time.

    Each ``start`` creates a fresh :class:`Job` with a new token and makes it
    the active one. Output and exit callbacks for an older token are stale:
    they release that job's prompt file but never touch the document.
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        *,
        launcher: ProcessLauncher | None = None,
        assembler: PromptAssembler | None = None,
        context_resolver: ContextWindowResolver | None = None,
        command_builder: CommandBuilder | None = None,
        classifier: OutputClassifier | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.launcher = launcher or AsyncioProcessLauncher()
        self.assembler = assembler or PromptAssembler()
        self.context_resolver = context_resolver or ContextWindowResolver(
            self.config.context_lines
        )
        self.command_builder = command_builder or CommandBuilder.from_config(self.config)
        self.classifier = classifier or OutputClassifier(self.config.ignored_stderr_markers)
        self.logger = get_logger("jobs")
        self._notify_callback = notify
        self._tokens = itertools.count(1)
        self._active: Optional[Job] = None

    @property
    def active_job(self) -> Optional[Job]:
        if self._active is None or self._active.done:
            return None
        return self._active

    def is_current(self, job: Job) -> bool:
        return self._active is not None and self._active.token == job.token

    async def run(self, request: JobRequest, document: Document) -> JobOutcome:
        """Start a job and wait for its terminal outcome."""
        job = await self.start(request, document)
        return await job.wait()

    async def start(self, request: JobRequest, document: Document) -> Job:
        """Build the prompt, spawn the llm process and return without awaiting it.

        Raises :class:`PreconditionError` or :class:`ResourceError` when the job
        cannot be started; nothing is left on disk in either case.
        """
        previous = self.active_job
        job = Job(token=next(self._tokens), request=request, document=document)
        if previous is not None:
            self.logger.warning(
                "Job %d superseded by job %d before its process exited",
                previous.token,
                job.token,
            )
        self._active = job
        label = _label(request.mode)

        job.advance(JobStatus.BUILDING)
        try:
            prompt = self._build_prompt(job, document)
            job.artifact = ScratchArtifact.create(
                prompt,
                directory=self.config.scratch_dir,
                byte_order_mark=self.config.byte_order_mark,
            )
        except PreconditionError as exc:
            self._fail_early(job, exc)
            raise
        except ResourceError as exc:
            error = ResourceError(f"{label}: {exc}")
            self._fail_early(job, error)
            raise error from exc

        invocation = self.command_builder.build(request, job.artifact.path)
        job.invocation = invocation.describe()
        self.logger.debug("System prompt decision: %s", invocation.prompt_source)
        job.advance(JobStatus.SPAWNED)
        self._notify(f"{label}: Processing...")
        self.logger.debug("Executing command: %s", job.invocation)

        try:
            handle = await self.launcher.spawn(
                invocation.argv,
                stdin_path=job.artifact.path,
                on_stdout=partial(self._on_stdout, job),
                on_stderr=partial(self._on_stderr, job),
            )
        except (OSError, ValueError) as exc:
            # ValueError: argv the OS rejects, e.g. an embedded NUL byte.
            job.artifact.release()
            error = ResourceError(f"{label}: Failed to start job: {exc}")
            self._fail_early(job, error)
            raise error from exc

        job.advance(JobStatus.STREAMING)
        job.watcher = asyncio.ensure_future(self._watch(job, handle))
        self.logger.debug("LLM job %d (%s) initiated", job.token, request.mode.value)
        return job

    def _build_prompt(self, job: Job, document: Document) -> str:
        request = job.request
        label = _label(request.mode)
        if (
            not request.user_request.strip()
            and request.system_override is None
            and not request.template_name
        ):
            raise PreconditionError(f"{label}: No request prompt provided.")

        selection = document.selection_range() if document.has_selection() else None
        if selection is not None and selection.is_empty:
            selection = None
        selected_text = document.selection_text() if selection is not None else ""

        end_line: Optional[int] = None
        if request.mode is Mode.MODIFY:
            if selection is None:
                raise PreconditionError(f"{label}: This command requires text to be selected.")
            job.insertion_point = selection.start
            job.removal_range = selection
            end_line = selection.end.line
        elif selection is not None:
            job.insertion_point = selection.end
        else:
            job.insertion_point = document.cursor_position()

        before, after = self.context_resolver.resolve(
            job.insertion_point,
            self.config.context_lines,
            document,
            end_line=end_line,
        )
        prompt = self.assembler.assemble(
            request.mode, request.user_request, selected_text, before, after
        )
        self.logger.debug("Full prompt for %s:\n%s", request.mode.value, prompt)
        return prompt

    def _on_stdout(self, job: Job, chunk: bytes) -> None:
        if not self.is_current(job):
            self.logger.debug("Dropping stdout chunk from superseded job %d", job.token)
            return
        job.stdout_chunks.append(chunk)

    def _on_stderr(self, job: Job, chunk: bytes) -> None:
        if not self.is_current(job):
            self.logger.debug("Dropping stderr chunk from superseded job %d", job.token)
            return
        job.stderr_chunks.append(chunk)

    async def _watch(self, job: Job, handle: ProcessHandle) -> None:
        exit_code: Optional[int] = None
        try:
            exit_code = await handle.wait()
        except Exception:
            self.logger.exception("Lost contact with job %d process", job.token)
        finally:
            self._on_exit(job, exit_code)

    def _on_exit(self, job: Job, exit_code: Optional[int]) -> JobOutcome:
        job.advance(JobStatus.CLASSIFYING)
        job.record_exit(exit_code)
        if job.artifact is not None:
            job.artifact.release()

        label = _label(job.mode)
        stdout = job.stdout_text()
        stderr = job.stderr_text()
        self.logger.debug(
            "Job %d exited with %s; stdout (len %d): %r; stderr (len %d): %r",
            job.token,
            exit_code,
            len(stdout),
            stdout,
            len(stderr),
            stderr,
        )

        def _outcome(status: JobStatus, **kwargs: object) -> JobOutcome:
            return JobOutcome(
                status=status,
                mode=job.mode,
                stdout=stdout,
                stderr=stderr,
                exit_code=exit_code,
                invocation=job.invocation,
                **kwargs,  # type: ignore[arg-type]
            )

        if not self.is_current(job):
            self.logger.info("Job %d finished after being superseded; result discarded", job.token)
            return job.finish(_outcome(JobStatus.SUPERSEDED))

        classification = self.classifier.classify(
            stdout,
            stderr,
            artifact_path=job.artifact.path if job.artifact is not None else None,
        )
        if classification.verdict is Verdict.FATAL:
            error: LLMEditError = ExternalFailure(f"{label}: {classification.reason}")
            self.logger.error("Cmd(%s) critical failure. Stderr: %s", job.invocation, stderr)
            return self._fail(job, _outcome(JobStatus.FAILED, error=error))
        if classification.verdict is Verdict.EMPTY:
            error = EmptyResultError(f"{label}: {classification.reason}")
            self.logger.error(
                "Cmd(%s) produced no valid stdout. Stderr: [%s]. Exit: [%s]",
                job.invocation,
                stderr,
                exit_code,
            )
            return self._fail(job, _outcome(JobStatus.FAILED, error=error))

        if classification.diagnostics:
            self.logger.debug(
                "Non-critical stderr for (%s): %s", job.invocation, classification.diagnostics
            )
        try:
            self._apply(job, classification.text)
        except Exception as exc:  # pragma: no cover - third-party Document implementations
            self.logger.exception("Failed to apply result of job %d", job.token)
            error = LLMEditError(f"{label}: Failed to apply result: {exc}")
            return self._fail(job, _outcome(JobStatus.FAILED, error=error))

        outcome = job.finish(_outcome(JobStatus.APPLIED, text=classification.text))
        self._notify(outcome.message)
        return outcome

    @staticmethod
    def _apply(job: Job, text: str) -> None:
        if job.document is None or job.insertion_point is None:
            raise RuntimeError("critical state missing after job")
        if job.mode is Mode.MODIFY and job.removal_range is None:
            raise RuntimeError("selection range missing after job")
        job.document.apply_edit(job.removal_range, job.insertion_point, text)
        job.document.reposition_cursor_after_edit()

    def _fail(self, job: Job, outcome: JobOutcome) -> JobOutcome:
        job.finish(outcome)
        self._notify(outcome.message)
        return outcome

    def _fail_early(self, job: Job, error: LLMEditError) -> None:
        self.logger.error("%s", error)
        self._fail(job, JobOutcome(status=JobStatus.FAILED, mode=job.mode, error=error))

    def _notify(self, message: str) -> None:
        if self._notify_callback is not None:
            self._notify_callback(message)
        else:
            self.logger.info("%s", message)


def _label(mode: Mode) -> str:
    return f"LLM {mode.value}"


__all__ = ["JobOrchestrator", "Notifier"]
