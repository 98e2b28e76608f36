"""Tests for the job orchestrator state machine."""

from __future__ import annotations

import asyncio
import codecs
from pathlib import Path

import pytest

from llmedit.config import EditorConfig
from llmedit.document import TextDocument
from llmedit.errors import (
    EmptyResultError,
    ExternalFailure,
    PreconditionError,
    ResourceError,
)
from llmedit.jobs import JobOrchestrator, JobStatus
from llmedit.llm.process import AsyncioProcessLauncher
from llmedit.models import JobRequest, Mode, Position, Span
from tests._fixtures.fake_process import FakeLauncher, ScriptedProcess

DOCUMENT = "first line\nsecond line\nthird line\nfourth line\nfifth line"


def _generate(text: str = "write more", **kwargs: object) -> JobRequest:
    return JobRequest(mode=Mode.GENERATE, user_request=text, **kwargs)  # type: ignore[arg-type]


def _modify(text: str = "shout it", **kwargs: object) -> JobRequest:
    return JobRequest(mode=Mode.MODIFY, user_request=text, **kwargs)  # type: ignore[arg-type]


def _orchestrator(
    config: EditorConfig, launcher: FakeLauncher, messages: list[str] | None = None
) -> JobOrchestrator:
    sink = messages if messages is not None else []
    return JobOrchestrator(config, launcher=launcher, notify=sink.append)


def test_generate_inserts_trimmed_output_at_cursor(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["  Hello ", "world  \n"])])
    messages: list[str] = []
    document = TextDocument(DOCUMENT, cursor=Position(2, 5))

    outcome = asyncio.run(
        _orchestrator(editor_config, launcher, messages).run(_generate(), document)
    )

    assert outcome.status is JobStatus.APPLIED
    assert outcome.text == "Hello world"
    assert document.line_text(2) == "thirdHello world line"
    assert document.cursor_position() == Position(2, 16)
    assert messages == ["LLM generate: Processing...", "LLM generate: Text updated."]
    assert list(scratch_dir.iterdir()) == []


def test_generate_prompt_and_command(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["ok"])])
    document = TextDocument(DOCUMENT, cursor=Position(2, 0))

    asyncio.run(_orchestrator(editor_config, launcher).run(_generate("summarise"), document))

    call = launcher.calls[0]
    stdin = call["stdin"]
    assert isinstance(stdin, bytes)
    assert stdin.startswith(codecs.BOM_UTF8)
    assert stdin.decode("utf-8-sig") == (
        "USER_REQUEST: summarise\n\n"
        "EDITOR_CONTEXT (OPTIONAL SELECTION):\n\n\n"
        "CONTEXT_AROUND_CURSOR_BEFORE:\nfirst line\nsecond line\n\n"
        "CONTEXT_AROUND_CURSOR_AFTER:\nfourth line\nfifth line"
    )
    argv = call["argv"]
    assert isinstance(argv, list)
    assert argv[0] == "llm"
    assert argv[1] == "-s"
    assert argv[-2:] == ["-x", "-"]


def test_generate_with_selection_inserts_after_selection(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["!"])])
    document = TextDocument(
        DOCUMENT,
        cursor=Position(0, 0),
        selection=Span(Position(1, 0), Position(1, 6)),
    )

    outcome = asyncio.run(_orchestrator(editor_config, launcher).run(_generate(), document))

    assert outcome.succeeded
    assert document.line_text(1) == "second! line"
    stdin = launcher.calls[0]["stdin"]
    assert isinstance(stdin, bytes)
    assert "EDITOR_CONTEXT (OPTIONAL SELECTION):\nsecond\n\n" in stdin.decode("utf-8-sig")


def test_modify_replaces_selection(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["SECOND LINE\nTHIRD"])])
    document = TextDocument(DOCUMENT, selection=Span(Position(1, 0), Position(2, 5)))
    orchestrator = _orchestrator(editor_config, launcher)

    outcome = asyncio.run(orchestrator.run(_modify(), document))

    assert outcome.status is JobStatus.APPLIED
    assert document.text == "first line\nSECOND LINE\nTHIRD line\nfourth line\nfifth line"
    stdin = launcher.calls[0]["stdin"]
    assert isinstance(stdin, bytes)
    assert stdin.decode("utf-8-sig") == (
        "USER_REQUEST: shout it\n\n"
        "CONTEXT_BEFORE_SELECTION:\nfirst line\n\n"
        "SELECTED_TEXT_TO_MODIFY:\nsecond line\nthird\n\n"
        "CONTEXT_AFTER_SELECTION:\nfourth line\nfifth line"
    )


def test_job_records_modify_ranges(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["x"])])
    selection = Span(Position(0, 2), Position(1, 3))
    document = TextDocument(DOCUMENT, selection=selection)

    async def scenario():
        job = await _orchestrator(editor_config, launcher).start(_modify(), document)
        assert job.status is JobStatus.STREAMING
        await job.wait()
        return job

    job = asyncio.run(scenario())

    assert job.insertion_point == Position(0, 2)
    assert job.removal_range == selection
    assert job.exit_code == 0
    assert job.invocation.startswith("llm -s ")


def test_generate_never_sets_removal_range(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["x"])])
    document = TextDocument(DOCUMENT, selection=Span(Position(0, 0), Position(0, 5)))

    async def scenario():
        job = await _orchestrator(editor_config, launcher).start(_generate(), document)
        await job.wait()
        return job

    job = asyncio.run(scenario())

    assert job.removal_range is None
    assert job.insertion_point == Position(0, 5)


def test_modify_without_selection_is_precondition_error(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    launcher = FakeLauncher()
    messages: list[str] = []
    orchestrator = _orchestrator(editor_config, launcher, messages)

    with pytest.raises(PreconditionError, match="requires text to be selected"):
        asyncio.run(orchestrator.start(_modify(), TextDocument(DOCUMENT)))

    assert launcher.calls == []
    assert list(scratch_dir.iterdir()) == []
    assert messages == ["ERROR: LLM modify: This command requires text to be selected."]
    assert orchestrator.active_job is None


def test_empty_request_without_override_is_precondition_error(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    launcher = FakeLauncher()

    with pytest.raises(PreconditionError, match="No request prompt provided"):
        asyncio.run(
            _orchestrator(editor_config, launcher).start(_generate(""), TextDocument(DOCUMENT))
        )

    assert launcher.calls == []
    assert list(scratch_dir.iterdir()) == []


def test_empty_request_allowed_with_template(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["from template"])])
    document = TextDocument("", cursor=Position(0, 0))

    outcome = asyncio.run(
        _orchestrator(editor_config, launcher).run(_generate("", template_name="poem"), document)
    )

    assert outcome.succeeded
    assert launcher.calls[0]["argv"] == ["llm", "-t", "poem", "-x", "-"]
    assert document.text == "from template"


def test_command_not_found_is_external_failure(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    launcher = FakeLauncher(
        [
            ScriptedProcess(
                stdout=["partial output"],
                stderr=["bash: llm: command not found"],
                exit_code=127,
            )
        ]
    )
    messages: list[str] = []
    document = TextDocument(DOCUMENT, cursor=Position(1, 0))

    outcome = asyncio.run(
        _orchestrator(editor_config, launcher, messages).run(_generate(), document)
    )

    assert outcome.status is JobStatus.FAILED
    assert isinstance(outcome.error, ExternalFailure)
    assert outcome.exit_code == 127
    assert document.text == DOCUMENT
    assert messages[-1] == "ERROR: LLM generate: Critical failure (shell/LLM)."
    assert list(scratch_dir.iterdir()) == []


def test_blank_output_is_empty_result(editor_config: EditorConfig, scratch_dir: Path) -> None:
    launcher = FakeLauncher([ScriptedProcess(stdout=["\n  \n"], exit_code=0)])
    document = TextDocument(DOCUMENT)

    outcome = asyncio.run(_orchestrator(editor_config, launcher).run(_generate(), document))

    assert outcome.status is JobStatus.FAILED
    assert isinstance(outcome.error, EmptyResultError)
    assert document.text == DOCUMENT
    assert list(scratch_dir.iterdir()) == []


def test_noise_on_stderr_does_not_block_success(editor_config: EditorConfig) -> None:
    launcher = FakeLauncher(
        [ScriptedProcess(stdout=["done"], stderr=["Warning: ozone-platform-hint ignored"])]
    )
    document = TextDocument("", cursor=Position(0, 0))

    outcome = asyncio.run(_orchestrator(editor_config, launcher).run(_generate(), document))

    assert outcome.succeeded
    assert document.text == "done"


def test_spawn_failure_is_resource_error(editor_config: EditorConfig, scratch_dir: Path) -> None:
    launcher = FakeLauncher(error=FileNotFoundError(2, "No such file or directory", "llm"))
    orchestrator = _orchestrator(editor_config, launcher)

    with pytest.raises(ResourceError, match="Failed to start job"):
        asyncio.run(orchestrator.start(_generate(), TextDocument(DOCUMENT)))

    assert list(scratch_dir.iterdir()) == []
    assert orchestrator.active_job is None


def test_argv_rejected_by_os_is_resource_error(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    orchestrator = JobOrchestrator(
        editor_config, launcher=AsyncioProcessLauncher(), notify=lambda message: None
    )
    request = _generate("hi", system_override="a\x00b")

    async def scenario():
        with pytest.raises(ResourceError, match="Failed to start job"):
            await orchestrator.start(request, TextDocument(DOCUMENT))

    asyncio.run(scenario())

    assert list(scratch_dir.iterdir()) == []
    assert orchestrator.active_job is None


def test_lost_process_still_finishes_job(
    editor_config: EditorConfig, scratch_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    launcher = FakeLauncher([ScriptedProcess(error=RuntimeError("pipe handler blew up"))])
    document = TextDocument(DOCUMENT)

    with caplog.at_level("ERROR", logger="llmedit.jobs"):
        outcome = asyncio.run(
            _orchestrator(editor_config, launcher).run(_generate(), document)
        )

    assert outcome.status is JobStatus.FAILED
    assert isinstance(outcome.error, EmptyResultError)
    assert outcome.exit_code is None
    assert document.text == DOCUMENT
    assert list(scratch_dir.iterdir()) == []
    assert "Lost contact with job 1 process" in caplog.text


def test_prompt_write_failure_leaves_no_artifact(
    editor_config: EditorConfig, scratch_dir: Path
) -> None:
    launcher = FakeLauncher()

    with pytest.raises(ResourceError):
        asyncio.run(
            _orchestrator(editor_config, launcher).start(
                _generate("bad \ud800 text"), TextDocument(DOCUMENT)
            )
        )

    assert launcher.calls == []
    assert list(scratch_dir.iterdir()) == []


def test_new_start_supersedes_running_job(editor_config: EditorConfig, scratch_dir: Path) -> None:
    document = TextDocument("hello", cursor=Position(0, 5))

    async def scenario():
        gate = asyncio.Event()
        launcher = FakeLauncher(
            [
                ScriptedProcess(stdout=[" stale"], gate=gate),
                ScriptedProcess(stdout=[" fresh"]),
            ]
        )
        orchestrator = _orchestrator(editor_config, launcher)
        first = await orchestrator.start(_generate(), document)
        second = await orchestrator.start(_generate(), document)
        assert not orchestrator.is_current(first)
        second_outcome = await second.wait()
        gate.set()
        first_outcome = await first.wait()
        return first, first_outcome, second_outcome

    first, first_outcome, second_outcome = asyncio.run(scenario())

    assert second_outcome.status is JobStatus.APPLIED
    assert first_outcome.status is JobStatus.SUPERSEDED
    assert first.stdout_chunks == []
    assert document.text == "hellofresh"
    assert list(scratch_dir.iterdir()) == []


def test_end_to_end_with_real_process(
    editor_config: EditorConfig, fake_llm: Path, scratch_dir: Path
) -> None:
    editor_config.executable = str(fake_llm)
    document = TextDocument("alpha\nbeta", cursor=Position(1, 4))
    orchestrator = JobOrchestrator(
        editor_config, launcher=AsyncioProcessLauncher(), notify=lambda message: None
    )

    outcome = asyncio.run(orchestrator.run(_generate("make noise"), document))

    assert outcome.succeeded, outcome.stderr
    assert document.text == "alpha\nbetaMAKE NOISE"
    assert list(scratch_dir.iterdir()) == []
