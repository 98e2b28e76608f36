"""Tests for prompt assembly."""

from __future__ import annotations

from llmedit.models import Mode
from llmedit.prompting import PromptAssembler
from llmedit.prompting.constants import DEFAULT_SYSTEM_PROMPTS


def test_generate_prompt_with_empty_fields() -> None:
    prompt = PromptAssembler().assemble(Mode.GENERATE, "write a haiku", "", "", "")

    assert prompt == (
        "USER_REQUEST: write a haiku\n\n"
        "EDITOR_CONTEXT (OPTIONAL SELECTION):\n\n\n"
        "CONTEXT_AROUND_CURSOR_BEFORE:\n\n\n"
        "CONTEXT_AROUND_CURSOR_AFTER:\n"
    )


def test_generate_prompt_treats_missing_selection_as_empty() -> None:
    assembler = PromptAssembler()

    assert assembler.assemble(Mode.GENERATE, "x", None, "a", "b") == assembler.assemble(
        Mode.GENERATE, "x", "", "a", "b"
    )


def test_modify_prompt_layout() -> None:
    prompt = PromptAssembler().assemble(
        Mode.MODIFY,
        "make it formal",
        "hey there",
        "line before",
        "line after",
    )

    assert prompt == (
        "USER_REQUEST: make it formal\n\n"
        "CONTEXT_BEFORE_SELECTION:\nline before\n\n"
        "SELECTED_TEXT_TO_MODIFY:\nhey there\n\n"
        "CONTEXT_AFTER_SELECTION:\nline after"
    )


def test_field_contents_are_not_escaped() -> None:
    prompt = PromptAssembler().assemble(Mode.GENERATE, 'say "{hi}" $HOME', "`x`", "", "")

    assert prompt.startswith('USER_REQUEST: say "{hi}" $HOME\n\n')
    assert "`x`" in prompt


def test_default_system_prompts_exist_for_each_mode() -> None:
    for mode in Mode:
        assert PromptAssembler.default_system_prompt(mode) == DEFAULT_SYSTEM_PROMPTS[mode]
        assert "Output _only_" in DEFAULT_SYSTEM_PROMPTS[mode]
