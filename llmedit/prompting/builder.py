"""Builds the prompt text sent to the external LLM command."""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Mode
from .constants import DEFAULT_SYSTEM_PROMPTS, PROMPT_LAYOUTS


@dataclass(frozen=True)
class PromptAssembly:
    """Fields combined into a single prompt for one job.

    ``selected_text`` is the text being replaced in modify mode and the
    optional editor selection in generate mode.
    """

    mode: Mode
    user_request: str
    selected_text: str
    context_before: str
    context_after: str

    def render(self) -> str:
        # Field contents are not escaped; the fixed labels delimit them.
        return PROMPT_LAYOUTS[self.mode].format(
            request=self.user_request,
            selected=self.selected_text,
            before=self.context_before,
            after=self.context_after,
        )


class PromptAssembler:
    """Renders generate/modify prompts and exposes the built-in system prompts."""

    def assemble(
        self,
        mode: Mode,
        user_request: str,
        selected_text: str | None,
        context_before: str,
        context_after: str,
    ) -> str:
        assembly = PromptAssembly(
            mode=mode,
            user_request=user_request,
            selected_text=selected_text or "",
            context_before=context_before,
            context_after=context_after,
        )
        return assembly.render()

    @staticmethod
    def default_system_prompt(mode: Mode) -> str:
        return DEFAULT_SYSTEM_PROMPTS[mode]


__all__ = ["PromptAssembler", "PromptAssembly"]
