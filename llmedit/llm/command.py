"""Builds the argument vector for the external llm command."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from ..config import DefaultTemplates, EditorConfig, EXECUTABLE_ENV_KEY
from ..models import JobRequest
from ..prompting.constants import DEFAULT_SYSTEM_PROMPTS

STDIN_MARKER = "-"


@dataclass(frozen=True)
class Invocation:
    """Fully rendered command for one job; the prompt travels on stdin."""

    argv: Tuple[str, ...]
    stdin_path: Path
    prompt_source: str

    def describe(self) -> str:
        return f"{shlex.join(self.argv)} < {shlex.quote(str(self.stdin_path))}"


class CommandBuilder:
    """Chooses the system prompt source and renders the llm arguments.

    Precedence: inline ``-s`` override, explicit ``-t`` template, configured
    default template for the mode, built-in system prompt for the mode.
    Arguments are passed as a vector, so prompt text is never shell-interpreted.
    """

    def __init__(
        self,
        executable: str | None = None,
        *,
        extract_flag: str = "-x",
        default_templates: DefaultTemplates | None = None,
    ) -> None:
        self.executable = executable or os.getenv(EXECUTABLE_ENV_KEY) or "llm"
        self.extract_flag = extract_flag
        self.default_templates = default_templates or DefaultTemplates()

    @classmethod
    def from_config(cls, config: EditorConfig) -> "CommandBuilder":
        return cls(
            config.executable,
            extract_flag=config.extract_flag,
            default_templates=config.default_templates,
        )

    def build(self, request: JobRequest, stdin_path: Path) -> Invocation:
        args = [self.executable]
        if request.system_override is not None:
            args.extend(["-s", request.system_override])
            source = "custom system prompt from -s"
        elif request.template_name:
            args.extend(["-t", request.template_name])
            source = f"template '{request.template_name}' from -t"
        else:
            default_template = self.default_templates.for_mode(request.mode)
            if default_template:
                args.extend(["-t", default_template])
                source = f"default {request.mode.value} template '{default_template}'"
            else:
                args.extend(["-s", DEFAULT_SYSTEM_PROMPTS[request.mode]])
                source = f"built-in {request.mode.value} system prompt"
        if self.extract_flag:
            args.append(self.extract_flag)
        args.append(STDIN_MARKER)
        return Invocation(argv=tuple(args), stdin_path=stdin_path, prompt_source=source)


__all__ = ["CommandBuilder", "Invocation", "STDIN_MARKER"]
