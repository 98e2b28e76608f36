"""Locate and read named templates from the llm templates directory."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

from ..config import EditorConfig
from ..errors import TemplateLookupError
from ..logging import get_logger
from ..models import TemplateDescriptor
from .scalar import extract_scalar

SYSTEM_KEY = "system"
TEMPLATE_SUFFIX = ".yaml"


def _run_templates_path(executable: str) -> str:
    args = [executable, "templates", "path"]
    try:
        completed = subprocess.run(
            args,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise TemplateLookupError(
            f"Unable to locate '{executable}' while resolving the templates directory."
        ) from exc
    except subprocess.CalledProcessError as exc:
        raise TemplateLookupError(
            f"'{' '.join(args)}' failed with exit code {exc.returncode}: {exc.stderr.strip()}"
        ) from exc
    return completed.stdout


class TemplateStore:
    """Resolves template files and extracts their system prompts."""

    def __init__(
        self,
        *,
        executable: str = "llm",
        templates_dir: Path | None = None,
        path_lookup: Callable[[str], str] | None = None,
    ) -> None:
        self.executable = executable
        self._templates_dir = templates_dir
        self._path_lookup = path_lookup or _run_templates_path
        self.logger = get_logger("templates")

    def directory(self) -> Path:
        """Return the templates directory, asking the llm CLI when not configured."""
        if self._templates_dir is not None:
            return self._templates_dir
        output = self._path_lookup(self.executable)
        resolved = (output or "").strip()
        if not resolved:
            self.logger.warning(
                "'%s templates path' returned no usable output: %r", self.executable, output
            )
            raise TemplateLookupError("Could not determine the LLM templates directory.")
        self.logger.debug("Templates directory resolved to %s", resolved)
        self._templates_dir = Path(resolved)
        return self._templates_dir

    def path_for(self, name: str) -> Path:
        if not name or Path(name).name != name:
            raise TemplateLookupError(f"Invalid template name '{name}'.")
        return self.directory() / f"{name}{TEMPLATE_SUFFIX}"

    def load(self, name: str) -> TemplateDescriptor:
        """Read a template; an unreadable file yields ``system_prompt=None``."""
        path = self.path_for(name)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.info("Could not read template file %s: %s", path, exc)
            return TemplateDescriptor(name=name, system_prompt=None)

        result = extract_scalar(text, SYSTEM_KEY)
        if not result.key_present:
            self.logger.info("'%s:' key not found in %s", SYSTEM_KEY, path)
        self.logger.debug("Template %s system prompt: %r", name, result.value)
        return TemplateDescriptor(name=name, system_prompt=result.value)

    def require(self, name: str) -> TemplateDescriptor:
        descriptor = self.load(name)
        if not descriptor.readable:
            raise TemplateLookupError(f"LLM template '{name}' not found or unreadable.")
        return descriptor

    def available(self) -> Sequence[str]:
        """Return the names of the templates present in the directory."""
        directory = self.directory()
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob(f"*{TEMPLATE_SUFFIX}"))

    @classmethod
    def from_config(cls, config: EditorConfig) -> "TemplateStore":
        return cls(executable=config.executable, templates_dir=config.templates_dir)


__all__ = ["SYSTEM_KEY", "TemplateStore"]
