"""Classifies the captured output of a finished llm process."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Tuple

DEFAULT_IGNORED_MARKERS: Tuple[str, ...] = ("ozone-platform-hint",)

_PERMISSION_DENIED = re.compile(r"cat:.*Permission denied")
_GENERIC_FATAL_MARKERS: Tuple[str, ...] = ("command not found", "Error:", "Traceback")


class Verdict(str, Enum):
    SUCCESS = "success"
    FATAL = "fatal"
    EMPTY = "empty"


@dataclass(frozen=True)
class Classification:
    """Result of inspecting stdout/stderr after the process exited."""

    verdict: Verdict
    text: str = ""
    reason: str = ""
    diagnostics: str = ""


class OutputClassifier:
    """Decides between success, fatal failure and empty output.

    A fatal stderr discards stdout entirely. The generic markers are skipped
    when stderr carries one of the ignored noise markers.
    """

    def __init__(self, ignored_markers: Iterable[str] | None = None) -> None:
        markers = DEFAULT_IGNORED_MARKERS if ignored_markers is None else ignored_markers
        self.ignored_markers = tuple(marker for marker in markers if marker)

    def classify(
        self, stdout: str, stderr: str, *, artifact_path: Optional[Path] = None
    ) -> Classification:
        if self._permission_denied(stderr, artifact_path):
            return Classification(Verdict.FATAL, reason="Temp file permission error.")

        noisy = self._is_noise(stderr)
        if not noisy and any(marker in stderr for marker in _GENERIC_FATAL_MARKERS):
            return Classification(Verdict.FATAL, reason="Critical failure (shell/LLM).")

        text = stdout.strip()
        if not text:
            return Classification(Verdict.EMPTY, reason="No valid output received.")

        diagnostics = "" if noisy else stderr.strip()
        return Classification(Verdict.SUCCESS, text=text, diagnostics=diagnostics)

    def _is_noise(self, stderr: str) -> bool:
        return any(marker in stderr for marker in self.ignored_markers)

    @staticmethod
    def _permission_denied(stderr: str, artifact_path: Optional[Path]) -> bool:
        if _PERMISSION_DENIED.search(stderr):
            return True
        if artifact_path is None or "Permission denied" not in stderr:
            return False
        return str(artifact_path) in stderr or artifact_path.name in stderr


__all__ = ["Classification", "OutputClassifier", "Verdict"]
