"""Scoped temporary file holding one job's prompt."""

from __future__ import annotations

import codecs
import os
import tempfile
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from ..errors import ResourceError
from ..logging import get_logger

_PREFIX = "llmedit-prompt-"
_SUFFIX = ".txt"

logger = get_logger("jobs.artifact")


class ScratchArtifact:
    """Prompt file owned by exactly one job and removed exactly once."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._released = False

    @classmethod
    def create(
        cls,
        content: str,
        *,
        directory: Path | None = None,
        byte_order_mark: bool = True,
    ) -> "ScratchArtifact":
        """Write ``content`` as UTF-8 to a fresh 0600 file.

        A failed write removes the partially created file before raising.
        """
        try:
            fd, name = tempfile.mkstemp(prefix=_PREFIX, suffix=_SUFFIX, dir=directory)
        except OSError as exc:
            raise ResourceError(f"Failed to create temp prompt file: {exc}") from exc

        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                payload = content.encode("utf-8")
                if byte_order_mark:
                    payload = codecs.BOM_UTF8 + payload
                handle.write(payload)
        except (OSError, UnicodeError) as exc:
            _remove(path)
            raise ResourceError(f"Failed to write temp prompt: {exc}") from exc

        logger.debug("Temp prompt written to %s (%d chars)", path, len(content))
        return cls(path)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Delete the file; repeated calls are no-ops. Returns True if removed."""
        if self._released:
            return False
        self._released = True
        return _remove(self.path)

    def __enter__(self) -> "ScratchArtifact":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()


def _remove(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("Could not remove temp prompt %s: %s", path, exc)
        return False
    logger.debug("Temp prompt removed: %s", path)
    return True


__all__ = ["ScratchArtifact"]
