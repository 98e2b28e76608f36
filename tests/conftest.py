from __future__ import annotations

import logging
import sys
import textwrap
from pathlib import Path

import pytest

from llmedit.config import EditorConfig


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """Directory that receives the jobs' temporary prompt files."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def editor_config(scratch_dir: Path, tmp_path: Path) -> EditorConfig:
    """Config isolated from the user's home directory."""
    return EditorConfig(
        path=tmp_path / "config.yml",
        executable="llm",
        scratch_dir=scratch_dir,
        templates_dir=tmp_path / "templates",
    )


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("LLMEDIT_CONFIG", raising=False)
    monkeypatch.delenv("LLMEDIT_EXECUTABLE", raising=False)
    monkeypatch.delenv("LLMEDIT_LOG_LEVEL", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture
def fake_llm(tmp_path: Path) -> Path:
    """Executable that echoes its prompt back, upper-cased, on stdout."""
    if sys.platform == "win32":  # pragma: no cover - posix shebang required
        pytest.skip("fake llm script requires a POSIX shell")
    script = tmp_path / "fake-llm"
    script.write_text(
        textwrap.dedent(
            f"""\
            #!{sys.executable}
            import sys
            prompt = sys.stdin.buffer.read().decode("utf-8-sig")
            request = prompt.splitlines()[0].replace("USER_REQUEST: ", "")
            sys.stdout.write("  " + request.upper() + "  \\n")
            """
        ),
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script


@pytest.fixture(autouse=True)
def _reset_llmedit_logger():
    yield
    logger = logging.getLogger("llmedit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
