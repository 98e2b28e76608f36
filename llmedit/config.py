"""Configuration loading for llmedit (config.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .models import Mode

CONFIG_ENV_KEY = "LLMEDIT_CONFIG"
EXECUTABLE_ENV_KEY = "LLMEDIT_EXECUTABLE"
_CONFIG_FILENAME = "config.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or written."""


@dataclass
class DefaultTemplates:
    """Template names used when a request names neither -s nor -t."""

    generate: str = ""
    modify: str = ""

    def for_mode(self, mode: Mode) -> str:
        return self.generate if mode is Mode.GENERATE else self.modify

    def set(self, mode: Mode, name: str) -> None:
        if mode is Mode.GENERATE:
            self.generate = name
        else:
            self.modify = name


@dataclass
class EditorConfig:
    """Represents the settings defined in config.yml."""

    path: Optional[Path] = None
    executable: str = "llm"
    context_lines: int = 100
    extract_flag: str = "-x"
    byte_order_mark: bool = True
    scratch_dir: Optional[Path] = None
    templates_dir: Optional[Path] = None
    default_templates: DefaultTemplates = field(default_factory=DefaultTemplates)
    ignored_stderr_markers: List[str] = field(
        default_factory=lambda: ["ozone-platform-hint"]
    )


def default_config_path() -> Path:
    """Return the config location, honouring $LLMEDIT_CONFIG and $XDG_CONFIG_HOME."""
    override = os.getenv(CONFIG_ENV_KEY)
    if override:
        return Path(override).expanduser()
    base = os.getenv("XDG_CONFIG_HOME")
    config_home = Path(base).expanduser() if base else Path.home() / ".config"
    return config_home / "llmedit" / _CONFIG_FILENAME


def load_config(config_path: Path | None = None) -> EditorConfig:
    """Load configuration from disk, falling back to defaults when missing."""
    path = _resolve_config_path(config_path)
    config = EditorConfig(path=path)

    if path.exists():
        data = _read_config(path)
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must contain a mapping at the root")
        _apply(config, data, root=path.parent)

    env_executable = os.getenv(EXECUTABLE_ENV_KEY)
    if env_executable:
        config.executable = env_executable
    return config


def save_config(config: EditorConfig) -> Path:
    """Persist the configuration, creating the parent directory if needed."""
    path = _resolve_config_path(config.path)
    payload: Dict[str, Any] = {
        "executable": config.executable,
        "context_lines": config.context_lines,
        "extract_flag": config.extract_flag,
        "byte_order_mark": config.byte_order_mark,
        "default_templates": {
            "generate": config.default_templates.generate,
            "modify": config.default_templates.modify,
        },
        "ignored_stderr_markers": list(config.ignored_stderr_markers),
    }
    if config.scratch_dir is not None:
        payload["scratch_dir"] = str(config.scratch_dir)
    if config.templates_dir is not None:
        payload["templates_dir"] = str(config.templates_dir)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write {path}: {exc}") from exc
    config.path = path
    return path


def _resolve_config_path(config_path: Path | None) -> Path:
    if config_path is None:
        return default_config_path()
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return config_path / _CONFIG_FILENAME
    return config_path


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _apply(config: EditorConfig, data: Dict[str, Any], *, root: Path) -> None:
    executable = _as_str(data.get("executable"))
    if executable:
        config.executable = executable

    context_lines = _as_int(data.get("context_lines"))
    if context_lines is not None:
        if context_lines < 0:
            raise ConfigError("context_lines must be zero or greater")
        config.context_lines = context_lines

    extract_flag = _as_str(data.get("extract_flag"))
    if extract_flag is not None:
        config.extract_flag = extract_flag

    byte_order_mark = _as_bool(data.get("byte_order_mark"))
    if byte_order_mark is not None:
        config.byte_order_mark = byte_order_mark

    scratch_dir = _as_str(data.get("scratch_dir"))
    if scratch_dir:
        config.scratch_dir = _as_path(scratch_dir, root)

    templates_dir = _as_str(data.get("templates_dir"))
    if templates_dir:
        config.templates_dir = _as_path(templates_dir, root)

    defaults = _as_dict(data.get("default_templates"))
    config.default_templates = DefaultTemplates(
        generate=_as_str(defaults.get("generate")) or "",
        modify=_as_str(defaults.get("modify")) or "",
    )

    if "ignored_stderr_markers" in data:
        config.ignored_stderr_markers = _as_str_list(data.get("ignored_stderr_markers"))


def _as_path(value: str, root: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "ConfigError",
    "DefaultTemplates",
    "EditorConfig",
    "default_config_path",
    "load_config",
    "save_config",
]
