"""Per-mode default template management."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import EditorConfig, save_config
from ..logging import get_logger
from ..models import Mode
from .store import TemplateStore

NOT_SET = "Not set (uses built-in)"

logger = get_logger("templates.defaults")


@dataclass(frozen=True)
class DefaultTemplateSummary:
    generate: str
    modify: str

    def __str__(self) -> str:
        return (
            f"Defaults -- Generate: {self.generate or NOT_SET} | "
            f"Modify: {self.modify or NOT_SET}"
        )


def show_default_templates(config: EditorConfig) -> DefaultTemplateSummary:
    return DefaultTemplateSummary(
        generate=config.default_templates.generate,
        modify=config.default_templates.modify,
    )


def set_default_template(
    config: EditorConfig, store: TemplateStore, name: str, mode: Mode
) -> str:
    """Make ``name`` the default template for ``mode`` and persist it.

    The template must be readable; a file without a ``system`` key is fine.
    """
    store.require(name)
    config.default_templates.set(mode, name)
    path = save_config(config)
    logger.debug("Set default %s template to %s in %s", mode.value, name, path)
    return f"Default LLM template for '{mode.value}' set to: {name}"


def clear_default_template(config: EditorConfig, mode: Mode) -> str:
    config.default_templates.set(mode, "")
    path = save_config(config)
    logger.debug("Cleared default %s template in %s", mode.value, path)
    return f"Default LLM template for '{mode.value}' cleared."


__all__ = [
    "DefaultTemplateSummary",
    "clear_default_template",
    "set_default_template",
    "show_default_templates",
]
