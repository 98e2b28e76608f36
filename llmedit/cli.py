"""CLI entrypoints for llmedit commands."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .config import ConfigError, EditorConfig, load_config
from .document import TextDocument
from .errors import LLMEditError
from .jobs import JobOrchestrator
from .logging import configure_logging
from .models import Mode, Position, Span
from .requests import parse_request_args
from .templates import TemplateStore
from .templates.defaults import (
    clear_default_template,
    set_default_template,
    show_default_templates,
)

_MODE_CHOICES = [mode.value for mode in Mode]


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_job_arguments(parser: argparse.ArgumentParser, *, selection_required: bool) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "--select",
        nargs=2,
        type=Position.parse,
        metavar=("START", "END"),
        required=selection_required,
        help="Selected range as zero-based LINE:COLUMN positions.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the edited document instead of writing it back.",
    )
    parser.add_argument("file", help="Text file to edit.")
    parser.add_argument(
        "request",
        nargs=argparse.REMAINDER,
        help="Request text; may contain -s/--system PROMPT or -t/--template NAME.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llmedit",
        description="Generate or rewrite text in a file with an external LLM command.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yml (defaults to $LLMEDIT_CONFIG or ~/.config/llmedit).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write detailed diagnostics to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Insert generated text at the cursor or after the selection.",
    )
    generate_parser.add_argument(
        "--cursor",
        type=Position.parse,
        default=Position(0, 0),
        help="Cursor as zero-based LINE:COLUMN (defaults to 0:0).",
    )
    _add_job_arguments(generate_parser, selection_required=False)

    modify_parser = subparsers.add_parser(
        "modify",
        help="Replace the selected text with the LLM's rewrite.",
    )
    _add_job_arguments(modify_parser, selection_required=True)

    template_parser = subparsers.add_parser(
        "template",
        help="Show a template's file path and system prompt, or list templates.",
    )
    _add_verbose_option(template_parser, suppress_default=True)
    template_parser.add_argument("name", nargs="?", help="Template name (without .yaml).")

    default_parser = subparsers.add_parser(
        "template-default",
        help="Show, set or clear the default template per mode.",
    )
    _add_verbose_option(default_parser, suppress_default=True)
    default_group = default_parser.add_mutually_exclusive_group()
    default_group.add_argument(
        "--show",
        action="store_true",
        help="Show the configured defaults (the default action).",
    )
    default_group.add_argument(
        "--clear",
        choices=_MODE_CHOICES,
        help="Clear the default template for a mode.",
    )
    default_parser.add_argument("name", nargs="?", help="Template to use as default.")
    default_parser.add_argument("mode", nargs="?", choices=_MODE_CHOICES)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service for editor integrations.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8765)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for llmedit commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command in _MODE_CHOICES:
        _run_job(parser, args, config)
    elif args.command == "template":
        _run_template(parser, args, config)
    elif args.command == "template-default":
        _run_template_default(parser, args, config)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_job(parser: argparse.ArgumentParser, args: argparse.Namespace, config: EditorConfig) -> None:
    mode = Mode(args.command)
    path = Path(args.file)
    selection = Span(args.select[0], args.select[1]) if args.select else None
    cursor = getattr(args, "cursor", None)
    if cursor is None and selection is not None:
        cursor = selection.end
    try:
        document = TextDocument.from_path(path, cursor=cursor, selection=selection)
    except OSError as exc:
        parser.exit(1, f"Could not read {path}: {exc}\n")

    request = parse_request_args(args.request, mode)
    orchestrator = JobOrchestrator(config, notify=_notify)
    try:
        outcome = asyncio.run(orchestrator.run(request, document))
    except LLMEditError as exc:
        parser.exit(1, f"ERROR: {exc}\n")

    if not outcome.succeeded:
        parser.exit(1, f"{outcome.message}\nRun with --verbose for more details.\n")

    if args.dry_run:
        print(document.text)
        return
    try:
        document.write(path)
    except OSError as exc:
        parser.exit(1, f"Could not write {path}: {exc}\n")
    print(f"{outcome.message} ({_relativize(path)})")


def _run_template(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: EditorConfig
) -> None:
    store = TemplateStore.from_config(config)
    try:
        if not args.name:
            names = store.available()
            print("\n".join(names) if names else "No templates found.")
            return
        path = store.path_for(args.name)
        descriptor = store.load(args.name)
    except LLMEditError as exc:
        parser.exit(1, f"ERROR: {exc}\n")

    print(path)
    if not descriptor.readable:
        print("(template file does not exist yet)")
    elif descriptor.system_prompt:
        print(descriptor.system_prompt)
    else:
        print("(no system prompt)")


def _run_template_default(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: EditorConfig
) -> None:
    if args.clear:
        if args.name or args.mode:
            parser.exit(1, "Usage: llmedit template-default --clear <generate|modify>\n")
        try:
            print(clear_default_template(config, Mode(args.clear)))
        except ConfigError as exc:
            parser.exit(1, f"ERROR: {exc}\n")
        return

    if args.show or args.name is None:
        print(show_default_templates(config))
        return

    if args.mode is None:
        parser.exit(1, "Usage: llmedit template-default <template_name> <generate|modify>\n")

    store = TemplateStore.from_config(config)
    try:
        print(set_default_template(config, store, args.name, Mode(args.mode)))
    except (LLMEditError, ConfigError) as exc:
        parser.exit(1, f"ERROR: {exc} Cannot set as default.\n")


def _notify(message: str) -> None:
    print(message, file=sys.stderr)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
