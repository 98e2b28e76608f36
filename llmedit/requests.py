"""Parsing of free-form request arguments typed by the user."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import JobRequest, Mode

_SYSTEM_FLAGS = ("-s", "--system")
_TEMPLATE_FLAGS = ("-t", "--template")


def parse_request_args(tokens: Iterable[str], mode: Mode) -> JobRequest:
    """Split request words from ``-s/--system`` and ``-t/--template`` options.

    Flags may appear anywhere; a flag with no following value is kept as part
    of the request text. Later flags override earlier ones.
    """
    args = [str(token) for token in tokens]
    words: List[str] = []
    system_override: Optional[str] = None
    template_name: Optional[str] = None
    index = 0
    while index < len(args):
        token = args[index]
        has_value = index + 1 < len(args)
        if token in _SYSTEM_FLAGS and has_value:
            system_override = args[index + 1]
            index += 2
        elif token in _TEMPLATE_FLAGS and has_value:
            template_name = args[index + 1]
            index += 2
        else:
            words.append(token)
            index += 1
    return JobRequest(
        mode=mode,
        user_request=" ".join(words),
        system_override=system_override,
        template_name=template_name,
    )


__all__ = ["parse_request_args"]
