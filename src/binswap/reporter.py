"""Progress reporting for update attempts.

The orchestrator narrates its progress through a ``Reporter`` so it can run
headless. ``ConsoleReporter`` prints a short human narrative to stderr and
``NullReporter`` stays silent.
"""

from __future__ import annotations

import sys
from typing import Any, Protocol, TextIO

_GREEN = "\033[32m"
_MAGENTA = "\033[35m"
_RED = "\033[31m"
_RESET = "\033[0m"

_STAGE_TEXT: dict[str, str] = {
    "updating": "Updating {name}...",
    "resolving_version": "Getting latest version number...",
    "version": "Using version {version}",
    "searching": "Looking for binary for target {target}...",
    "downloading": "Found a binary! Downloading...",
    "checking": "Checking downloaded binary with `{check_cmd}`...",
    "about_to_write": "\n  About to write binary to `{target_path}`",
    "declined": "Update cancelled.",
    "updated": "\n{name} has been updated!",
    "updated_dry_run": "\n{name} has been updated! (not actually since it was a dry-run)",
}

_STAGE_COLOR: dict[str, str] = {
    "updating": _GREEN,
    "version": _GREEN,
    "about_to_write": _GREEN,
    "updated": _GREEN,
    "updated_dry_run": _GREEN,
}


class Reporter(Protocol):
    """Receives progress notifications from the orchestrator."""

    def stage(self, event: str, **fields: Any) -> None: ...

    def warning(self, text: str) -> None: ...


class NullReporter:
    def stage(self, event: str, **fields: Any) -> None:
        pass

    def warning(self, text: str) -> None:
        pass


class ConsoleReporter:
    """Prints a human readable narrative, colored when writing to a terminal."""

    def __init__(self, stream: TextIO | None = None, color: bool | None = None) -> None:
        self._stream = stream if stream is not None else sys.stderr
        if color is None:
            isatty = getattr(self._stream, "isatty", None)
            color = bool(isatty and isatty())
        self._color = color

    def _write(self, text: str, color: str = "") -> None:
        if self._color and color:
            text = f"{color}{text}{_RESET}"
        self._stream.write(text + "\n")
        self._stream.flush()

    def stage(self, event: str, **fields: Any) -> None:
        template = _STAGE_TEXT.get(event)
        if template is None:
            return
        self._write(template.format(**fields), _STAGE_COLOR.get(event, _MAGENTA))

    def warning(self, text: str) -> None:
        self._write(text, _RED)
