"""
Console protocol — the user-facing progress lines of a run.

Every step prints ``[INFO] <name>... `` as it starts and gets exactly
one terminal marker appended once it concludes::

    [INFO] Required commands... [OK]
    [INFO] krew plugins... [FAILED]

Everything goes through click so colours are stripped automatically
when output is not a terminal.
"""

from __future__ import annotations

import itertools
import sys
from typing import TextIO

import click

SPINNER_GLYPHS = "|/-\\"

_MARKERS: dict[str, tuple[str, str]] = {
    "succeeded": ("[OK]", "green"),
    "failed": ("[FAILED]", "red"),
    "warned": ("[WARN]", "yellow"),
    "skipped": ("[SKIP]", "cyan"),
}


class Console:
    """Step progress lines, summaries and diagnostic blocks."""

    def __init__(self, stream: TextIO | None = None, quiet: bool = False):
        self._stream = stream
        self._quiet = quiet
        self._line_open = False

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    @property
    def is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    # ── Step lines ───────────────────────────────────────────────

    def begin(self, name: str) -> None:
        """Open a step line: ``[INFO] name... `` with no newline."""
        self.close_line()
        click.secho("[INFO] ", fg="blue", bold=True, nl=False, file=self._stream)
        click.echo(f"{name}... ", nl=False, file=self._stream)
        self._line_open = True

    def end(self, outcome: str, detail: str = "") -> None:
        """Append the terminal marker for the open step line."""
        marker, color = _MARKERS.get(outcome, ("[?]", "white"))
        click.secho(marker, fg=color, bold=True, nl=False, file=self._stream)
        if detail and outcome != "succeeded":
            click.echo(f" {detail}", nl=False, file=self._stream)
        click.echo(file=self._stream)
        self._line_open = False

    def close_line(self) -> None:
        """Terminate a dangling step line before unrelated output."""
        if self._line_open:
            click.echo(file=self._stream)
            self._line_open = False

    # ── Free-form output ─────────────────────────────────────────

    def info(self, message: str) -> None:
        if self._quiet:
            return
        self.close_line()
        click.echo(message, file=self._stream)

    def notice(self, message: str, color: str = "yellow") -> None:
        self.close_line()
        click.secho(message, fg=color, bold=True, file=self._stream)

    def raw(self, text: str) -> None:
        """Stream text through untouched (live output of interactive commands)."""
        self._line_open = False
        click.echo(text, nl=False, file=self._stream)

    def prompt(self, message: str, default: str = "") -> str:
        self.close_line()
        return click.prompt(message, default=default, show_default=False)

    # ── Spinner ──────────────────────────────────────────────────

    def spinner(self) -> Spinner:
        return Spinner(self.stream, enabled=self.is_tty)


class Spinner:
    """Rotating glyph drawn in place and erased with backspaces."""

    def __init__(self, stream: TextIO, enabled: bool = True):
        self._stream = stream
        self._enabled = enabled
        self._glyphs = itertools.cycle(SPINNER_GLYPHS)
        self._drawn = False

    def tick(self) -> None:
        if not self._enabled:
            return
        prefix = "\b" if self._drawn else ""
        self._stream.write(f"{prefix}{next(self._glyphs)}")
        self._stream.flush()
        self._drawn = True

    def clear(self) -> None:
        if self._enabled and self._drawn:
            self._stream.write("\b \b")
            self._stream.flush()
        self._drawn = False
