"""
Shell command executor — run external commands with captured output.

This is the SINGLE PLACE where provisioning commands are spawned.
Two modes:

    non-interactive   stdin detached, stdout+stderr merged into a temp
                      file, spinner redrawn every 100 ms while it runs
    interactive       terminal inherited (the command may prompt, e.g.
                      sudo), output streamed live and captured as well

On a failing command the captured output is printed to stderr exactly
once, here, and the result is marked ``reported``.
"""

from __future__ import annotations

import codecs
import logging
import os
import subprocess
import tempfile
import time
from collections.abc import Mapping, Sequence
from typing import Any

import click

from devbox.adapters.base import CommandNotFoundError, Executor, ExecutorError
from devbox.core.models.execution import ExecutionResult
from devbox.ui.cli.console import Console

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 0.1
"""Spinner redraw / liveness poll interval."""

_DELIMITER = "-" * 60


class CommandExecutor(Executor):
    """Execute commands and capture their combined output.

    Args:
        console: Where the spinner and live output go.
        verbose: Print failure diagnostics even for silent calls.
    """

    def __init__(self, console: Console | None = None, verbose: bool = False):
        self._console = console or Console()
        self.verbose = verbose

    def execute(
        self,
        argv: Sequence[str],
        *,
        interactive: bool = False,
        silent: bool = False,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        argv = [str(a) for a in argv]
        if not argv:
            raise ExecutorError("Empty command")

        logger.debug(
            "Executing: %s (interactive=%s, cwd=%s)",
            " ".join(argv), interactive, cwd,
        )
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        start = time.monotonic()
        if interactive:
            exit_code, output = self._run_interactive(argv, cwd, full_env)
        else:
            exit_code, output = self._run_captured(argv, cwd, full_env)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        result = ExecutionResult(
            argv=argv,
            exit_code=exit_code,
            combined_output=output,
            duration_ms=elapsed_ms,
        )
        logger.debug("Exit %d after %dms: %s", exit_code, elapsed_ms, result.command_line)

        if not result.succeeded and (not silent or self.verbose):
            self._report_failure(result)
            result.reported = True
        return result

    # ── Modes ────────────────────────────────────────────────────

    def _run_captured(
        self,
        argv: list[str],
        cwd: str | None,
        env: dict[str, str] | None,
    ) -> tuple[int, str]:
        with tempfile.TemporaryFile() as capture:
            proc = self._spawn(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=capture,
                stderr=subprocess.STDOUT,
                cwd=cwd,
                env=env,
            )
            spinner = self._console.spinner()
            try:
                while True:
                    try:
                        proc.wait(timeout=POLL_INTERVAL_S)
                        break
                    except subprocess.TimeoutExpired:
                        spinner.tick()
            finally:
                spinner.clear()
                _terminate(proc)

            capture.seek(0)
            output = capture.read().decode("utf-8", errors="replace")
        return proc.returncode, output

    def _run_interactive(
        self,
        argv: list[str],
        cwd: str | None,
        env: dict[str, str] | None,
    ) -> tuple[int, str]:
        self._console.close_line()
        proc = self._spawn(
            argv,
            stdin=None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=cwd,
            env=env,
        )
        assert proc.stdout is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        chunks: list[str] = []
        try:
            fd = proc.stdout.fileno()
            while True:
                data = os.read(fd, 4096)
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    chunks.append(text)
                    self._console.raw(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                chunks.append(tail)
                self._console.raw(tail)
            proc.wait()
        finally:
            proc.stdout.close()
            _terminate(proc)
        return proc.returncode, "".join(chunks)

    # ── Helpers ──────────────────────────────────────────────────

    def _spawn(self, argv: list[str], **kwargs: Any) -> subprocess.Popen:
        try:
            return subprocess.Popen(argv, **kwargs)
        except FileNotFoundError as e:
            raise CommandNotFoundError(argv[0]) from e
        except PermissionError as e:
            raise CommandNotFoundError(argv[0], "not executable") from e
        except OSError as e:
            raise ExecutorError(f"Cannot start {argv[0]}: {e}") from e

    def _report_failure(self, result: ExecutionResult) -> None:
        self._console.close_line()
        click.secho(
            f"Command failed (exit {result.exit_code}): {result.command_line}",
            fg="red",
            err=True,
        )
        click.echo(_DELIMITER, err=True)
        output = result.combined_output.rstrip("\n")
        if output:
            click.echo(output, err=True)
        click.echo(_DELIMITER, err=True)


def _terminate(proc: subprocess.Popen) -> None:
    """Best-effort cleanup when we are unwinding (e.g. Ctrl-C)."""
    if proc.poll() is None:
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
