"""
Mock executor — test double and dry-run backend.

Never spawns anything. Records every call and answers with success
unless a response was configured for the command. Used by
``devbox --dry-run`` and throughout the test suite.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from devbox.adapters.base import CommandNotFoundError, Executor
from devbox.core.models.execution import ExecutionResult
from devbox.ui.cli.console import Console


@dataclass
class ExecutionCall:
    """One recorded execute() invocation."""

    argv: list[str]
    interactive: bool = False
    silent: bool = False
    cwd: str | None = None
    env: dict[str, str] | None = None

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)


class MockExecutor(Executor):
    """Universal mock executor.

    Responses are matched on the command line prefix, longest prefix
    first, so ``set_failure("sudo apt-get install -y vim")`` affects only
    that install while other apt-get calls still succeed.

    Args:
        available: Commands ``available()`` reports as present. ``None``
            means "ask the real PATH" (dry-run mode).
        console: When given, every call is echoed as ``[dry-run] ...``.
    """

    def __init__(
        self,
        available: Sequence[str] | None = None,
        console: Console | None = None,
        default_output: str = "[mock] executed",
        verbose: bool = False,
    ):
        self._available = set(available) if available is not None else None
        self._console = console
        self._default_output = default_output
        self._responses: dict[str, ExecutionResult] = {}
        self._missing: set[str] = set()
        self._call_log: list[ExecutionCall] = []
        self.verbose = verbose

    @property
    def call_log(self) -> list[ExecutionCall]:
        """All calls this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Recorded command lines, handy for assertions."""
        return [c.command_line for c in self._call_log]

    def set_response(self, prefix: str, result: ExecutionResult) -> None:
        """Answer commands starting with ``prefix`` with ``result``."""
        self._responses[prefix] = result

    def set_failure(self, prefix: str, exit_code: int = 1, output: str = "mock failure") -> None:
        """Make commands starting with ``prefix`` exit non-zero."""
        self._responses[prefix] = ExecutionResult.failure(
            shlex.split(prefix), exit_code=exit_code, output=output,
        )

    def set_missing(self, command: str) -> None:
        """Make spawning ``command`` raise CommandNotFoundError."""
        self._missing.add(command)
        if self._available is not None:
            self._available.discard(command)

    def add_available(self, command: str) -> None:
        if self._available is None:
            self._available = set()
        self._available.add(command)

    def which(self, command: str) -> str | None:
        if command in self._missing:
            return None
        if self._available is None:
            return shutil.which(command)
        return f"/usr/bin/{command}" if command in self._available else None

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
        call = ExecutionCall(
            argv=argv, interactive=interactive, silent=silent, cwd=cwd,
            env=dict(env) if env is not None else None,
        )
        self._call_log.append(call)

        if self._console is not None:
            self._console.info(f"[dry-run] {call.command_line}")

        if argv and argv[0] in self._missing:
            raise CommandNotFoundError(argv[0])

        line = call.command_line
        for prefix in sorted(self._responses, key=len, reverse=True):
            if line == prefix or line.startswith(prefix + " "):
                template = self._responses[prefix]
                return template.model_copy(update={"argv": argv})

        return ExecutionResult.success(argv, output=self._default_output)

    def reset(self) -> None:
        """Clear configured responses and the call log."""
        self._responses.clear()
        self._missing.clear()
        self._call_log.clear()
