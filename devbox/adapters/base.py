"""
Executor base — the contract between provisioning code and subprocesses.

Steps and the package installer never call ``subprocess`` to change the
system; they go through an Executor, which returns an ExecutionResult.
A non-zero exit is never an exception. Only a command that cannot be
started at all raises (``CommandNotFoundError``).
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from devbox.core.errors import DevboxError
from devbox.core.models.execution import ExecutionResult


class ExecutorError(DevboxError):
    """A command could not be started."""


class CommandNotFoundError(ExecutorError):
    """The executable is missing from PATH or is not runnable."""

    def __init__(self, command: str, reason: str = ""):
        self.command = command
        message = f"Command not found: {command}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class Executor(ABC):
    """Abstract base class for command executors.

    To create a new executor:
        1. Subclass Executor
        2. Implement execute
        3. Hand it to RunContext (and PackageInstaller)
    """

    verbose: bool = False

    @abstractmethod
    def execute(
        self,
        argv: Sequence[str],
        *,
        interactive: bool = False,
        silent: bool = False,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Run ``argv`` to completion and return its result.

        Args:
            argv: Command and arguments (no shell unless argv invokes one).
            interactive: Inherit the terminal so the command can prompt.
            silent: Do not print diagnostics on failure (unless verbose).
            cwd: Working directory override.
            env: Extra environment variables layered over os.environ.

        Raises:
            CommandNotFoundError: If the command cannot be spawned.
        """

    def which(self, command: str) -> str | None:
        """Absolute path of ``command`` on PATH, or None."""
        return shutil.which(command)

    def available(self, command: str) -> bool:
        """Whether ``command`` resolves on PATH."""
        return self.which(command) is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} verbose={self.verbose!r}>"
