"""
ExecutionResult — the outcome of one subprocess invocation.

This is the I/O contract between the Command Executor and everything
that calls it. A non-zero exit is a value, never an exception.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel, Field


class ExecutionResult(BaseModel):
    """Result of running one external command.

    ``combined_output`` holds stdout and stderr interleaved in emission
    order. ``reported`` is True once the executor has already shown the
    captured output to the user, so outer callers never print it twice.
    """

    argv: list[str] = Field(default_factory=list)
    exit_code: int = 0
    combined_output: str = ""
    duration_ms: int = 0
    reported: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)

    @classmethod
    def success(cls, argv: list[str], output: str = "", **kwargs) -> ExecutionResult:
        return cls(argv=list(argv), exit_code=0, combined_output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        argv: list[str],
        exit_code: int = 1,
        output: str = "",
        **kwargs,
    ) -> ExecutionResult:
        return cls(argv=list(argv), exit_code=exit_code, combined_output=output, **kwargs)
