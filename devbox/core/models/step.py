"""
Step models — one named unit of provisioning work and its audit trail.

Steps return StepResults; the runner turns each one into a StepRecord.
The ordered list of StepRecords is the result of a run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from devbox.core.models.execution import ExecutionResult


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    WARNED = "warned"
    SKIPPED = "skipped"


class StepResult(BaseModel):
    """What a step function hands back to the runner.

    ``halt`` asks the runner to stop cleanly after this step (the
    remaining steps are skipped but the run still exits 0).
    """

    outcome: StepOutcome = StepOutcome.SUCCEEDED
    detail: str = ""
    exit_code: int | None = None
    output: str = ""
    reported: bool = False
    halt: bool = False

    @classmethod
    def ok(cls, detail: str = "", *, halt: bool = False) -> StepResult:
        return cls(outcome=StepOutcome.SUCCEEDED, detail=detail, halt=halt)

    @classmethod
    def warned(cls, detail: str) -> StepResult:
        return cls(outcome=StepOutcome.WARNED, detail=detail)

    @classmethod
    def skipped(cls, reason: str = "") -> StepResult:
        return cls(outcome=StepOutcome.SKIPPED, detail=reason)

    @classmethod
    def failed(
        cls,
        detail: str,
        result: ExecutionResult | None = None,
    ) -> StepResult:
        """Failure, optionally carrying the command that caused it."""
        if result is None:
            return cls(outcome=StepOutcome.FAILED, detail=detail)
        return cls(
            outcome=StepOutcome.FAILED,
            detail=detail,
            exit_code=result.exit_code,
            output=result.combined_output,
            reported=result.reported,
        )

    @classmethod
    def from_execution(
        cls,
        result: ExecutionResult,
        success_detail: str = "",
        failure_detail: str = "",
    ) -> StepResult:
        if result.succeeded:
            return cls.ok(success_detail)
        return cls.failed(
            failure_detail or f"{result.command_line} exited with {result.exit_code}",
            result,
        )


class StepRecord(BaseModel):
    """One entry in the run's append-only audit trail."""

    name: str
    outcome: StepOutcome
    detail: str = ""
    fatal: bool = False
