"""
Step runner — the central orchestration loop.

Takes the ordered list of provisioning steps, runs each one exactly
once in declared order, records a StepRecord per step and decides
whether a failure ends the run.

Flow:
    steps → begin line → run step → record → end marker → (next | stop)

There is no reordering, no dependency resolution and no retry here:
ordering encodes the real dependency chain, and retries live inside
individual steps (e.g. the installer's brew fallback).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import click

from devbox.adapters.base import CommandNotFoundError, ExecutorError
from devbox.core.models.step import StepOutcome, StepRecord, StepResult
from devbox.ui.cli.console import Console

logger = logging.getLogger(__name__)


@dataclass
class Step:
    """A named, zero-argument unit of provisioning work.

    ``fatal`` steps stop the run when they fail; everything downstream
    is recorded as skipped.
    """

    name: str
    action: Callable[[], StepResult]
    fatal: bool = False


@dataclass
class RunReport:
    """Ordered, append-only audit trail of one run."""

    records: list[StepRecord] = field(default_factory=list)
    fatal_step: str | None = None
    halted_by: str | None = None

    @property
    def total(self) -> int:
        return len(self.records)

    def _count(self, outcome: StepOutcome) -> int:
        return sum(1 for r in self.records if r.outcome is outcome)

    @property
    def succeeded(self) -> int:
        return self._count(StepOutcome.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(StepOutcome.FAILED)

    @property
    def warned(self) -> int:
        return self._count(StepOutcome.WARNED)

    @property
    def skipped(self) -> int:
        return self._count(StepOutcome.SKIPPED)

    @property
    def manual_steps(self) -> list[StepRecord]:
        """Non-fatal failures and warnings the user has to follow up on."""
        return [
            r for r in self.records
            if r.outcome is StepOutcome.WARNED
            or (r.outcome is StepOutcome.FAILED and r.name != self.fatal_step)
        ]

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal_step else 0

    @property
    def status(self) -> str:
        if self.fatal_step:
            return "failed"
        if self.manual_steps:
            return "partial"
        return "ok"

    def get(self, name: str) -> StepRecord | None:
        for record in self.records:
            if record.name == name:
                return record
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "exit_code": self.exit_code,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "warned": self.warned,
            "skipped": self.skipped,
            "fatal_step": self.fatal_step,
            "halted_by": self.halted_by,
            "records": [r.model_dump(mode="json") for r in self.records],
        }


class StepRunner:
    """Run steps strictly sequentially and report on them."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()

    def run(self, steps: list[Step]) -> RunReport:
        report = RunReport()

        for index, step in enumerate(steps):
            self._console.begin(step.name)
            result = self._run_one(step)
            self._console.end(result.outcome.value, _short(result.detail))

            report.records.append(
                StepRecord(
                    name=step.name,
                    outcome=result.outcome,
                    detail=result.detail,
                    fatal=step.fatal,
                ),
            )
            logger.info("%s → %s %s", step.name, result.outcome.value, result.detail)

            if result.outcome is StepOutcome.FAILED and step.fatal:
                report.fatal_step = step.name
                self._print_fatal(step, result)
                self._skip_rest(report, steps[index + 1:], f"after fatal failure of {step.name!r}")
                break

            if result.halt:
                report.halted_by = step.name
                self._skip_rest(report, steps[index + 1:], f"run stopped by {step.name!r}")
                break

        self.print_summary(report)
        return report

    def _run_one(self, step: Step) -> StepResult:
        try:
            return step.action()
        except CommandNotFoundError as e:
            logger.debug("Step %s: %s", step.name, e)
            return StepResult.failed(f"tool not found: {e.command}")
        except ExecutorError as e:
            return StepResult.failed(str(e))
        except OSError as e:
            return StepResult.failed(f"{type(e).__name__}: {e}")

    def _skip_rest(self, report: RunReport, remaining: list[Step], reason: str) -> None:
        for step in remaining:
            report.records.append(
                StepRecord(
                    name=step.name,
                    outcome=StepOutcome.SKIPPED,
                    detail=reason,
                    fatal=step.fatal,
                ),
            )

    # ── Output ───────────────────────────────────────────────────

    def _print_fatal(self, step: Step, result: StepResult) -> None:
        self._console.close_line()
        click.echo(err=True)
        click.secho(f"Fatal: step {step.name!r} failed", fg="red", bold=True, err=True)
        if result.detail:
            click.echo(f"   {result.detail}", err=True)
        if result.exit_code is not None:
            click.echo(f"   exit code: {result.exit_code}", err=True)
        if result.reported:
            click.echo("   (command output shown above)", err=True)
        elif result.output.strip():
            click.echo("   output:", err=True)
            for line in result.output.rstrip("\n").splitlines():
                click.echo(f"     │ {line}", err=True)

    def print_summary(self, report: RunReport) -> None:
        self._console.close_line()
        click.echo()
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}[report.status]
        click.secho(
            f"Result: {report.succeeded}/{report.total} steps succeeded"
            f" ({report.failed} failed, {report.warned} warned, {report.skipped} skipped)",
            fg=status_color,
            bold=True,
        )
        if report.halted_by:
            click.secho(f"Stopped by {report.halted_by!r}; re-run devbox to continue.", fg="yellow")

        manual = report.manual_steps
        if manual:
            click.echo()
            click.secho("Manual steps required:", fg="yellow", bold=True)
            for record in manual:
                click.echo(f"   • {record.name}: {record.detail or record.outcome.value}")


def _short(detail: str, limit: int = 80) -> str:
    line = detail.splitlines()[0] if detail else ""
    return line if len(line) <= limit else line[: limit - 1] + "…"
