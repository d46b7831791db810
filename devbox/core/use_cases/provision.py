"""
Provision use case — one complete run, wired for the CLI.

    load profile → detect platform → acquire credentials → build steps
    → run them in order → stop the keep-alive → report

The keep-alive is stopped in ``finally`` on every path, including
KeyboardInterrupt, so the refresher never outlives the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from devbox.adapters.base import Executor
from devbox.adapters.mock import MockExecutor
from devbox.adapters.shell.command import CommandExecutor
from devbox.core.config.loader import load_profile
from devbox.core.context import RunContext
from devbox.core.detection.platform import detect
from devbox.core.engine.runner import RunReport, StepRunner
from devbox.core.models.platform import PlatformInfo
from devbox.core.models.profile import Profile
from devbox.core.services.credentials import (
    KeepAliveHandle,
    SudoRunner,
    run_sudo,
    start_keep_alive,
)
from devbox.core.services.installer import PackageInstaller
from devbox.core.services.steps.catalog import build_steps
from devbox.ui.cli.console import Console

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Outcome of a provisioning run."""

    platform: PlatformInfo | None = None
    profile: Profile | None = None
    report: RunReport | None = None

    @property
    def exit_code(self) -> int:
        return self.report.exit_code if self.report else 1

    def to_dict(self) -> dict:
        result: dict = {
            "platform": self.platform.describe() if self.platform else None,
            "profile": self.profile.name if self.profile else None,
        }
        if self.report:
            result.update(self.report.to_dict())
        return result


def run_provision(
    config_path: Path | None = None,
    *,
    verbose: bool = False,
    dry_run: bool = False,
    interactive: bool = True,
    console: Console | None = None,
    executor: Executor | None = None,
    platform: PlatformInfo | None = None,
    home: Path | None = None,
    sudo_runner: SudoRunner = run_sudo,
) -> ProvisionResult:
    """Provision this machine.

    Raises:
        ConfigError: Invalid or missing profile (before anything runs).
        CredentialError: sudo authentication failed (before any step).
    """
    console = console or Console()
    profile = load_profile(config_path)
    platform = platform or detect()
    logger.info("Provisioning %s with profile '%s'", platform.describe(), profile.name)
    console.info(f"Platform: {platform.describe()}")

    if executor is None:
        if dry_run:
            executor = MockExecutor(console=console, verbose=verbose)
        else:
            executor = CommandExecutor(console=console, verbose=verbose)

    if dry_run:
        credentials = KeepAliveHandle(supported=False, runner=sudo_runner)
    else:
        credentials = start_keep_alive(runner=sudo_runner)

    try:
        ctx = RunContext(
            platform=platform,
            profile=profile,
            executor=executor,
            installer=PackageInstaller(executor, credentials=credentials),
            console=console,
            credentials=credentials,
            home=home or Path.home(),
            interactive=interactive and not dry_run,
            dry_run=dry_run,
        )
        report = StepRunner(console).run(build_steps(ctx))
    finally:
        credentials.stop()

    return ProvisionResult(platform=platform, profile=profile, report=report)
