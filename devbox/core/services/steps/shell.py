"""
Shell and desktop steps — login shell, editor preferences, tmux.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from devbox.core.context import RunContext
from devbox.core.models.step import StepResult

logger = logging.getLogger(__name__)


def set_default_shell(ctx: RunContext) -> StepResult:
    """Make the profile shell the login shell.

    A successful change stops the run: the new shell only takes effect
    in a fresh login session, and the remaining steps expect it.
    """
    shell = ctx.profile.shell
    current = os.environ.get("SHELL", "")
    if Path(current).name == shell:
        return StepResult.skipped(f"{shell} is already the default shell")

    path = ctx.executor.which(shell)
    if path is None:
        return StepResult.failed(f"{shell} is not installed")

    user = ctx.user
    if ctx.platform.is_darwin:
        result = ctx.sudo(["dscl", ".", "-create", f"/Users/{user}", "UserShell", path])
    else:
        result = ctx.run(["sudo", "-u", user, "chsh", "-s", path], interactive=True)
    if not result.succeeded:
        return StepResult.failed(f"could not change the login shell to {path}", result)

    return StepResult.ok(
        f"default shell is now {path}; log out and back in, then run devbox again",
        halt=True,
    )


def configure_vscode(ctx: RunContext) -> StepResult:
    """Key repeat instead of the accent popup in VSCode and its forks."""
    if not ctx.platform.is_darwin:
        return StepResult.skipped("not macOS")
    failed = [
        bundle for bundle in ctx.profile.vscode_bundles
        if not ctx.run(
            ["defaults", "write", bundle, "ApplePressAndHoldEnabled", "-bool", "false"],
        ).succeeded
    ]
    # Absent unless someone set it globally.
    ctx.run(["defaults", "delete", "-g", "ApplePressAndHoldEnabled"], silent=True)
    if failed:
        return StepResult.warned(f"defaults write failed for {', '.join(failed)}")
    return StepResult.ok()


def touch_tmux_local(ctx: RunContext) -> StepResult:
    conf = ctx.home / ".tmux.conf.local"
    if conf.exists():
        return StepResult.skipped(f"{conf} exists")
    if ctx.dry_run:
        return StepResult.ok(f"would create {conf}")
    conf.touch()
    return StepResult.ok()
