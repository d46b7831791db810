"""
Run context — everything a provisioning step needs, passed explicitly.

One RunContext is built per run by ``use_cases.provision`` and handed
to every step function. There are no module-level globals: the
platform facts, the profile, the executor and the credential handle
all travel on this object.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from devbox.adapters.base import Executor
from devbox.core.models.execution import ExecutionResult
from devbox.core.models.platform import PlatformInfo
from devbox.core.models.profile import Profile
from devbox.core.services.credentials import KeepAliveHandle, privileged
from devbox.core.services.installer import PackageInstaller
from devbox.ui.cli.console import Console

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Explicit per-run state.

    Attributes:
        interactive: Whether a human can answer prompts. When False,
            steps that would block on confirmation proceed without it.
        dry_run: Skip local filesystem writes (commands are already
            routed to a mock executor in that mode).
    """

    platform: PlatformInfo
    profile: Profile
    executor: Executor
    installer: PackageInstaller
    console: Console = field(default_factory=Console)
    credentials: KeepAliveHandle | None = None
    home: Path = field(default_factory=Path.home)
    interactive: bool = True
    dry_run: bool = False

    # ── Command helpers ──────────────────────────────────────────

    def run(
        self,
        argv: Sequence[str],
        *,
        interactive: bool = False,
        silent: bool = False,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        return self.executor.execute(
            argv, interactive=interactive, silent=silent, cwd=cwd, env=env,
        )

    def sudo(self, argv: Sequence[str], *, silent: bool = False) -> ExecutionResult:
        """Run a privileged command, prompting only if nothing is cached."""
        full_argv, interactive = privileged(argv, self.credentials)
        return self.executor.execute(full_argv, interactive=interactive, silent=silent)

    def shell(
        self,
        script: str,
        *,
        uses_sudo: bool = False,
        interactive: bool = False,
        silent: bool = False,
        cwd: str | None = None,
    ) -> ExecutionResult:
        """Run a ``bash -c`` pipeline (installer scripts piped from curl).

        ``uses_sudo`` marks scripts that call sudo internally; they get the
        terminal when no credential is cached so sudo can prompt.
        """
        if uses_sudo and not interactive:
            interactive = not (self.credentials and self.credentials.has_cached_credentials())
        return self.executor.execute(
            ["bash", "-c", script], interactive=interactive, silent=silent, cwd=cwd,
        )

    def has(self, command: str) -> bool:
        """``command -v`` equivalent."""
        return self.executor.available(command)

    # ── Environment helpers ──────────────────────────────────────

    def expand(self, path: str) -> Path:
        """Expand ``~`` against this run's home directory."""
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return self.home / path[2:]
        return Path(os.path.expandvars(path))

    def extend_path(self, directory: Path) -> None:
        """Prepend ``directory`` to PATH for the rest of the run."""
        current = os.environ.get("PATH", "")
        entries = current.split(os.pathsep) if current else []
        if str(directory) in entries:
            return
        os.environ["PATH"] = os.pathsep.join([str(directory), *entries])
        logger.debug("PATH += %s", directory)

    def set_env(self, name: str, value: str) -> None:
        os.environ[name] = value
        logger.debug("%s=%s", name, value)

    @property
    def user(self) -> str:
        return os.environ.get("USER") or os.environ.get("LOGNAME") or ""
