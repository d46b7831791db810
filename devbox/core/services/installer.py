"""
Package installer — make sure a package is present, installing if not.

Presence is checked against local package databases first; only a
missing package reaches the Command Executor. A failed primary install
is retried once through Homebrew when brew exists on the host.

Failures are values (``InstallOutcome.FAILED``), never exceptions; the
caller decides whether a failure should stop the run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from devbox.adapters.base import CommandNotFoundError, Executor, ExecutorError
from devbox.adapters.packages.managers import BREW, PackageManager, primary_manager
from devbox.adapters.packages.probe import PackageProbe
from devbox.core.models.execution import ExecutionResult
from devbox.core.models.package import InstallOutcome, PackageSpec
from devbox.core.models.platform import PlatformInfo
from devbox.core.services.credentials import KeepAliveHandle, privileged

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Idempotent, cross-distribution package installation.

    ``last_failure`` holds the last failed install command of a package
    that ``ensure_all`` could not install, so callers can report its
    exit code.
    """

    def __init__(
        self,
        executor: Executor,
        probe: PackageProbe | None = None,
        credentials: KeepAliveHandle | None = None,
    ):
        self._executor = executor
        self._probe = probe or PackageProbe()
        self._credentials = credentials
        self.last_failure: ExecutionResult | None = None

    def ensure_installed(self, spec: PackageSpec, platform: PlatformInfo) -> InstallOutcome:
        if self._probe.is_installed(spec, platform):
            logger.info("%s already present", spec.name)
            return InstallOutcome.ALREADY_PRESENT

        failure: ExecutionResult | None = None
        primary = primary_manager(platform.family)
        if primary is not None:
            result = self._attempt(primary, spec.name_for(platform.family))
            if result is not None:
                if result.succeeded:
                    return InstallOutcome.INSTALLED
                failure = result
        else:
            logger.warning("No primary package manager for %s", platform.family.value)

        if primary is not BREW and self._executor.available(BREW.binary):
            logger.info("Retrying %s via brew", spec.name)
            result = self._attempt(BREW, spec.name)
            if result is not None:
                if result.succeeded:
                    return InstallOutcome.INSTALLED
                failure = result

        if failure is not None:
            self.last_failure = failure
        return InstallOutcome.FAILED

    def ensure_all(self, specs: Iterable[PackageSpec], platform: PlatformInfo) -> list[str]:
        """Install each spec in order; return the names that failed."""
        self.last_failure = None
        failed: list[str] = []
        for spec in specs:
            if self.ensure_installed(spec, platform) is InstallOutcome.FAILED:
                failed.append(spec.name)
        return failed

    def _attempt(self, manager: PackageManager, package: str) -> ExecutionResult | None:
        """Run one install; None when the manager could not be run at all."""
        argv = manager.install_argv(package)
        interactive = False
        if manager.needs_sudo:
            argv, interactive = privileged(argv, self._credentials)

        try:
            result = self._executor.execute(argv, interactive=interactive)
        except CommandNotFoundError as e:
            logger.warning("%s: tool not found (%s)", manager.name, e.command)
            return None
        except ExecutorError as e:
            logger.warning("%s: cannot run installer: %s", manager.name, e)
            return None

        if result.succeeded:
            logger.info("Installed %s via %s", package, manager.name)
        else:
            logger.info("%s install of %s failed (exit %d)", manager.name, package, result.exit_code)
        return result
