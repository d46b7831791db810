"""
Package presence probes — "is this already installed?".

Read-only queries against local package databases. These run
``subprocess.run`` directly rather than through the Command Executor:
a probe is not a provisioning action, shows no spinner and never
prints diagnostics.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from devbox.adapters.packages.managers import BREW, primary_manager
from devbox.core.models.package import PackageSpec
from devbox.core.models.platform import PlatformInfo

logger = logging.getLogger(__name__)


def is_pkg_installed(pkg: str, pkg_manager: str) -> bool:
    """Check if a single system package is installed.

    Uses the appropriate checker for the given package manager:
      apt    → dpkg-query -W -f='${Status}' PKG
      dnf    → rpm -q PKG
      brew   → brew ls --versions PKG

    Returns:
        True if installed, False if not installed or the check failed.
    """
    try:
        if pkg_manager == "apt":
            r = subprocess.run(
                ["dpkg-query", "-W", "-f=${Status}", pkg],
                capture_output=True, text=True, timeout=10,
            )
            return "install ok installed" in r.stdout

        if pkg_manager == "dnf":
            r = subprocess.run(
                ["rpm", "-q", pkg],
                capture_output=True, timeout=10,
            )
            return r.returncode == 0

        if pkg_manager == "brew":
            r = subprocess.run(
                ["brew", "ls", "--versions", pkg],
                capture_output=True, timeout=30,  # brew is slow
            )
            return r.returncode == 0

    except FileNotFoundError:
        logger.debug("Package checker not found for pm=%s (checking %s)", pkg_manager, pkg)
    except subprocess.TimeoutExpired:
        logger.warning("Timeout checking package %s with pm=%s", pkg, pkg_manager)
    except OSError as exc:
        logger.warning("OS error checking package %s with pm=%s: %s", pkg, pkg_manager, exc)

    return False


class PackageProbe:
    """Answer "is this package already satisfied on this host?".

    A package counts as present when any of these hold:
      - its ``command`` resolves on PATH
      - the platform's primary package database lists it
      - brew is on the host and brew's database lists it
        (covers a manual ``brew install`` on Linux)
    """

    def command_available(self, command: str) -> bool:
        return shutil.which(command) is not None

    def package_installed(self, pkg: str, pkg_manager: str) -> bool:
        return is_pkg_installed(pkg, pkg_manager)

    def is_installed(self, spec: PackageSpec, platform: PlatformInfo) -> bool:
        if spec.command and self.command_available(spec.command):
            logger.debug("%s: command %s on PATH", spec.name, spec.command)
            return True

        primary = primary_manager(platform.family)
        if primary is not None and self.package_installed(
            spec.name_for(platform.family), primary.name,
        ):
            return True

        if primary is not BREW and self.command_available(BREW.binary):
            if self.package_installed(spec.name, BREW.name):
                logger.debug("%s: satisfied by brew", spec.name)
                return True

        return False
