"""
Package managers — which one a platform uses and how to drive it.

Only the native managers the installer falls back between live here
(apt, dnf, brew). snap/cargo/npm/go are driven by the steps that need
them.
"""

from __future__ import annotations

from dataclasses import dataclass

from devbox.core.models.platform import Family


@dataclass(frozen=True)
class PackageManager:
    """A native package manager.

    ``install`` is the non-interactive (assume-yes) install form;
    the package name is appended.
    """

    name: str
    binary: str
    install: tuple[str, ...]
    needs_sudo: bool = False

    def install_argv(self, package: str) -> list[str]:
        return [*self.install, package]


APT = PackageManager("apt", "apt-get", ("apt-get", "install", "-y"), needs_sudo=True)
DNF = PackageManager("dnf", "dnf", ("dnf", "install", "-y"), needs_sudo=True)
BREW = PackageManager("brew", "brew", ("brew", "install"))

_PRIMARY: dict[Family, PackageManager] = {
    Family.DEBIAN: APT,
    Family.UBUNTU: APT,
    Family.POPOS: APT,
    Family.FEDORA: DNF,
    Family.DARWIN: BREW,
}


def primary_manager(family: Family) -> PackageManager | None:
    """The platform-default manager, or None for unsupported families."""
    return _PRIMARY.get(family)
