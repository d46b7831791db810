"""Package manager backends: install command forms and presence probes."""

from devbox.adapters.packages.managers import APT, BREW, DNF, PackageManager, primary_manager
from devbox.adapters.packages.probe import PackageProbe, is_pkg_installed

__all__ = [
    "APT",
    "BREW",
    "DNF",
    "PackageManager",
    "PackageProbe",
    "is_pkg_installed",
    "primary_manager",
]
