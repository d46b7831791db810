"""
Platform model — the OS facts every other component branches on.

A PlatformInfo is computed once per run by the detector
(``devbox.core.detection.platform.detect``) and never mutated.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Family(str, Enum):
    """Coarse OS/distribution classification used to pick a package manager."""

    DARWIN = "darwin"
    DEBIAN = "debian"
    UBUNTU = "ubuntu"
    POPOS = "popos"
    FEDORA = "fedora"
    OTHER_LINUX = "other_linux"
    UNKNOWN = "unknown"


class Architecture(str, Enum):
    AMD64 = "amd64"
    ARM64 = "arm64"


_DEBIAN_LIKE = frozenset({Family.DEBIAN, Family.UBUNTU, Family.POPOS})
_LINUX = _DEBIAN_LIKE | {Family.FEDORA, Family.OTHER_LINUX}


class PlatformInfo(BaseModel):
    """Immutable snapshot of the host platform.

    ``version_major`` / ``version_minor`` are 0 when the release
    metadata has no parseable version. Callers must read 0 as
    "unknown", never as "version 0".
    """

    model_config = ConfigDict(frozen=True)

    family: Family = Family.UNKNOWN
    codename: str = ""
    version_major: int = 0
    version_minor: int = 0
    architecture: Architecture = Architecture.AMD64

    @property
    def is_darwin(self) -> bool:
        return self.family is Family.DARWIN

    @property
    def is_linux(self) -> bool:
        return self.family in _LINUX

    @property
    def is_debian_like(self) -> bool:
        """Debian, Ubuntu or Pop!_OS — anything driven by apt."""
        return self.family in _DEBIAN_LIKE

    @property
    def is_ubuntu_compatible(self) -> bool:
        """Ubuntu or a distribution built on it (Pop!_OS)."""
        return self.family in (Family.UBUNTU, Family.POPOS)

    @property
    def version_known(self) -> bool:
        return self.version_major > 0

    def version_at_least(self, major: int, minor: int = 0) -> bool:
        """Compare against the release version; always False when unknown."""
        if not self.version_known:
            return False
        return (self.version_major, self.version_minor) >= (major, minor)

    def describe(self) -> str:
        """Short human-readable label, e.g. ``ubuntu 24.04 (noble, amd64)``."""
        version = (
            f" {self.version_major}.{self.version_minor}" if self.version_known else ""
        )
        codename = f"{self.codename}, " if self.codename else ""
        return f"{self.family.value}{version} ({codename}{self.architecture.value})"
