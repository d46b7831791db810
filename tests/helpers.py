"""
Test helpers shared across modules.
"""

from __future__ import annotations

from devbox.core.models.package import PackageSpec
from devbox.core.models.platform import Architecture, Family, PlatformInfo


class StubProbe:
    """Package probe answering from a fixed set of installed names."""

    def __init__(self, installed: set[str] | None = None):
        self.installed = set(installed or ())
        self.queries: list[str] = []

    def is_installed(self, spec: PackageSpec, platform: PlatformInfo) -> bool:
        self.queries.append(spec.name)
        return spec.name in self.installed


def make_platform(
    family: Family,
    version: str = "",
    codename: str = "",
    arch: Architecture = Architecture.AMD64,
) -> PlatformInfo:
    major, _, minor = version.partition(".")
    return PlatformInfo(
        family=family,
        codename=codename,
        version_major=int(major) if major else 0,
        version_minor=int(minor) if minor else 0,
        architecture=arch,
    )
