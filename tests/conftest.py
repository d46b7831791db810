"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from devbox.adapters.mock import MockExecutor
from devbox.core.context import RunContext
from devbox.core.models.platform import Architecture, Family, PlatformInfo
from devbox.core.models.profile import Profile
from devbox.core.services.installer import PackageInstaller
from devbox.ui.cli.console import Console

from tests.helpers import StubProbe, make_platform


@pytest.fixture(autouse=True)
def _not_root(monkeypatch):
    """Privileged commands get a deterministic ``sudo`` prefix."""
    monkeypatch.setattr("devbox.core.services.credentials.is_root", lambda: False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def ubuntu() -> PlatformInfo:
    return make_platform(Family.UBUNTU, "24.04", "noble")


@pytest.fixture
def darwin() -> PlatformInfo:
    return make_platform(Family.DARWIN, "14.5", arch=Architecture.ARM64)


@pytest.fixture
def fedora() -> PlatformInfo:
    return make_platform(Family.FEDORA, "40")


@pytest.fixture
def console() -> Console:
    return Console(stream=io.StringIO())


@pytest.fixture
def make_ctx(tmp_path: Path, console: Console):
    """Build a RunContext over a MockExecutor and a stub probe."""

    def _make(
        platform: PlatformInfo,
        profile: Profile | None = None,
        available: list[str] | None = None,
        installed: set[str] | None = None,
        interactive: bool = False,
        dry_run: bool = False,
    ) -> RunContext:
        executor = MockExecutor(available=available or [])
        return RunContext(
            platform=platform,
            profile=profile or Profile(),
            executor=executor,
            installer=PackageInstaller(executor, probe=StubProbe(installed)),
            console=console,
            home=tmp_path,
            interactive=interactive,
            dry_run=dry_run,
        )

    return _make
