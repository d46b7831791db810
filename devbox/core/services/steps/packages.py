"""
Package steps — native package lists, source repos, locale, snaps.

Each function takes the RunContext and returns a StepResult. They all
go through ``ctx.installer`` so the "already installed?" check and the
brew fallback apply uniformly.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbox.core.context import RunContext
from devbox.core.models.package import PackageSpec
from devbox.core.models.platform import Family
from devbox.core.models.step import StepResult

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

# Apple Silicon, then Intel
HOMEBREW_PREFIXES = (Path("/opt/homebrew"), Path("/usr/local"))

_APT_SOURCES = "/etc/apt/sources.list"
_UBUNTU_SOURCES = "/etc/apt/sources.list.d/ubuntu.sources"


def _install_list(ctx: RunContext, specs: list[PackageSpec], what: str) -> StepResult:
    if not specs:
        return StepResult.skipped(f"no {what} configured")
    failed = ctx.installer.ensure_all(specs, ctx.platform)
    if failed:
        return StepResult.failed(
            f"could not install: {', '.join(failed)}", ctx.installer.last_failure,
        )
    return StepResult.ok(f"{len(specs)} {what} present")


def homebrew_bin() -> Path | None:
    """The bin directory of an installed Homebrew, on PATH or not."""
    for prefix in HOMEBREW_PREFIXES:
        if (prefix / "bin" / "brew").exists():
            return prefix / "bin"
    return None


def bootstrap_homebrew(ctx: RunContext) -> StepResult:
    """Install Homebrew on a fresh Mac, then the bootstrap formulae.

    The installer does not touch the running shell's PATH, so brew's bin
    directory is added here before the formulae are installed.
    """
    if not ctx.platform.is_darwin:
        return StepResult.skipped("not macOS")
    if ctx.has("brew"):
        return StepResult.skipped("brew already installed")
    existing = homebrew_bin()
    if existing is not None:
        ctx.extend_path(existing)
        return StepResult.skipped(f"brew already installed in {existing}")

    result = ctx.executor.execute(
        ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'],
        interactive=True,
    )
    if not result.succeeded:
        return StepResult.failed("Homebrew installation failed", result)

    installed = homebrew_bin()
    if installed is not None:
        ctx.extend_path(installed)
    elif not ctx.dry_run:
        logger.warning(
            "Homebrew installed but brew not found under %s",
            ", ".join(str(p) for p in HOMEBREW_PREFIXES),
        )
    return _install_list(ctx, ctx.profile.homebrew_bootstrap, "bootstrap formulae")


def install_required_commands(ctx: RunContext) -> StepResult:
    return _install_list(ctx, ctx.profile.required_commands, "required commands")


def install_required_packages(ctx: RunContext) -> StepResult:
    """Required packages; Go comes from snap on releases with an old golang."""
    specs = list(ctx.profile.required_packages)
    go_snap = ctx.profile.go_snap
    if ctx.platform.is_linux and ctx.platform.codename in go_snap.codenames:
        golang = [s for s in specs if s.name == "golang"]
        if golang:
            specs = [s for s in specs if s.name != "golang"]
            go_result = _snap_go(ctx, golang[0])
            if go_result is not None:
                return go_result
    return _install_list(ctx, specs, "required packages")


def _snap_go(ctx: RunContext, spec: PackageSpec) -> StepResult | None:
    """Install Go via snap. Returns a failure result, or None when fine."""
    if spec.command and ctx.has(spec.command):
        return None
    if not ctx.has("snap"):
        install = ctx.sudo(["apt-get", "install", "-y", "snapd"])
        if not install.succeeded:
            return StepResult.failed("snapd is required for Go", install)
    result = ctx.sudo(
        ["snap", "install", "--classic", f"--channel={ctx.profile.go_snap.channel}", "go"],
    )
    if not result.succeeded:
        return StepResult.failed("snap install go failed", result)
    return None


def install_linux_commands(ctx: RunContext) -> StepResult:
    if not ctx.platform.is_linux:
        return StepResult.skipped("not Linux")
    return _install_list(ctx, ctx.profile.linux_commands, "Linux commands")


def enable_source_repos(ctx: RunContext) -> StepResult:
    """Enable deb-src entries and install Python's build dependencies."""
    if not ctx.platform.is_debian_like:
        return StepResult.skipped("not apt-based")

    # Either file may be absent depending on release; that is fine.
    ctx.sudo(["sed", "-i", "-e", "s/^# *deb-src/deb-src/g", _APT_SOURCES], silent=True)
    ctx.sudo(["sed", "-i", "s/^Types: deb$/Types: deb deb-src/", _UBUNTU_SOURCES], silent=True)

    update = ctx.sudo(["apt-get", "update"])
    if not update.succeeded:
        return StepResult.failed("apt-get update failed", update)

    build_dep = ctx.sudo(["apt-get", "-y", "build-dep", "python3"])
    return StepResult.from_execution(build_dep, "python3 build deps installed")


def install_dev_packages(ctx: RunContext) -> StepResult:
    if ctx.platform.is_debian_like:
        return _install_list(ctx, ctx.profile.debian_like_packages, "development packages")
    if ctx.platform.family is Family.FEDORA:
        return _install_list(ctx, ctx.profile.fedora_packages, "development packages")
    return StepResult.skipped("no development package list for this platform")


def generate_locale(ctx: RunContext) -> StepResult:
    if not ctx.platform.is_debian_like:
        return StepResult.skipped("not apt-based")
    result = ctx.sudo(["locale-gen", ctx.profile.locale])
    if not result.succeeded:
        return StepResult.warned(f"locale-gen {ctx.profile.locale} failed")
    return StepResult.ok()


def install_debian_extras(ctx: RunContext) -> StepResult:
    """Debian-only packages (snapd) followed by the configured snaps."""
    if ctx.platform.family is not Family.DEBIAN:
        return StepResult.skipped("not Debian")

    failed = ctx.installer.ensure_all(ctx.profile.debian_packages, ctx.platform)
    if failed:
        return StepResult.failed(
            f"could not install: {', '.join(failed)}", ctx.installer.last_failure,
        )

    for snap in ctx.profile.snap_packages:
        result = ctx.sudo(["snap", "install", snap, "--classic"])
        if not result.succeeded:
            return StepResult.failed(f"snap install {snap} failed", result)
    return StepResult.ok()
