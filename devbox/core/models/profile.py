"""
Profile model — the configuration data a provisioning run consumes.

Package lists, dotfiles location, SSH key path and the rest of the
"what" of a workstation. Loaded from YAML by
``devbox.core.config.loader.load_profile``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from devbox.core.models.package import PackageSpec


class DotfilesConfig(BaseModel):
    """A bare git repository whose work tree is the home directory."""

    repo: str = "git@github.com:DanTulovsky/dotfiles-config.git"
    git_dir: str = "~/.cfg"


class SshKeyConfig(BaseModel):
    path: str = "~/.ssh/identity.git"
    verify_host: str = "git@github.com"
    keys_url: str = "https://github.com/settings/keys"


class GoSnapConfig(BaseModel):
    """Go from snap on releases whose apt golang is too old."""

    codenames: list[str] = Field(default_factory=lambda: ["jammy"])
    channel: str = "1.22/stable"


class Profile(BaseModel):
    """Everything a run installs and configures."""

    name: str = "default"

    # ── Packages ─────────────────────────────────────────────────
    homebrew_bootstrap: list[PackageSpec] = Field(default_factory=list)
    required_commands: list[PackageSpec] = Field(default_factory=list)
    required_packages: list[PackageSpec] = Field(default_factory=list)
    linux_commands: list[PackageSpec] = Field(default_factory=list)
    debian_like_packages: list[PackageSpec] = Field(default_factory=list)
    fedora_packages: list[PackageSpec] = Field(default_factory=list)
    debian_packages: list[PackageSpec] = Field(default_factory=list)
    snap_packages: list[str] = Field(default_factory=list)
    go_snap: GoSnapConfig = Field(default_factory=GoSnapConfig)

    # ── Shell & identity ─────────────────────────────────────────
    shell: str = "fish"
    locale: str = "en_US.UTF-8"
    ssh_key: SshKeyConfig = Field(default_factory=SshKeyConfig)
    dotfiles: DotfilesConfig = Field(default_factory=DotfilesConfig)

    # ── Runtimes & tooling ───────────────────────────────────────
    python_version: str = "3.12"
    npm_globals: list[str] = Field(default_factory=list)
    go_tools: list[str] = Field(default_factory=list)
    cargo_crates: list[str] = Field(default_factory=list)
    brew_casks: list[str] = Field(default_factory=list)

    # ── Optional hand-off scripts (paths, ~ expanded) ────────────
    krew_plugins_script: str = "~/.krew_plugins"
    homebrew_apps_script: str = "~/.homebrew_apps"

    # ── macOS preferences ────────────────────────────────────────
    vscode_bundles: list[str] = Field(default_factory=list)
