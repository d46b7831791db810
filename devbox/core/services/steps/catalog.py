"""
Step catalog — the ordered list of provisioning steps.

Order encodes the real dependencies: package managers before packages,
rustup before cargo installs, the SSH key before the dotfiles clone,
pyenv before Python. Fatal steps are the ones later steps cannot do
without.
"""

from __future__ import annotations

from functools import partial

from devbox.core.context import RunContext
from devbox.core.engine.runner import Step
from devbox.core.services.steps import identity, packages, shell, tools

# (name, action, fatal)
_CATALOG = [
    ("Homebrew bootstrap", packages.bootstrap_homebrew, True),
    ("Required commands", packages.install_required_commands, True),
    ("Required packages", packages.install_required_packages, True),
    ("Linux commands", packages.install_linux_commands, True),
    ("Source repositories", packages.enable_source_repos, True),
    ("Development packages", packages.install_dev_packages, True),
    ("Locale", packages.generate_locale, False),
    ("Debian extras", packages.install_debian_extras, True),
    ("lazygit", tools.install_lazygit, False),
    ("lazyjournal", tools.install_lazyjournal, False),
    ("Default shell", shell.set_default_shell, True),
    ("Rust toolchain", tools.install_rustup, True),
    ("dust", tools.install_dust, False),
    ("SSH key", identity.ensure_ssh_key, True),
    ("Dotfiles", identity.checkout_dotfiles, True),
    ("pyenv", tools.install_pyenv, False),
    ("starship", tools.install_starship, False),
    ("atuin", tools.install_atuin, False),
    ("Python", tools.install_python, False),
    ("Language servers", tools.install_language_servers, False),
    ("Homebrew apps", tools.run_homebrew_apps, False),
    ("Containers", tools.install_docker, False),
    ("gcloud", tools.install_gcloud, False),
    ("krew plugins", tools.install_krew, False),
    ("Fonts", tools.install_fonts, False),
    ("VSCode key repeat", shell.configure_vscode, False),
    ("tmux local config", shell.touch_tmux_local, False),
]


def step_names() -> list[str]:
    return [name for name, _, _ in _CATALOG]


def build_steps(ctx: RunContext) -> list[Step]:
    """Bind every catalog entry to ``ctx``."""
    return [Step(name=name, action=partial(action, ctx), fatal=fatal)
            for name, action, fatal in _CATALOG]
