"""
Tool steps — developer tooling outside the native package lists.

Terminal UIs (lazygit, lazyjournal), language toolchains (rustup,
pyenv), prompt and history tools, language servers, container and
cloud CLIs, kubectl plugins and fonts.

Steps that add a directory to PATH do so through ``ctx.extend_path``
so later steps in the same run can find the freshly installed tools.
"""

from __future__ import annotations

import logging
import os
import shlex
import tempfile
from pathlib import Path

from devbox.adapters import github
from devbox.core.context import RunContext
from devbox.core.models.package import InstallOutcome, PackageSpec
from devbox.core.models.platform import Architecture, Family
from devbox.core.models.step import StepOutcome, StepResult

logger = logging.getLogger(__name__)

LAZYGIT_REPO = "jesseduffield/lazygit"
LAZYJOURNAL_REPO = "Lifailon/lazyjournal"
LAZYJOURNAL_INSTALL_URL = "https://raw.githubusercontent.com/Lifailon/lazyjournal/main/install.sh"
RUSTUP_URL = "https://sh.rustup.rs"
PYENV_URL = "https://pyenv.run"
STARSHIP_URL = "https://starship.rs/install.sh"
ATUIN_URL = "https://setup.atuin.sh"
KREW_URL = "https://github.com/kubernetes-sigs/krew/releases/latest/download"
FONTS_URL = "https://github.com/ryanoasis/nerd-fonts/releases"

_LAZYGIT_ARCH = {Architecture.AMD64: "x86_64", Architecture.ARM64: "arm64"}


def _brew(ctx: RunContext, *names: str) -> StepResult:
    """Install formulae through the installer so presence checks apply."""
    failed = ctx.installer.ensure_all([PackageSpec(name=n) for n in names], ctx.platform)
    if failed:
        return StepResult.failed(
            f"brew install failed: {', '.join(failed)}", ctx.installer.last_failure,
        )
    return StepResult.ok()


# ── Terminal UIs ─────────────────────────────────────────────────


def lazygit_in_apt(ctx: RunContext) -> bool:
    """Debian 13+/sid and Ubuntu 25.10+ ship lazygit in their archives."""
    platform = ctx.platform
    if platform.family is Family.DEBIAN:
        return platform.codename == "sid" or platform.version_at_least(13)
    if platform.is_ubuntu_compatible:
        return platform.version_at_least(25, 10)
    return False


def install_lazygit(ctx: RunContext) -> StepResult:
    if ctx.has("lazygit"):
        return StepResult.skipped("already installed")
    if ctx.platform.is_darwin:
        return _brew(ctx, "lazygit")
    if not ctx.platform.is_linux:
        return StepResult.skipped("unsupported platform")
    if lazygit_in_apt(ctx):
        return StepResult.from_execution(ctx.sudo(["apt-get", "install", "-y", "lazygit"]))

    if ctx.dry_run:
        return StepResult.from_execution(
            ctx.sudo(["install", "lazygit", "-D", "-t", "/usr/local/bin/"]),
        )

    version = github.latest_version(LAZYGIT_REPO)
    if not version:
        return StepResult.failed("could not determine the latest lazygit release")
    arch = _LAZYGIT_ARCH[ctx.platform.architecture]
    url = (
        f"https://github.com/{LAZYGIT_REPO}/releases/download/"
        f"v{version}/lazygit_{version}_Linux_{arch}.tar.gz"
    )
    with tempfile.TemporaryDirectory(prefix="devbox-lazygit-") as tmp:
        tmp_dir = Path(tmp)
        tarball = github.download(url, tmp_dir / "lazygit.tar.gz")
        binary = github.extract_member(tarball, "lazygit", tmp_dir)
        result = ctx.sudo(["install", str(binary), "-D", "-t", "/usr/local/bin/"])
    return StepResult.from_execution(result, f"lazygit {version}")


def install_lazyjournal(ctx: RunContext) -> StepResult:
    if ctx.has("lazyjournal"):
        return StepResult.skipped("already installed")
    if ctx.platform.is_darwin:
        return _brew(ctx, "lazyjournal")
    if not ctx.platform.is_debian_like:
        return StepResult.from_execution(
            ctx.shell(f"curl -sS {LAZYJOURNAL_INSTALL_URL} | bash"),
        )

    if ctx.dry_run:
        return StepResult.from_execution(ctx.sudo(["apt-get", "install", "-y", "./lazyjournal.deb"]))

    # asset names embed the tag verbatim
    tag = github.latest_tag(LAZYJOURNAL_REPO)
    if not tag:
        return StepResult.failed("could not determine the latest lazyjournal release")
    arch = ctx.platform.architecture.value
    name = f"lazyjournal-{tag}-{arch}.deb"
    url = f"https://github.com/{LAZYJOURNAL_REPO}/releases/download/{tag}/{name}"
    with tempfile.TemporaryDirectory(prefix="devbox-lazyjournal-") as tmp:
        deb = github.download(url, Path(tmp) / name)
        # apt drops privileges to _apt and needs to read the file.
        os.chmod(tmp, 0o755)
        os.chmod(deb, 0o644)
        result = ctx.sudo(["apt-get", "install", "-y", str(deb)])
    return StepResult.from_execution(result, f"lazyjournal {tag}")


# ── Toolchains ───────────────────────────────────────────────────


def install_rustup(ctx: RunContext) -> StepResult:
    """Install rustup, then make ~/.cargo/bin visible to later steps."""
    cargo_bin = ctx.home / ".cargo" / "bin"
    if ctx.has("cargo") or (cargo_bin / "cargo").exists():
        ctx.extend_path(cargo_bin)
        return StepResult.skipped("cargo already installed")

    if ctx.interactive:
        result = ctx.shell(f"curl {RUSTUP_URL} -sSf | sh", interactive=True)
    else:
        result = ctx.shell(f"curl {RUSTUP_URL} -sSf | sh -s -- -y")
    if not result.succeeded:
        return StepResult.failed("rustup installation failed", result)
    ctx.extend_path(cargo_bin)
    return StepResult.ok()


def install_dust(ctx: RunContext) -> StepResult:
    if ctx.has("dust"):
        return StepResult.skipped("already installed")
    return StepResult.from_execution(ctx.run(["cargo", "install", "du-dust"]))


def install_pyenv(ctx: RunContext) -> StepResult:
    """pyenv from brew on macOS, from the pyenv.run installer elsewhere."""
    pyenv_root = Path(os.environ.get("PYENV_ROOT") or ctx.home / ".pyenv")

    if ctx.platform.is_darwin:
        result = _brew(ctx, "pyenv", "pyenv-virtualenv")
    elif pyenv_root.is_dir():
        result = StepResult.skipped(f"{pyenv_root} exists")
    else:
        result = StepResult.from_execution(ctx.shell(f"curl {PYENV_URL} | bash"))

    if result.outcome is not StepOutcome.FAILED:
        ctx.set_env("PYENV_ROOT", str(pyenv_root))
        ctx.extend_path(pyenv_root / "bin")
    return result


def install_starship(ctx: RunContext) -> StepResult:
    if ctx.platform.is_darwin:
        return _brew(ctx, "starship")
    if ctx.has("starship"):
        return StepResult.skipped("already installed")
    return StepResult.from_execution(
        ctx.shell(f"curl -sS {STARSHIP_URL} | sh -s -- -y", uses_sudo=True),
    )


def install_atuin(ctx: RunContext) -> StepResult:
    if ctx.has("atuin"):
        return StepResult.skipped("already installed")
    return StepResult.from_execution(
        ctx.shell(f"curl --proto '=https' --tlsv1.2 -LsSf {ATUIN_URL} | sh"),
    )


def install_python(ctx: RunContext) -> StepResult:
    version = ctx.profile.python_version
    if not ctx.has("pyenv"):
        return StepResult.failed("pyenv not found on PATH")
    return StepResult.from_execution(
        ctx.run(["pyenv", "install", "--skip-existing", version]),
        f"python {version}",
    )


# ── Language servers ─────────────────────────────────────────────


def install_language_servers(ctx: RunContext) -> StepResult:
    """npm, go and cargo language servers plus terraform-ls.

    Every installer is attempted; the step fails if any of them did.
    """
    failed: list[str] = []
    profile = ctx.profile

    if profile.npm_globals:
        if not ctx.sudo(["npm", "install", "-g", "n"]).succeeded:
            failed.append("n")
        elif not ctx.sudo(["n", "stable"]).succeeded:
            failed.append("node stable")
        for pkg in profile.npm_globals:
            if not ctx.sudo(["npm", "install", "-g", pkg]).succeeded:
                failed.append(pkg)

    for tool in profile.go_tools:
        if not ctx.run(["go", "install", tool]).succeeded:
            failed.append(tool)

    if not _install_terraform_ls(ctx):
        failed.append("terraform-ls")

    for crate in profile.cargo_crates:
        if not ctx.run(["cargo", "install", *shlex.split(crate)]).succeeded:
            failed.append(crate.split()[0])

    if failed:
        return StepResult.failed(f"could not install: {', '.join(failed)}")
    return StepResult.ok()


_HASHICORP_LIST = "/etc/apt/sources.list.d/hashicorp.list"
_HASHICORP_KEYRING = "/usr/share/keyrings/hashicorp-archive-keyring.gpg"


def _install_terraform_ls(ctx: RunContext) -> bool:
    if ctx.has("terraform-ls"):
        return True
    if ctx.platform.is_darwin:
        return ctx.run(["brew", "install", "hashicorp/tap/terraform-ls"]).succeeded
    if not ctx.platform.is_debian_like:
        logger.info("No terraform-ls installer for %s", ctx.platform.family.value)
        return True

    if not Path(_HASHICORP_LIST).exists():
        script = (
            "wget -O- https://apt.releases.hashicorp.com/gpg"
            f" | sudo gpg --batch --yes --dearmor -o {_HASHICORP_KEYRING}"
            f' && echo "deb [signed-by={_HASHICORP_KEYRING}]'
            f' https://apt.releases.hashicorp.com $(lsb_release -cs) main"'
            f" | sudo tee {_HASHICORP_LIST} >/dev/null"
        )
        if not ctx.shell(script, uses_sudo=True).succeeded:
            return False
        if not ctx.sudo(["apt-get", "update"]).succeeded:
            return False
    return ctx.sudo(["apt-get", "install", "-y", "terraform-ls"]).succeeded


# ── Apps, containers, cloud ──────────────────────────────────────


def run_homebrew_apps(ctx: RunContext) -> StepResult:
    """Hand off to the user's own brew app list, when one exists."""
    if not ctx.platform.is_darwin:
        return StepResult.skipped("not macOS")
    script = ctx.expand(ctx.profile.homebrew_apps_script)
    if not script.is_file():
        return StepResult.skipped(f"{script} not found")
    return StepResult.from_execution(ctx.run([str(script)], interactive=True))


_DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]


def install_docker(ctx: RunContext) -> StepResult:
    """Docker Engine from Docker's apt repo on Linux, OrbStack on macOS."""
    if ctx.platform.is_darwin:
        if ctx.has("orb"):
            return StepResult.skipped("OrbStack already installed")
        return _brew(ctx, "orbstack")

    if not ctx.platform.is_debian_like:
        return StepResult.skipped("no Docker repository for this platform")
    if ctx.has("docker"):
        return StepResult.skipped("already installed")

    distro = "debian" if ctx.platform.family is Family.DEBIAN else "ubuntu"
    keyring = "/etc/apt/keyrings/docker.asc"
    commands = [
        ["apt-get", "update"],
        ["apt-get", "install", "-y", "ca-certificates", "curl"],
        ["install", "-m", "0755", "-d", "/etc/apt/keyrings"],
        ["curl", "-fsSL", f"https://download.docker.com/linux/{distro}/gpg", "-o", keyring],
        ["chmod", "a+r", keyring],
    ]
    for argv in commands:
        result = ctx.sudo(argv)
        if not result.succeeded:
            return StepResult.failed(f"{argv[0]} failed while adding the Docker repo", result)

    source = (
        f"deb [arch={ctx.platform.architecture.value} signed-by={keyring}]"
        f" https://download.docker.com/linux/{distro} {ctx.platform.codename} stable"
    )
    result = ctx.shell(
        f"echo {shlex.quote(source)} | sudo tee /etc/apt/sources.list.d/docker.list >/dev/null",
        uses_sudo=True,
    )
    if not result.succeeded:
        return StepResult.failed("could not write docker.list", result)

    for argv in (["apt-get", "update"], ["apt-get", "install", "-y", *_DOCKER_PACKAGES]):
        result = ctx.sudo(argv)
        if not result.succeeded:
            return StepResult.failed("Docker installation failed", result)

    if ctx.user:
        ctx.sudo(["usermod", "-aG", "docker", ctx.user])
    return StepResult.ok("log out and back in to use docker without sudo")


def install_gcloud(ctx: RunContext) -> StepResult:
    if ctx.has("gcloud"):
        return StepResult.skipped("already installed")
    if ctx.platform.is_darwin:
        return _brew(ctx, "google-cloud-sdk")
    if not ctx.platform.is_debian_like:
        return StepResult.skipped("no gcloud repository for this platform")

    keyring = "/usr/share/keyrings/cloud.google.gpg"
    script = (
        "curl -fsSL https://packages.cloud.google.com/apt/doc/apt-key.gpg"
        f" | sudo gpg --batch --yes --dearmor -o {keyring}"
        f' && echo "deb [signed-by={keyring}] https://packages.cloud.google.com/apt cloud-sdk main"'
        " | sudo tee /etc/apt/sources.list.d/google-cloud-sdk.list >/dev/null"
    )
    result = ctx.shell(script, uses_sudo=True)
    if not result.succeeded:
        return StepResult.failed("could not add the Google Cloud repo", result)
    update = ctx.sudo(["apt-get", "update"])
    if not update.succeeded:
        return StepResult.failed("apt-get update failed", update)
    return StepResult.from_execution(
        ctx.sudo(["apt-get", "install", "-y", "google-cloud-cli", "kubectl"]),
    )


# ── kubectl plugins ──────────────────────────────────────────────


def install_krew(ctx: RunContext) -> StepResult:
    """krew itself, then the user's plugin list script."""
    krew_bin = ctx.home / ".krew" / "bin"
    if not (krew_bin / "kubectl-krew").exists():
        os_name = "darwin" if ctx.platform.is_darwin else "linux"
        target = f"krew-{os_name}_{ctx.platform.architecture.value}"
        script = (
            "set -e; "
            f'cd "$(mktemp -d)"; '
            f'curl -fsSLO "{KREW_URL}/{target}.tar.gz"; '
            f'tar zxvf "{target}.tar.gz"; '
            f'./"{target}" install krew'
        )
        result = ctx.shell(script)
        if not result.succeeded:
            return StepResult.failed("krew installation failed", result)
    ctx.extend_path(krew_bin)

    plugins = ctx.expand(ctx.profile.krew_plugins_script)
    if not plugins.is_file():
        return StepResult.ok(f"{plugins} not found, no plugins installed")
    return StepResult.from_execution(ctx.run(["bash", str(plugins)]), "krew plugins installed")


# ── Fonts ────────────────────────────────────────────────────────


def install_fonts(ctx: RunContext) -> StepResult:
    if not ctx.platform.is_darwin:
        return StepResult.warned(f"install a Nerd Font manually from {FONTS_URL}")
    failed = [
        cask for cask in ctx.profile.brew_casks
        if ctx.installer.ensure_installed(PackageSpec(name=cask), ctx.platform)
        is InstallOutcome.FAILED
    ]
    if failed:
        return StepResult.failed(f"could not install: {', '.join(failed)}")
    return StepResult.ok()
