"""
Identity steps — SSH key for GitHub and the dotfiles checkout.

The SSH step can block: after generating a key it waits until the user
has registered it with GitHub and ``ssh -T`` confirms it, because the
dotfiles clone that follows needs that key.
"""

from __future__ import annotations

import logging
import re
import shutil

from devbox.core.context import RunContext
from devbox.core.models.step import StepResult
from devbox.core.services.dotfiles import DotfilesRepo, ensure_ignored

logger = logging.getLogger(__name__)

# GitHub exits 1 on a successful `ssh -T` because no shell is granted.
_AUTH_MARKER = "successfully authenticated"

_AGENT_VAR = re.compile(r"\b(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\s]+)")


# ── SSH key ──────────────────────────────────────────────────────


def parse_agent_env(output: str) -> dict[str, str]:
    """Pick SSH_AUTH_SOCK / SSH_AGENT_PID out of ``keychain --eval`` output."""
    return dict(_AGENT_VAR.findall(output))


def load_agent(ctx: RunContext) -> dict[str, str]:
    """Add the GitHub key to keychain's ssh-agent.

    keychain asks for the passphrase itself when the key has one, so it
    gets the terminal in interactive runs. Returns the agent variables
    to hand to later ssh/git invocations; empty when there is no agent.
    """
    if not ctx.has("keychain"):
        return {}
    key = ctx.expand(ctx.profile.ssh_key.path)
    result = ctx.run(
        ["keychain", "--eval", "--quiet", "--nogui", str(key)],
        interactive=ctx.interactive,
        silent=True,
    )
    if not result.succeeded:
        logger.warning("keychain could not load %s (exit %d)", key, result.exit_code)
        return {}
    agent_env = parse_agent_env(result.combined_output)
    logger.debug("ssh-agent: %s", agent_env or "none")
    return agent_env


def verify_ssh_key(ctx: RunContext, agent_env: dict[str, str] | None = None) -> bool:
    """Whether GitHub accepts the key.

    Without an agent a passphrase-protected key needs the terminal, so
    BatchMode is only used when an agent holds the key or nobody can type.
    """
    key = ctx.expand(ctx.profile.ssh_key.path)
    batch = bool(agent_env) or not ctx.interactive
    argv = [
        "ssh", "-T",
        "-i", str(key),
        "-o", "IdentitiesOnly=yes",
        "-o", "StrictHostKeyChecking=accept-new",
    ]
    if batch:
        argv += ["-o", "BatchMode=yes"]
    argv.append(ctx.profile.ssh_key.verify_host)
    result = ctx.run(argv, interactive=not batch, silent=True, env=agent_env or None)
    return _AUTH_MARKER in result.combined_output


def ensure_ssh_key(ctx: RunContext) -> StepResult:
    """Make sure the GitHub key exists and is registered."""
    cfg = ctx.profile.ssh_key
    key = ctx.expand(cfg.path)

    if key.exists():
        return StepResult.skipped(f"{key} exists")

    if not ctx.dry_run:
        key.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    argv = ["ssh-keygen", "-t", "ed25519", "-f", str(key)]
    if not ctx.interactive:
        argv += ["-N", ""]
    result = ctx.run(argv, interactive=ctx.interactive)
    if not result.succeeded:
        return StepResult.failed("ssh-keygen failed", result)

    pub = key.with_name(key.name + ".pub")
    ctx.console.notice(f"Add this key at {cfg.keys_url}:")
    if pub.exists():
        ctx.console.info(pub.read_text(encoding="utf-8").strip())

    if not ctx.interactive:
        return StepResult.warned(f"add {pub} at {cfg.keys_url}")

    agent_env = load_agent(ctx)
    while True:
        answer = ctx.console.prompt(
            "Press Enter once the key is added (or type 'skip')",
        )
        if answer.strip().lower() == "skip":
            return StepResult.warned(f"add {pub} at {cfg.keys_url}")
        if verify_ssh_key(ctx, agent_env):
            return StepResult.ok("key verified")
        ctx.console.notice(f"{cfg.verify_host} did not accept the key yet.", color="red")


# ── Dotfiles ─────────────────────────────────────────────────────


def checkout_dotfiles(ctx: RunContext) -> StepResult:
    """Replace any previous bare clone and check the dotfiles out over $HOME."""
    cfg = ctx.profile.dotfiles
    repo = DotfilesRepo(git_dir=ctx.expand(cfg.git_dir), work_tree=ctx.home)

    if not ctx.dry_run:
        if repo.git_dir.exists():
            logger.info("Removing previous dotfiles clone at %s", repo.git_dir)
            shutil.rmtree(repo.git_dir)
        ensure_ignored(ctx.home / ".gitignore", repo.git_dir.name)

    key = ctx.expand(ctx.profile.ssh_key.path)
    agent_env = load_agent(ctx)
    env = {**agent_env, "GIT_SSH_COMMAND": f"ssh -i {key} -o IdentitiesOnly=yes"}
    # no agent: ssh may have to ask for the passphrase itself
    clone = ctx.run(
        repo.clone_argv(cfg.repo),
        env=env,
        interactive=ctx.interactive and not agent_env,
    )
    if not clone.succeeded:
        return StepResult.failed(f"could not clone {cfg.repo}", clone)

    reset = ctx.run(repo.git("reset", "--hard", "HEAD"), cwd=str(ctx.home))
    if not reset.succeeded:
        return StepResult.failed("dotfiles checkout failed", reset)

    ctx.run(repo.git("config", "--local", "status.showUntrackedFiles", "no"))
    return StepResult.ok()
