"""
Dotfiles — a bare git repository whose work tree is $HOME.

The ``config`` alias users type interactively is
``git --git-dir=$HOME/.cfg --work-tree=$HOME``; ``DotfilesRepo.git()``
builds the same command lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DotfilesRepo:
    git_dir: Path
    work_tree: Path

    def git(self, *args: str) -> list[str]:
        return [
            "git",
            f"--git-dir={self.git_dir}",
            f"--work-tree={self.work_tree}",
            *args,
        ]

    def clone_argv(self, url: str) -> list[str]:
        return ["git", "clone", "--bare", url, str(self.git_dir)]


def ensure_ignored(gitignore: Path, entry: str) -> bool:
    """Append ``entry`` to ``gitignore`` unless already listed.

    Returns True when the file was changed.
    """
    lines: list[str] = []
    if gitignore.exists():
        lines = gitignore.read_text(encoding="utf-8").splitlines()
        if entry in (line.strip() for line in lines):
            return False
    lines.append(entry)
    gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.debug("Added %s to %s", entry, gitignore)
    return True
