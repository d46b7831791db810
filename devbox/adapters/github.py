"""
GitHub releases — latest-release lookup and asset download.

Used by the steps that install tools from release tarballs or .deb
files when the distribution does not package them.
"""

from __future__ import annotations

import json
import logging
import tarfile
import urllib.error
import urllib.request
from pathlib import Path

logger = logging.getLogger(__name__)

_API = "https://api.github.com/repos/{repo}/releases/latest"
_HEADERS = {"Accept": "application/vnd.github.v3+json", "User-Agent": "devbox"}


def latest_release(repo: str, timeout: float = 15) -> dict | None:
    """Return the latest release payload for ``owner/name``, or None."""
    req = urllib.request.Request(_API.format(repo=repo), headers=_HEADERS)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read().decode())
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning("Cannot query latest release of %s: %s", repo, e)
        return None


def latest_tag(repo: str) -> str | None:
    """Latest release tag exactly as published (e.g. ``v0.44.1``)."""
    release = latest_release(repo)
    if not release or "tag_name" not in release:
        return None
    return str(release["tag_name"])


def latest_version(repo: str) -> str | None:
    """Latest release tag with any leading ``v`` stripped."""
    tag = latest_tag(repo)
    return tag.lstrip("v") if tag else None


def download(url: str, dest: Path, timeout: float = 120) -> Path:
    """Fetch ``url`` into ``dest``.

    Raises:
        OSError: On any network or filesystem failure.
    """
    logger.info("Downloading %s", url)
    req = urllib.request.Request(url, headers={"User-Agent": "devbox"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as fh:
            while chunk := resp.read(65536):
                fh.write(chunk)
    except urllib.error.URLError as e:
        raise OSError(f"download failed: {url}: {e.reason}") from e
    return dest


def extract_member(tarball: Path, member_name: str, dest_dir: Path) -> Path:
    """Extract one file (matched by basename) from a .tar.gz."""
    with tarfile.open(tarball, "r:gz") as tar:
        for member in tar.getmembers():
            if member.isfile() and Path(member.name).name == member_name:
                member.name = member_name
                tar.extract(member, path=str(dest_dir), filter="data")
                return dest_dir / member_name
    raise OSError(f"{member_name} not found in {tarball.name}")
