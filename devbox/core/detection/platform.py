"""
Platform detection — identify OS family, release and architecture.

Read-only probes of kernel identification and ``/etc/os-release``.
The public entry point ``detect()`` is memoized for the process
lifetime; the pure helpers below it take raw strings so they can be
driven from fixtures.

Detection never fails: unreadable or missing sources degrade to
``Family.UNKNOWN``, an empty codename and version 0.
"""

from __future__ import annotations

import logging
import platform
import re
from functools import lru_cache
from pathlib import Path

from devbox.core.models.platform import Architecture, Family, PlatformInfo

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")
DEBIAN_VERSION_PATH = Path("/etc/debian_version")

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines of an os-release file.

    Comments and blank lines are ignored; surrounding single or double
    quotes are stripped from values.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        fields[key.strip()] = value
    return fields


def classify_family(
    kernel: str,
    os_release: dict[str, str],
    debian_marker: bool = False,
) -> Family:
    """Decide the OS family.

    Pop!_OS is checked before every Debian/Ubuntu rule; its base would
    otherwise classify it as Ubuntu or Debian.

    Args:
        kernel: Kernel identification string (what ``uname -a`` prints).
        os_release: Parsed ``/etc/os-release`` fields (may be empty).
        debian_marker: Whether ``/etc/debian_version`` exists.
    """
    kernel_lc = kernel.lower()
    os_id = os_release.get("ID", "").strip().lower()

    if "darwin" in kernel_lc:
        return Family.DARWIN
    if os_id == "pop":
        return Family.POPOS
    if os_id == "fedora":
        return Family.FEDORA
    if os_id == "ubuntu":
        return Family.UBUNTU
    if os_id == "debian":
        return Family.DEBIAN
    # No usable os-release ID: fall back to the kernel string.
    # Ubuntu ships /etc/debian_version too, so its kernel tag wins.
    if "ubuntu" in kernel_lc:
        return Family.UBUNTU
    if debian_marker or "debian" in kernel_lc:
        return Family.DEBIAN
    if "linux" in kernel_lc:
        return Family.OTHER_LINUX
    return Family.UNKNOWN


def parse_version(version_id: str | None) -> tuple[int, int]:
    """Leading integer and first fractional integer of a VERSION_ID.

    ``"24.04"`` → ``(24, 4)``, ``"13"`` → ``(13, 0)``, missing or
    unparseable → ``(0, 0)``.
    """
    if not version_id:
        return 0, 0
    match = _VERSION_RE.match(version_id.strip())
    if not match:
        return 0, 0
    major = int(match.group(1))
    minor = int(match.group(2)) if match.group(2) else 0
    return major, minor


def normalize_arch(machine: str) -> Architecture:
    """Map a raw machine hardware name onto amd64/arm64."""
    machine_lc = machine.strip().lower()
    if machine_lc == "x86_64":
        return Architecture.AMD64
    if machine_lc == "aarch64" or "arm" in machine_lc:
        return Architecture.ARM64
    return Architecture.AMD64


def build_platform_info(
    kernel: str,
    machine: str,
    os_release: dict[str, str],
    debian_marker: bool = False,
) -> PlatformInfo:
    """Assemble a PlatformInfo from raw identification inputs."""
    major, minor = parse_version(os_release.get("VERSION_ID"))
    return PlatformInfo(
        family=classify_family(kernel, os_release, debian_marker),
        codename=os_release.get("VERSION_CODENAME", ""),
        version_major=major,
        version_minor=minor,
        architecture=normalize_arch(machine),
    )


def _kernel_string() -> str:
    """Equivalent of ``uname -a`` (all uname fields, space-joined)."""
    try:
        return " ".join(part for part in platform.uname() if part)
    except OSError:
        return ""


def _read_os_release(path: Path = OS_RELEASE_PATH) -> dict[str, str]:
    try:
        return parse_os_release(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, OSError, UnicodeDecodeError):
        return {}


@lru_cache(maxsize=1)
def detect() -> PlatformInfo:
    """Detect the host platform once; later calls return the same object."""
    info = build_platform_info(
        kernel=_kernel_string(),
        machine=platform.machine(),
        os_release=_read_os_release(),
        debian_marker=DEBIAN_VERSION_PATH.exists(),
    )
    logger.info("Detected platform: %s", info.describe())
    return info
