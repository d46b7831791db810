"""
Credential keep-alive — keep cached sudo credentials warm for a run.

``start_keep_alive()`` validates that sudo can cache credentials
(prompting once if needed) and then refreshes the cache from a daemon
thread until ``handle.stop()`` is called. The handle is joined at the
end of the run; the thread never outlives it.

If the user cannot authenticate at all, ``CredentialError`` is raised
and the run must abort before any step executes.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
from collections.abc import Callable, Sequence

from devbox.core.errors import DevboxError

logger = logging.getLogger(__name__)

KEEPALIVE_INTERVAL_S = 30.0
"""Refresh period. Must stay below sudo's timestamp_timeout (5 min default)."""

SudoRunner = Callable[[list[str], bool], int]
"""``(argv, interactive) -> exit code``."""

_PROBE = ["sudo", "-n", "true"]
_PROMPT = ["sudo", "-v"]
_REFRESH = ["sudo", "-n", "-v"]


class CredentialError(DevboxError):
    """Elevated credentials could not be acquired."""


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def sudo_argv(argv: Sequence[str]) -> list[str]:
    """Prefix ``argv`` with sudo unless we already run as root."""
    if is_root():
        return list(argv)
    return ["sudo", *argv]


def run_sudo(argv: list[str], interactive: bool) -> int:
    try:
        if interactive:
            return subprocess.run(argv).returncode
        return subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=30,
        ).returncode
    except subprocess.TimeoutExpired:
        logger.warning("Timed out running %s", " ".join(argv))
        return 1
    except OSError as e:
        logger.warning("Cannot run %s: %s", " ".join(argv), e)
        return 1


class KeepAliveHandle:
    """Handle to a (possibly no-op) credential refresher.

    Attributes:
        supported: Whether sudo credential caching works on this host.
            When False every privileged command may prompt again.
    """

    def __init__(
        self,
        supported: bool,
        runner: SudoRunner = run_sudo,
        root: bool = False,
    ):
        self.supported = supported
        self._runner = runner
        self._root = root
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval: float = KEEPALIVE_INTERVAL_S) -> None:
        if not self.supported or self._root or self.running:
            return
        self._thread = threading.Thread(
            target=self._refresh_loop,
            args=(interval,),
            daemon=True,
            name="sudo-keepalive",
        )
        self._thread.start()
        logger.info("Credential keep-alive started (refresh every %.0fs)", interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the refresher to exit and join it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.debug("Credential keep-alive stopped")

    def has_cached_credentials(self) -> bool:
        """Whether a privileged command can run without prompting."""
        if self._root:
            return True
        if not self.supported:
            return False
        if self.running:
            return True
        return self._runner(list(_PROBE), False) == 0

    def _refresh_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            if self._runner(list(_REFRESH), False) != 0:
                logger.warning("Could not refresh cached sudo credentials")

    def __enter__(self) -> KeepAliveHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def start_keep_alive(
    interval: float = KEEPALIVE_INTERVAL_S,
    runner: SudoRunner = run_sudo,
) -> KeepAliveHandle:
    """Acquire sudo credentials and keep them cached for the run.

    Raises:
        CredentialError: If the interactive prompt fails (e.g. wrong
            password three times).
    """
    if is_root():
        logger.debug("Running as root, no credential caching needed")
        return KeepAliveHandle(supported=True, runner=runner, root=True)

    if shutil.which("sudo") is None:
        logger.warning("sudo not found; privileged steps will fail")
        return KeepAliveHandle(supported=False, runner=runner)

    if runner(list(_PROBE), False) != 0:
        logger.info("No cached sudo credentials, prompting")
        if runner(list(_PROMPT), True) != 0:
            raise CredentialError("Could not acquire sudo credentials")
        if runner(list(_PROBE), False) != 0:
            logger.warning(
                "sudo does not cache credentials on this host; "
                "expect repeated password prompts"
            )
            return KeepAliveHandle(supported=False, runner=runner)

    handle = KeepAliveHandle(supported=True, runner=runner)
    handle.start(interval)
    return handle


def privileged(
    argv: Sequence[str],
    credentials: KeepAliveHandle | None,
) -> tuple[list[str], bool]:
    """Build a sudo command line and decide whether it needs a terminal.

    Returns:
        ``(argv, interactive)`` — interactive is True when sudo may
        have to prompt because nothing is cached.
    """
    if is_root():
        return list(argv), False
    cached = credentials.has_cached_credentials() if credentials else False
    return sudo_argv(argv), not cached
