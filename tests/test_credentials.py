"""
Tests for the credential keep-alive — acquisition, refresh thread, shutdown.
"""

import threading

import pytest

from devbox.core.services import credentials
from devbox.core.services.credentials import (
    CredentialError,
    KeepAliveHandle,
    privileged,
    start_keep_alive,
)


class FakeSudo:
    """Scripted ``(argv, interactive) -> exit code`` runner."""

    def __init__(self, probe_results=(0,), prompt_result=0, refresh_result=0):
        self.calls: list[tuple[str, bool]] = []
        self._probe_results = list(probe_results)
        self._prompt_result = prompt_result
        self._refresh_result = refresh_result
        self.refreshed = threading.Event()

    def __call__(self, argv, interactive):
        line = " ".join(argv)
        self.calls.append((line, interactive))
        if line == "sudo -n true":
            return self._probe_results.pop(0) if len(self._probe_results) > 1 else self._probe_results[0]
        if line == "sudo -v":
            return self._prompt_result
        if line == "sudo -n -v":
            self.refreshed.set()
            return self._refresh_result
        raise AssertionError(f"unexpected command {line}")


@pytest.fixture(autouse=True)
def _have_sudo(monkeypatch):
    monkeypatch.setattr(credentials.shutil, "which", lambda name: f"/usr/bin/{name}")


class TestStartKeepAlive:
    def test_cached_credentials_start_refresher(self):
        sudo = FakeSudo(probe_results=(0,))
        handle = start_keep_alive(interval=0.01, runner=sudo)
        try:
            assert handle.supported
            assert sudo.refreshed.wait(timeout=2)
            assert ("sudo -v", True) not in sudo.calls
        finally:
            handle.stop()
        assert not handle.running

    def test_prompts_once_when_nothing_cached(self):
        sudo = FakeSudo(probe_results=(1, 0))
        handle = start_keep_alive(interval=60, runner=sudo)
        try:
            assert ("sudo -v", True) in sudo.calls
            assert handle.running
        finally:
            handle.stop()

    def test_failed_prompt_raises(self):
        sudo = FakeSudo(probe_results=(1,), prompt_result=1)
        with pytest.raises(CredentialError):
            start_keep_alive(runner=sudo)

    def test_no_caching_returns_unsupported_handle(self):
        sudo = FakeSudo(probe_results=(1, 1))
        handle = start_keep_alive(runner=sudo)
        assert not handle.supported
        assert not handle.running

    def test_missing_sudo(self, monkeypatch):
        monkeypatch.setattr(credentials.shutil, "which", lambda name: None)
        handle = start_keep_alive(runner=FakeSudo())
        assert not handle.supported

    def test_root_needs_nothing(self, monkeypatch):
        monkeypatch.setattr(credentials, "is_root", lambda: True)
        sudo = FakeSudo()
        handle = start_keep_alive(runner=sudo)
        assert handle.has_cached_credentials()
        assert sudo.calls == []


class TestKeepAliveHandle:
    def test_stop_joins_thread(self):
        sudo = FakeSudo()
        handle = KeepAliveHandle(supported=True, runner=sudo)
        handle.start(interval=0.01)
        assert handle.running
        handle.stop()
        assert not handle.running
        assert not any(t.name == "sudo-keepalive" and t.is_alive() for t in threading.enumerate())

    def test_refresh_failure_does_not_kill_thread(self):
        sudo = FakeSudo(refresh_result=1)
        with KeepAliveHandle(supported=True, runner=sudo) as handle:
            handle.start(interval=0.01)
            assert sudo.refreshed.wait(timeout=2)
            assert handle.running
        assert not handle.running

    def test_unsupported_never_starts(self):
        handle = KeepAliveHandle(supported=False, runner=FakeSudo())
        handle.start(interval=0.01)
        assert not handle.running
        handle.stop()


class TestPrivileged:
    def test_prompts_without_credentials(self):
        argv, interactive = privileged(["apt-get", "update"], None)
        assert argv == ["sudo", "apt-get", "update"]
        assert interactive

    def test_non_interactive_when_cached(self):
        handle = KeepAliveHandle(supported=True, runner=FakeSudo(probe_results=(0,)))
        argv, interactive = privileged(["apt-get", "update"], handle)
        assert argv[0] == "sudo"
        assert not interactive

    def test_unsupported_handle_never_spawns_sudo(self):
        def no_sudo(argv, interactive):
            raise AssertionError(f"sudo spawned: {argv}")

        handle = KeepAliveHandle(supported=False, runner=no_sudo)
        argv, interactive = privileged(["apt-get", "update"], handle)
        assert argv == ["sudo", "apt-get", "update"]
        assert interactive

    def test_root_gets_no_prefix(self, monkeypatch):
        monkeypatch.setattr(credentials, "is_root", lambda: True)
        argv, interactive = privileged(["apt-get", "update"], None)
        assert argv == ["apt-get", "update"]
        assert not interactive
