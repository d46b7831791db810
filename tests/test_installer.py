"""
Tests for the package installer — probe first, primary manager, brew fallback.
"""

import subprocess
from unittest.mock import patch

from devbox.adapters.mock import MockExecutor
from devbox.adapters.packages import probe
from devbox.adapters.packages.managers import APT, BREW, DNF, primary_manager
from devbox.adapters.packages.probe import PackageProbe, is_pkg_installed
from devbox.core.models.package import InstallOutcome, PackageSpec
from devbox.core.models.platform import Family
from devbox.core.services.installer import PackageInstaller

from tests.helpers import StubProbe, make_platform


def _installer(installed=(), available=()):
    executor = MockExecutor(available=list(available))
    return PackageInstaller(executor, probe=StubProbe(set(installed))), executor


class TestPrimaryManager:
    def test_families(self):
        assert primary_manager(Family.DEBIAN) is APT
        assert primary_manager(Family.UBUNTU) is APT
        assert primary_manager(Family.POPOS) is APT
        assert primary_manager(Family.FEDORA) is DNF
        assert primary_manager(Family.DARWIN) is BREW
        assert primary_manager(Family.OTHER_LINUX) is None


class TestEnsureInstalled:
    def test_already_present_never_executes(self, ubuntu):
        installer, executor = _installer(installed={"htop"})
        assert installer.ensure_installed(PackageSpec(name="htop"), ubuntu) is InstallOutcome.ALREADY_PRESENT
        assert executor.call_count == 0

    def test_primary_success(self, ubuntu):
        installer, executor = _installer()
        outcome = installer.ensure_installed(PackageSpec(name="htop"), ubuntu)
        assert outcome is InstallOutcome.INSTALLED
        assert executor.commands == ["sudo apt-get install -y htop"]

    def test_sudo_prompts_when_nothing_cached(self, ubuntu):
        installer, executor = _installer()
        installer.ensure_installed(PackageSpec(name="htop"), ubuntu)
        assert executor.call_log[0].interactive

    def test_family_override(self, fedora):
        installer, executor = _installer()
        spec = PackageSpec(name="ssh-askpass", overrides={Family.FEDORA: "openssh-askpass"})
        installer.ensure_installed(spec, fedora)
        assert executor.commands == ["sudo dnf install -y openssh-askpass"]

    def test_brew_fallback_after_primary_failure(self, ubuntu):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("sudo apt-get install -y duf", exit_code=100)
        outcome = installer.ensure_installed(PackageSpec(name="duf"), ubuntu)
        assert outcome is InstallOutcome.INSTALLED
        assert executor.call_count == 2
        assert executor.commands[1] == "brew install duf"

    def test_brew_fallback_uses_logical_name(self, ubuntu):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("sudo apt-get install -y golang-go")
        spec = PackageSpec(name="golang", overrides={Family.UBUNTU: "golang-go"})
        installer.ensure_installed(spec, ubuntu)
        assert executor.commands == ["sudo apt-get install -y golang-go", "brew install golang"]

    def test_no_brew_no_retry(self, ubuntu):
        installer, executor = _installer()
        executor.set_failure("sudo apt-get install -y duf")
        assert installer.ensure_installed(PackageSpec(name="duf"), ubuntu) is InstallOutcome.FAILED
        assert executor.call_count == 1

    def test_brew_primary_is_not_retried(self, darwin):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("brew install go")
        spec = PackageSpec(name="golang", overrides={Family.DARWIN: "go"})
        assert installer.ensure_installed(spec, darwin) is InstallOutcome.FAILED
        assert executor.commands == ["brew install go"]

    def test_both_fail(self, ubuntu):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("sudo apt-get install -y nope")
        executor.set_failure("brew install nope")
        assert installer.ensure_installed(PackageSpec(name="nope"), ubuntu) is InstallOutcome.FAILED
        assert executor.call_count == 2

    def test_unsupported_family_uses_brew_only(self):
        platform = make_platform(Family.OTHER_LINUX)
        installer, executor = _installer(available=["brew"])
        assert installer.ensure_installed(PackageSpec(name="fzf"), platform) is InstallOutcome.INSTALLED
        assert executor.commands == ["brew install fzf"]

    def test_missing_package_manager_is_a_failure_value(self, fedora):
        installer, executor = _installer(available=["brew"])
        executor.set_missing("sudo")
        outcome = installer.ensure_installed(PackageSpec(name="fzf"), fedora)
        assert outcome is InstallOutcome.INSTALLED
        assert executor.commands[-1] == "brew install fzf"


class TestEnsureAll:
    def test_returns_failed_names_in_order(self, ubuntu):
        installer, executor = _installer(installed={"git"})
        executor.set_failure("sudo apt-get install -y b")
        failed = installer.ensure_all(
            [PackageSpec(name="a"), PackageSpec(name="b"), PackageSpec(name="git")], ubuntu,
        )
        assert failed == ["b"]
        assert executor.commands == ["sudo apt-get install -y a", "sudo apt-get install -y b"]


class TestPackageSpec:
    def test_shorthand(self):
        spec = PackageSpec.model_validate("ripgrep")
        assert spec.name == "ripgrep"
        assert spec.name_for(Family.FEDORA) == "ripgrep"


class TestLastFailure:
    def test_carries_failing_command(self, ubuntu):
        installer, executor = _installer()
        executor.set_failure("sudo apt-get install -y duf", exit_code=100)
        assert installer.ensure_all([PackageSpec(name="htop"), PackageSpec(name="duf")], ubuntu) == ["duf"]
        assert installer.last_failure.exit_code == 100
        assert installer.last_failure.argv[-1] == "duf"

    def test_brew_failure_replaces_primary_failure(self, ubuntu):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("sudo apt-get install -y nope", exit_code=100)
        executor.set_failure("brew install nope", exit_code=7)
        installer.ensure_all([PackageSpec(name="nope")], ubuntu)
        assert installer.last_failure.exit_code == 7

    def test_recovered_package_leaves_nothing(self, ubuntu):
        installer, executor = _installer(available=["brew"])
        executor.set_failure("sudo apt-get install -y duf")
        assert installer.ensure_all([PackageSpec(name="duf")], ubuntu) == []
        assert installer.last_failure is None

    def test_reset_between_calls(self, ubuntu):
        installer, executor = _installer()
        executor.set_failure("sudo apt-get install -y duf")
        installer.ensure_all([PackageSpec(name="duf")], ubuntu)
        installer.ensure_all([PackageSpec(name="htop")], ubuntu)
        assert installer.last_failure is None


def _completed(argv, returncode=0, stdout=""):
    return subprocess.CompletedProcess(argv, returncode, stdout=stdout, stderr="")


class TestIsPkgInstalled:
    def test_dpkg_installed(self):
        with patch.object(probe.subprocess, "run", return_value=_completed([], stdout="install ok installed")) as run:
            assert is_pkg_installed("htop", "apt")
        assert run.call_args.args[0] == ["dpkg-query", "-W", "-f=${Status}", "htop"]

    def test_dpkg_removed_but_configured(self):
        with patch.object(probe.subprocess, "run", return_value=_completed([], stdout="deinstall ok config-files")):
            assert not is_pkg_installed("htop", "apt")

    def test_rpm_exit_code(self):
        with patch.object(probe.subprocess, "run", return_value=_completed([], returncode=1)):
            assert not is_pkg_installed("gcc", "dnf")

    def test_checker_missing(self):
        with patch.object(probe.subprocess, "run", side_effect=FileNotFoundError("dpkg-query")):
            assert not is_pkg_installed("htop", "apt")

    def test_timeout(self):
        with patch.object(probe.subprocess, "run", side_effect=subprocess.TimeoutExpired("brew", 30)):
            assert not is_pkg_installed("fzf", "brew")


class TestPackageProbe:
    @staticmethod
    def _fake_run(dpkg_status="", brew_has=()):
        def run(argv, **kwargs):
            if argv[0] == "dpkg-query":
                return _completed(argv, stdout=dpkg_status)
            if argv[0] == "brew":
                return _completed(argv, returncode=0 if argv[-1] in brew_has else 1)
            raise AssertionError(f"unexpected command {argv}")
        return run

    def test_command_on_path(self, ubuntu):
        with patch.object(probe.shutil, "which", return_value="/usr/bin/rg"), \
             patch.object(probe.subprocess, "run") as run:
            assert PackageProbe().is_installed(PackageSpec(name="ripgrep", command="rg"), ubuntu)
        assert not run.called

    def test_apt_hit(self, ubuntu):
        with patch.object(probe.shutil, "which", return_value=None), \
             patch.object(probe.subprocess, "run", side_effect=self._fake_run("install ok installed")):
            assert PackageProbe().is_installed(PackageSpec(name="htop"), ubuntu)

    def test_brew_on_linux_counts(self, ubuntu):
        which = {"brew": "/home/linuxbrew/.linuxbrew/bin/brew"}
        with patch.object(probe.shutil, "which", side_effect=which.get), \
             patch.object(probe.subprocess, "run", side_effect=self._fake_run(brew_has={"duf"})):
            assert PackageProbe().is_installed(PackageSpec(name="duf"), ubuntu)

    def test_brew_query_uses_logical_name(self, ubuntu):
        which = {"brew": "/home/linuxbrew/.linuxbrew/bin/brew"}
        spec = PackageSpec(name="golang", overrides={Family.UBUNTU: "golang-go"})
        with patch.object(probe.shutil, "which", side_effect=which.get), \
             patch.object(probe.subprocess, "run", side_effect=self._fake_run(brew_has={"golang"})):
            assert PackageProbe().is_installed(spec, ubuntu)

    def test_nothing_found(self, ubuntu):
        with patch.object(probe.shutil, "which", return_value=None), \
             patch.object(probe.subprocess, "run", side_effect=self._fake_run()):
            assert not PackageProbe().is_installed(PackageSpec(name="duf"), ubuntu)

    def test_brew_installed_package_never_reaches_executor(self, ubuntu):
        which = {"brew": "/home/linuxbrew/.linuxbrew/bin/brew"}
        executor = MockExecutor(available=["brew"])
        installer = PackageInstaller(executor, probe=PackageProbe())
        with patch.object(probe.shutil, "which", side_effect=which.get), \
             patch.object(probe.subprocess, "run", side_effect=self._fake_run(brew_has={"duf"})):
            outcome = installer.ensure_installed(PackageSpec(name="duf"), ubuntu)
        assert outcome is InstallOutcome.ALREADY_PRESENT
        assert executor.call_count == 0
