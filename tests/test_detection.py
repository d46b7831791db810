"""
Tests for platform detection — family classification, versions, arch.
"""

from unittest.mock import patch

from devbox.core.detection import platform as detection
from devbox.core.detection.platform import (
    build_platform_info,
    classify_family,
    normalize_arch,
    parse_os_release,
    parse_version,
)
from devbox.core.models.platform import Architecture, Family

POP_OS_RELEASE = """\
NAME="Pop!_OS"
VERSION="22.04 LTS"
ID=pop
ID_LIKE="ubuntu debian"
VERSION_ID="22.04"
VERSION_CODENAME=jammy
"""

UBUNTU_KERNEL = "Linux box 6.8.0-31-generic #31-Ubuntu SMP x86_64 GNU/Linux"
DEBIAN_KERNEL = "Linux box 6.1.0-18-amd64 #1 SMP PREEMPT_DYNAMIC Debian 6.1.76-1 x86_64 GNU/Linux"


class TestParseOsRelease:
    def test_strips_quotes(self):
        fields = parse_os_release(POP_OS_RELEASE)
        assert fields["NAME"] == "Pop!_OS"
        assert fields["VERSION_ID"] == "22.04"
        assert fields["ID"] == "pop"

    def test_ignores_comments_and_blanks(self):
        fields = parse_os_release("# comment\n\nID='fedora'\ngarbage\n")
        assert fields == {"ID": "fedora"}


class TestClassifyFamily:
    def test_darwin(self):
        assert classify_family("Darwin mac.local 23.5.0 arm64", {}) is Family.DARWIN

    def test_pop_os_is_never_debian_or_ubuntu(self):
        fields = parse_os_release(POP_OS_RELEASE)
        family = classify_family(UBUNTU_KERNEL, fields, debian_marker=True)
        assert family is Family.POPOS
        assert family not in (Family.DEBIAN, Family.UBUNTU)

    def test_pop_os_is_ubuntu_compatible(self):
        info = build_platform_info(UBUNTU_KERNEL, "x86_64", parse_os_release(POP_OS_RELEASE), True)
        assert info.is_ubuntu_compatible
        assert info.is_debian_like

    def test_ubuntu_by_id(self):
        assert classify_family("Linux box", {"ID": "ubuntu"}, True) is Family.UBUNTU

    def test_debian_by_id(self):
        assert classify_family("Linux box", {"ID": "debian"}, True) is Family.DEBIAN

    def test_fedora(self):
        assert classify_family("Linux box", {"ID": "fedora"}) is Family.FEDORA

    def test_ubuntu_kernel_beats_debian_marker(self):
        assert classify_family(UBUNTU_KERNEL, {}, debian_marker=True) is Family.UBUNTU

    def test_debian_marker_without_os_release(self):
        assert classify_family("Linux box 6.1.0", {}, debian_marker=True) is Family.DEBIAN

    def test_debian_kernel(self):
        assert classify_family(DEBIAN_KERNEL, {}) is Family.DEBIAN

    def test_other_linux(self):
        assert classify_family("Linux box 6.9.0-arch1", {"ID": "arch"}) is Family.OTHER_LINUX

    def test_unknown(self):
        assert classify_family("", {}) is Family.UNKNOWN


class TestParseVersion:
    def test_major_minor(self):
        assert parse_version("24.04") == (24, 4)
        assert parse_version("25.10") == (25, 10)

    def test_major_only(self):
        assert parse_version("13") == (13, 0)

    def test_missing_or_unparseable_is_zero(self):
        assert parse_version(None) == (0, 0)
        assert parse_version("") == (0, 0)
        assert parse_version("rolling") == (0, 0)

    def test_unknown_version_never_satisfies_a_threshold(self):
        info = build_platform_info("Linux", "x86_64", {"ID": "debian"})
        assert not info.version_known
        assert not info.version_at_least(0)

    def test_version_at_least(self):
        info = build_platform_info("Linux", "x86_64", {"ID": "ubuntu", "VERSION_ID": "25.10"})
        assert info.version_at_least(25, 10)
        assert not info.version_at_least(26)


class TestNormalizeArch:
    def test_x86_64(self):
        assert normalize_arch("x86_64") is Architecture.AMD64

    def test_arm_variants(self):
        assert normalize_arch("aarch64") is Architecture.ARM64
        assert normalize_arch("arm64") is Architecture.ARM64
        assert normalize_arch("armv7l") is Architecture.ARM64

    def test_unknown_defaults_to_amd64(self):
        assert normalize_arch("riscv64") is Architecture.AMD64


class TestBuildPlatformInfo:
    def test_codename_and_version(self):
        info = build_platform_info(
            UBUNTU_KERNEL, "x86_64",
            {"ID": "ubuntu", "VERSION_ID": "22.04", "VERSION_CODENAME": "jammy"},
        )
        assert info.family is Family.UBUNTU
        assert info.codename == "jammy"
        assert (info.version_major, info.version_minor) == (22, 4)
        assert "jammy" in info.describe()

    def test_no_os_release(self):
        info = build_platform_info("Darwin mac 23.5.0", "arm64", {})
        assert info.is_darwin
        assert info.codename == ""
        assert info.version_major == 0


class TestDetect:
    def test_memoized(self):
        detection.detect.cache_clear()
        try:
            with patch.object(detection, "_kernel_string", return_value=UBUNTU_KERNEL) as kernel, \
                 patch.object(detection, "_read_os_release", return_value={"ID": "ubuntu"}):
                first = detection.detect()
                second = detection.detect()
            assert first is second
            assert kernel.call_count == 1
            assert first.family is Family.UBUNTU
        finally:
            detection.detect.cache_clear()

    def test_missing_os_release_degrades(self, tmp_path):
        assert detection._read_os_release(tmp_path / "missing") == {}
