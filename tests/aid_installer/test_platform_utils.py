"""
Tests for resolving the host platform.
"""

import pytest

from aid_installer.aid_installer_exceptions import UnsupportedPlatformError
from aid_installer.aid_installer_utils import PlatformUtils
from aid_installer.release_models import Architecture, ArchiveExtension, OperatingSystem


class TestResolve:
    """Tests for PlatformUtils.resolve."""

    @pytest.mark.parametrize(
        "host_os, host_arch, expected",
        [
            ("darwin", "x64", ("darwin", "amd64", "tar.gz")),
            ("darwin", "arm64", ("darwin", "arm64", "tar.gz")),
            ("linux", "x64", ("linux", "amd64", "tar.gz")),
            ("linux", "arm64", ("linux", "arm64", "tar.gz")),
            ("win32", "x64", ("windows", "amd64", "zip")),
            ("win32", "arm64", ("windows", "arm64", "zip")),
        ],
    )
    def test_supported_matrix(self, host_os, host_arch, expected):
        spec = PlatformUtils.resolve(host_os, host_arch)
        assert (spec.os.value, spec.arch.value, spec.archive_ext.value) == expected

    @pytest.mark.parametrize(
        "host_os, host_arch",
        [
            ("Linux", "x86_64"),
            ("Darwin", "AMD64"),
            ("Windows", "AMD64"),
            ("linux", "aarch64"),
        ],
    )
    def test_python_host_spellings(self, host_os, host_arch):
        """Values reported by platform.system() and platform.machine() are accepted."""
        spec = PlatformUtils.resolve(host_os, host_arch)
        assert spec.arch in (Architecture.AMD64, Architecture.ARM64)

    @pytest.mark.parametrize(
        "host_os, host_arch",
        [
            ("freebsd", "x64"),
            ("sunos", "arm64"),
            ("linux", "ia32"),
            ("darwin", "ppc64"),
            ("aix", "s390x"),
            ("", ""),
        ],
    )
    def test_unsupported_platforms(self, host_os, host_arch):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            PlatformUtils.resolve(host_os, host_arch)
        assert exc_info.value.host_os == host_os
        assert exc_info.value.host_arch == host_arch

    def test_windows_uses_zip_and_exe(self):
        spec = PlatformUtils.resolve("windows", "amd64")
        assert spec.os == OperatingSystem.WINDOWS
        assert spec.archive_ext == ArchiveExtension.ZIP
        assert spec.is_windows
        assert spec.binary_name == "aid.exe"

    def test_unix_binary_name(self):
        assert PlatformUtils.resolve("linux", "amd64").binary_name == "aid"


class TestGetPlatformSpec:
    """Tests for PlatformUtils.get_platform_spec."""

    def test_overrides_take_precedence(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Plan9")
        monkeypatch.setattr("platform.machine", lambda: "mips")
        spec = PlatformUtils.get_platform_spec("darwin", "arm64")
        assert str(spec) == "darwin/arm64"

    def test_reads_host(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Linux")
        monkeypatch.setattr("platform.machine", lambda: "aarch64")
        spec = PlatformUtils.get_platform_spec()
        assert spec.os == OperatingSystem.LINUX
        assert spec.arch == Architecture.ARM64

    def test_unsupported_host(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Plan9")
        monkeypatch.setattr("platform.machine", lambda: "x86_64")
        with pytest.raises(UnsupportedPlatformError):
            PlatformUtils.get_platform_spec()
