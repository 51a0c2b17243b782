"""
End to end tests for the install run, with the network replaced by an httpx.MockTransport.

The scenarios cover:
1. A fresh install downloads, extracts and verifies the binary, then removes the archive
2. An existing binary with the requested version is reused without any network traffic
3. A binary with another version is replaced by exactly one download
4. Each failing step aborts the run, marks the plan failed and still removes the archive
"""

import hashlib
import os
import stat
import sys

import httpx
import pytest

from aid_installer.aid_installer_exceptions import (
    ChecksumMismatchError,
    DownloadError,
    ExtractionError,
    ExtractionIncompleteError,
    UnsupportedPlatformError,
    VerificationError,
)
from aid_installer.installer import AidInstaller
from aid_installer.release_config import InstallStatus
from tests.test_utils import (
    DOWNLOAD_PREFIX,
    build_tar_gz,
    create_test_context,
    release_archive,
    serve,
    write_fake_binary,
)

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake binaries are shell scripts")

ARCHIVE_NAME = "aid-linux-amd64-v1.3.0.tar.gz"
ARCHIVE_URL = f"{DOWNLOAD_PREFIX}/v1.3.0/{ARCHIVE_NAME}"
CDN_URL = "https://objects.githubusercontent.com/github-production-release-asset/aid.tar.gz"


def release_server(archive: bytes):
    """GitHub answers with a redirect to its asset CDN."""
    return serve(
        {
            ARCHIVE_URL: httpx.Response(302, headers={"Location": CDN_URL}),
            CDN_URL: httpx.Response(200, content=archive),
        }
    )


class TestFreshInstall:
    def test_installs_requested_version(self, tmp_path):
        with create_test_context(tmp_path) as context:
            server = release_server(release_archive("1.3.0"))
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            result = installer.install()

            binary_path = context.bin_dir / "aid"
            assert server.urls == [ARCHIVE_URL, CDN_URL]
            assert not result.skipped
            assert result.binary.path == str(binary_path)
            assert result.binary.reported_version == "1.3.0"
            assert result.binary.size_bytes == binary_path.stat().st_size
            assert result.plan.status == InstallStatus.COMPLETED
            assert stat.S_IMODE(os.stat(binary_path).st_mode) == 0o755
            assert not (context.bin_dir / ARCHIVE_NAME).exists()

    def test_creates_bin_directory(self, tmp_path):
        with create_test_context(tmp_path / "nested" / "root") as context:
            server = release_server(release_archive("1.3.0"))
            AidInstaller(context.config, context.logger, transport=server.transport).install()
            assert (context.bin_dir / "aid").is_file()

    def test_sets_execute_bits_missing_from_archive(self, tmp_path):
        script = b'#!/bin/sh\necho "aid version 1.3.0"\n'
        archive = build_tar_gz({"aid": (script, 0o644)})
        with create_test_context(tmp_path, use_native_tools=False) as context:
            server = release_server(archive)
            AidInstaller(context.config, context.logger, transport=server.transport).install()
            assert stat.S_IMODE(os.stat(context.bin_dir / "aid").st_mode) == 0o755

    def test_installs_with_library_extraction(self, tmp_path, monkeypatch):
        monkeypatch.setattr("aid_installer.release_downloader.extractor.shutil.which", lambda name: None)
        with create_test_context(tmp_path) as context:
            server = release_server(release_archive("1.3.0"))
            result = AidInstaller(context.config, context.logger, transport=server.transport).install()
            assert result.binary.reported_version == "1.3.0"

    def test_verifies_configured_checksum(self, tmp_path):
        archive = release_archive("1.3.0")
        digest = hashlib.sha256(archive).hexdigest()
        with create_test_context(tmp_path, expected_sha256=digest.upper()) as context:
            server = release_server(archive)
            result = AidInstaller(context.config, context.logger, transport=server.transport).install()
            assert result.binary.reported_version == "1.3.0"


class TestExistingBinary:
    def test_matching_version_skips_network(self, tmp_path):
        with create_test_context(tmp_path) as context:
            write_fake_binary(context.bin_dir / "aid", "1.3.0")
            server = serve({})
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            result = installer.install()

            assert result.skipped
            assert result.binary.reported_version == "1.3.0"
            assert result.plan.status == InstallStatus.SKIPPED
            assert server.requests == []

    def test_version_mismatch_is_replaced(self, tmp_path):
        with create_test_context(tmp_path) as context:
            write_fake_binary(context.bin_dir / "aid", "1.2.0")
            server = release_server(release_archive("1.3.0"))

            result = AidInstaller(context.config, context.logger, transport=server.transport).install()

            assert not result.skipped
            assert server.urls.count(ARCHIVE_URL) == 1
            assert result.binary.reported_version == "1.3.0"
            assert "1.3.0" in (context.bin_dir / "aid").read_text()

    def test_unusable_binary_is_replaced(self, tmp_path):
        with create_test_context(tmp_path) as context:
            context.bin_dir.mkdir(parents=True)
            (context.bin_dir / "aid").write_bytes(b"\x7fELF truncated")
            server = release_server(release_archive("1.3.0"))

            result = AidInstaller(context.config, context.logger, transport=server.transport).install()

            assert result.binary.reported_version == "1.3.0"

    def test_force_reinstalls_matching_version(self, tmp_path):
        with create_test_context(tmp_path, force=True) as context:
            write_fake_binary(context.bin_dir / "aid", "1.3.0")
            server = release_server(release_archive("1.3.0"))

            result = AidInstaller(context.config, context.logger, transport=server.transport).install()

            assert not result.skipped
            assert ARCHIVE_URL in server.urls

    def test_check_reports_installed_version(self, tmp_path):
        with create_test_context(tmp_path) as context:
            write_fake_binary(context.bin_dir / "aid", "1.3.0")
            result = AidInstaller(context.config, context.logger).check()
            assert result.matches

    def test_check_missing_binary(self, tmp_path):
        with create_test_context(tmp_path) as context:
            result = AidInstaller(context.config, context.logger).check()
            assert not result.matches
            assert result.reported_version is None
            assert not context.bin_dir.exists()


class TestFailures:
    def test_not_found(self, tmp_path):
        with create_test_context(tmp_path) as context:
            installer = AidInstaller(context.config, context.logger, transport=serve({}).transport)

            with pytest.raises(DownloadError) as exc_info:
                installer.install()

            assert exc_info.value.status_code == 404
            assert installer.plan.status == InstallStatus.FAILED
            assert installer.plan.error_message
            assert not (context.bin_dir / ARCHIVE_NAME).exists()
            assert not (context.bin_dir / "aid").exists()

    def test_corrupt_archive_is_removed(self, tmp_path):
        with create_test_context(tmp_path, use_native_tools=False) as context:
            server = release_server(b"not an archive")
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            with pytest.raises(ExtractionError):
                installer.install()

            assert not (context.bin_dir / ARCHIVE_NAME).exists()

    def test_archive_without_binary(self, tmp_path):
        archive = build_tar_gz({"README.md": (b"nothing here\n", 0o644)})
        with create_test_context(tmp_path) as context:
            server = release_server(archive)
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            with pytest.raises(ExtractionIncompleteError) as exc_info:
                installer.install()

            assert exc_info.value.binary_path == str(context.bin_dir / "aid")
            assert not (context.bin_dir / ARCHIVE_NAME).exists()

    def test_binary_reports_wrong_version(self, tmp_path):
        with create_test_context(tmp_path) as context:
            server = release_server(release_archive("1.3.0", reported_version="1.2.0"))
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            with pytest.raises(VerificationError) as exc_info:
                installer.install()

            assert exc_info.value.reported_version == "1.2.0"
            assert exc_info.value.expected_version == "1.3.0"
            assert installer.plan.status == InstallStatus.FAILED
            assert not (context.bin_dir / ARCHIVE_NAME).exists()

    def test_checksum_mismatch(self, tmp_path):
        with create_test_context(tmp_path, expected_sha256="0" * 64) as context:
            server = release_server(release_archive("1.3.0"))
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            with pytest.raises(ChecksumMismatchError):
                installer.install()

            assert not (context.bin_dir / ARCHIVE_NAME).exists()
            assert not (context.bin_dir / "aid").exists()

    def test_unsupported_platform(self, tmp_path):
        with create_test_context(tmp_path, platform_os="freebsd") as context:
            server = serve({})
            installer = AidInstaller(context.config, context.logger, transport=server.transport)

            with pytest.raises(UnsupportedPlatformError):
                installer.install()

            assert server.requests == []
            assert installer.plan is None
