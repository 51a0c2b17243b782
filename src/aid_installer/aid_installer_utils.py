"""
This file contains various utility functions like resolving the host platform and handling files on disk.
"""

import hashlib
import logging
import os
import pathlib
import platform
import stat
from typing import Optional, Union

from aid_installer.aid_installer_exceptions import UnsupportedPlatformError
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.release_models import (
    Architecture,
    ArchiveExtension,
    OperatingSystem,
    PlatformSpec,
)

PathLike = Union[str, "os.PathLike[str]"]

# Host names as reported by platform.system(), sys.platform or node's os.platform()
_OS_ALIASES = {
    "darwin": OperatingSystem.DARWIN,
    "macos": OperatingSystem.DARWIN,
    "linux": OperatingSystem.LINUX,
    "windows": OperatingSystem.WINDOWS,
    "win32": OperatingSystem.WINDOWS,
}

# Host names as reported by platform.machine() or node's os.arch()
_ARCH_ALIASES = {
    "x86_64": Architecture.AMD64,
    "amd64": Architecture.AMD64,
    "x64": Architecture.AMD64,
    "arm64": Architecture.ARM64,
    "aarch64": Architecture.ARM64,
}

EXECUTABLE_MODE = 0o755


class PlatformUtils:
    """
    This class provides utilities for resolving the host platform.
    """

    @staticmethod
    def resolve(host_os: str, host_arch: str) -> PlatformSpec:
        """
        Map a host operating system and architecture to the release naming convention.

        Raises UnsupportedPlatformError when either is outside the platform matrix.
        """
        os_key = (host_os or "").strip().lower()
        arch_key = (host_arch or "").strip().lower()
        resolved_os = _OS_ALIASES.get(os_key)
        resolved_arch = _ARCH_ALIASES.get(arch_key)
        if resolved_os is None or resolved_arch is None:
            raise UnsupportedPlatformError(host_os, host_arch)

        archive_ext = (
            ArchiveExtension.ZIP
            if resolved_os == OperatingSystem.WINDOWS
            else ArchiveExtension.TAR_GZ
        )
        return PlatformSpec(os=resolved_os, arch=resolved_arch, archive_ext=archive_ext)

    @staticmethod
    def get_platform_spec(
        host_os: Optional[str] = None, host_arch: Optional[str] = None
    ) -> PlatformSpec:
        """
        Resolve the running host, with optional overrides for either component.
        """
        return PlatformUtils.resolve(
            host_os or platform.system(), host_arch or platform.machine()
        )


class FileUtils:
    """
    Utility functions for files on disk
    """

    @staticmethod
    def remove_file(logger: AidInstallerLogger, path: PathLike) -> bool:
        """
        Delete a file if it exists. A failure is logged and reported through the return value
        so that it never replaces an exception already being raised.
        """
        try:
            pathlib.Path(path).unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.log(f"Failed to remove {path}: {e}", logging.WARNING)
            return False
        return True

    @staticmethod
    def make_executable(path: PathLike) -> None:
        """
        Set owner read/write/execute and group/other read/execute bits.
        """
        os.chmod(path, EXECUTABLE_MODE)

    @staticmethod
    def is_executable(path: PathLike) -> bool:
        mode = pathlib.Path(path).stat().st_mode
        return bool(mode & stat.S_IXUSR)

    @staticmethod
    def sha256(path: PathLike, chunk_size: int = 64 * 1024) -> str:
        """
        Hex SHA-256 digest of a file, read in chunks.
        """
        digest = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()

    @staticmethod
    def format_size(size_bytes: int) -> str:
        size = float(size_bytes)
        for unit in ("B", "KB", "MB"):
            if size < 1024:
                return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
            size /= 1024
        return f"{size:.1f} GB"
