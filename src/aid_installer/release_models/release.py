"""
Pydantic data models describing a platform, the release to install for it, and the binary on disk.

These values are transient: they are derived once per run from the host, the configuration and
the filesystem, and are never persisted.
"""

import os
import pathlib
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from aid_installer.aid_installer_config import DEFAULT_REPOSITORY, DEFAULT_URL_TEMPLATE

BINARY_BASENAME = "aid"


class OperatingSystem(str, Enum):
    """
    Operating systems in the release naming convention.
    """

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"


class Architecture(str, Enum):
    """
    CPU architectures in the release naming convention.
    """

    AMD64 = "amd64"
    ARM64 = "arm64"


class ArchiveExtension(str, Enum):
    """
    Archive formats used for release bundles.
    """

    TAR_GZ = "tar.gz"
    ZIP = "zip"


def normalize_version(version: str) -> str:
    """Strip surrounding whitespace and a leading 'v' so that 'v1.3.0' and '1.3.0' compare equal."""
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return version


class PlatformSpec(BaseModel):
    """
    The resolved host platform, expressed in the vendor's naming convention.
    """

    model_config = ConfigDict(frozen=True)

    os: OperatingSystem = Field(..., description="Operating system")
    arch: Architecture = Field(..., description="CPU architecture")
    archive_ext: ArchiveExtension = Field(..., description="Extension of the release archive")

    @property
    def is_windows(self) -> bool:
        return self.os == OperatingSystem.WINDOWS

    @property
    def binary_name(self) -> str:
        """Name of the executable inside the archive."""
        return f"{BINARY_BASENAME}.exe" if self.is_windows else BINARY_BASENAME

    def __str__(self) -> str:
        return f"{self.os.value}/{self.arch.value}"


class ReleaseTarget(BaseModel):
    """
    A specific release archive to download.

    The archive name follows the template aid-<os>-<arch>-v<version>.<ext>.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., description="Version without a leading 'v'")
    archive_name: str = Field(..., description="File name of the release archive")
    download_url: str = Field(..., description="URL the archive is downloaded from")
    repository: str = Field(DEFAULT_REPOSITORY, description="GitHub owner/repository")

    @classmethod
    def for_platform(
        cls,
        platform: PlatformSpec,
        version: str,
        url_template: str = DEFAULT_URL_TEMPLATE,
        repository: str = DEFAULT_REPOSITORY,
    ) -> "ReleaseTarget":
        """
        Build the release target for a platform and version.

        Args:
            platform: The resolved platform
            version: Requested version, with or without a leading 'v'
            url_template: Template with {repository}, {version} and {archive_name} fields
            repository: GitHub owner/repository hosting the releases

        Returns:
            ReleaseTarget for the given platform and version
        """
        version = normalize_version(version)
        archive_name = (
            f"{BINARY_BASENAME}-{platform.os.value}-{platform.arch.value}"
            f"-v{version}.{platform.archive_ext.value}"
        )
        download_url = url_template.format(
            repository=repository, version=version, archive_name=archive_name
        )
        return cls(
            version=version,
            archive_name=archive_name,
            download_url=download_url,
            repository=repository,
        )


class InstalledBinary(BaseModel):
    """
    The binary as it currently exists on disk.

    The filesystem is the source of truth, so this is rebuilt on every run.
    """

    path: str
    reported_version: Optional[str] = None
    size_bytes: int = 0

    @classmethod
    def from_path(
        cls, path: Union[str, "os.PathLike[str]"], reported_version: Optional[str]
    ) -> "InstalledBinary":
        binary_path = pathlib.Path(path)
        return cls(
            path=str(binary_path),
            reported_version=reported_version,
            size_bytes=binary_path.stat().st_size,
        )


class ValidationResult(BaseModel):
    """
    Outcome of running a binary with --version.
    """

    matches: bool
    reported_version: Optional[str] = None
