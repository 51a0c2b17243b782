"""
Release configuration manager.

Turns an InstallerConfig into the platform, the release target and the on-disk locations for a
single install run.
"""

import pathlib
from typing import Optional

from aid_installer.aid_installer_config import InstallerConfig
from aid_installer.aid_installer_utils import PlatformUtils
from aid_installer.release_models import PlatformSpec, ReleaseTarget, normalize_version

BIN_DIR_NAME = "bin"


class InstallStatus:
    """Enumeration of install statuses."""

    PENDING = "pending"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class InstallPlan:
    """
    A plan to install a specific release.

    Captures all information needed to download, extract and verify the binary.
    """

    def __init__(
        self,
        platform: PlatformSpec,
        target: ReleaseTarget,
        install_dir: pathlib.Path,
        status: str = InstallStatus.PENDING,
    ):
        """
        Initialize an install plan.

        Args:
            platform: The resolved platform
            target: The release archive to install
            install_dir: Directory receiving the binary and the temporary archive
            status: Current install status
        """
        self.platform = platform
        self.target = target
        self.install_dir = install_dir
        self.status = status
        self.error_message: Optional[str] = None

    @property
    def binary_path(self) -> pathlib.Path:
        return self.install_dir / self.platform.binary_name

    @property
    def archive_path(self) -> pathlib.Path:
        return self.install_dir / self.target.archive_name

    def __repr__(self) -> str:
        return (
            f"InstallPlan(platform={self.platform}, version={self.target.version}, "
            f"status={self.status}, url={self.target.download_url})"
        )


class ReleaseConfigManager:
    """
    Derives what to install and where from the installer configuration.
    """

    def __init__(self, config: InstallerConfig):
        self.config = config

    def resolve_platform(self) -> PlatformSpec:
        """
        Resolve the host platform, honouring configured overrides.

        Raises:
            UnsupportedPlatformError: If the platform is outside the supported matrix
        """
        return PlatformUtils.get_platform_spec(self.config.platform_os, self.config.platform_arch)

    def create_release_target(self, platform: PlatformSpec) -> ReleaseTarget:
        return ReleaseTarget.for_platform(
            platform,
            self.config.version,
            url_template=self.config.url_template,
            repository=self.config.repository,
        )

    def get_install_dir(self) -> pathlib.Path:
        return self.config.resolved_install_root() / BIN_DIR_NAME

    def create_install_plan(self, platform: Optional[PlatformSpec] = None) -> InstallPlan:
        """
        Create the install plan for this run.

        Args:
            platform: Already resolved platform, resolved from the host if omitted

        Returns:
            InstallPlan in PENDING status
        """
        if platform is None:
            platform = self.resolve_platform()
        return InstallPlan(
            platform=platform,
            target=self.create_release_target(platform),
            install_dir=self.get_install_dir(),
        )

    def mark_install_completed(
        self, plan: InstallPlan, success: bool = True, error_message: Optional[str] = None
    ) -> None:
        """
        Mark an install plan as completed or failed.
        """
        plan.status = InstallStatus.COMPLETED if success else InstallStatus.FAILED
        plan.error_message = None if success else error_message

    def manual_download_url(self, plan: Optional[InstallPlan] = None) -> str:
        """
        URL an operator can use to fetch the archive by hand.
        """
        if plan is not None:
            return plan.target.download_url
        version = normalize_version(self.config.version)
        return f"https://github.com/{self.config.repository}/releases/tag/v{version}"
