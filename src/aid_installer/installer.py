"""
Installs the AI Distiller binary for the running platform.

The install run is linear: resolve the platform, reuse an existing binary that already reports
the requested version, otherwise download the release archive, extract it, make the binary
executable and verify it. The downloaded archive is always removed afterwards.
"""

import dataclasses
import logging
import time
from typing import Optional

import httpx

from aid_installer.aid_installer_config import InstallerConfig
from aid_installer.aid_installer_exceptions import (
    AidInstallerException,
    ChecksumMismatchError,
    ExtractionIncompleteError,
    VerificationError,
)
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.aid_installer_utils import FileUtils
from aid_installer.release_config import InstallPlan, InstallStatus, ReleaseConfigManager
from aid_installer.release_downloader import ArchiveExtractor, ArchiveFetcher, BinaryValidator
from aid_installer.release_models import InstalledBinary, ValidationResult


@dataclasses.dataclass
class InstallResult:
    """
    Outcome of a successful install run
    """

    plan: InstallPlan
    binary: InstalledBinary
    skipped: bool
    elapsed_seconds: float


class AidInstaller:
    """
    Orchestrates platform resolution, download, extraction and verification.
    """

    def __init__(
        self,
        config: InstallerConfig,
        logger: AidInstallerLogger,
        fetcher: Optional[ArchiveFetcher] = None,
        extractor: Optional[ArchiveExtractor] = None,
        validator: Optional[BinaryValidator] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the installer.

        Args:
            config: Installer configuration
            logger: Logger for progress and error messages
            fetcher: Archive fetcher, built from config if omitted
            extractor: Archive extractor, built from config if omitted
            validator: Binary validator, built from config if omitted
            transport: httpx transport for the default fetcher
        """
        self.config = config
        self.logger = logger
        self.config_manager = ReleaseConfigManager(config)
        self.fetcher = fetcher or ArchiveFetcher(
            logger,
            max_redirects=config.max_redirects,
            timeout=config.download_timeout,
            chunk_size=config.chunk_size,
            transport=transport,
        )
        self.extractor = extractor or ArchiveExtractor(
            logger, use_native_tools=config.use_native_tools
        )
        self.validator = validator or BinaryValidator(logger, timeout=config.validation_timeout)
        self.plan: Optional[InstallPlan] = None

    def create_plan(self) -> InstallPlan:
        """
        Resolve the platform and build the install plan for this run.

        Raises:
            UnsupportedPlatformError: If the host platform is not supported
        """
        if self.plan is None:
            self.plan = self.config_manager.create_install_plan()
        return self.plan

    def install(self) -> InstallResult:
        """
        Ensure the requested version of the binary is installed.

        Returns:
            InstallResult describing the installed binary

        Raises:
            AidInstallerException: If any step fails, after marking the plan FAILED
        """
        start = time.monotonic()
        plan = self.create_plan()
        self.logger.log(
            f"Installing AI Distiller v{plan.target.version} for {plan.platform}", logging.INFO
        )

        existing = self._check_existing_binary(plan)
        if existing is not None:
            plan.status = InstallStatus.SKIPPED
            return InstallResult(
                plan=plan,
                binary=existing,
                skipped=True,
                elapsed_seconds=time.monotonic() - start,
            )

        plan.status = InstallStatus.IN_PROGRESS
        try:
            binary = self._download_and_install(plan)
        except (AidInstallerException, OSError) as e:
            self.logger.log(f"Installation failed: {e}", logging.ERROR)
            self.config_manager.mark_install_completed(plan, success=False, error_message=str(e))
            raise

        self.config_manager.mark_install_completed(plan, success=True)
        elapsed = time.monotonic() - start
        self.logger.log(
            f"AI Distiller v{binary.reported_version} installed to {binary.path} "
            f"({FileUtils.format_size(binary.size_bytes)}) in {elapsed:.1f}s",
            logging.INFO,
        )
        return InstallResult(plan=plan, binary=binary, skipped=False, elapsed_seconds=elapsed)

    def check(self) -> ValidationResult:
        """
        Validate the installed binary without downloading or changing anything.
        """
        plan = self.create_plan()
        if not plan.binary_path.exists():
            self.logger.log(f"AI Distiller binary not found at {plan.binary_path}", logging.WARNING)
            return ValidationResult(matches=False, reported_version=None)
        return self.validator.validate(plan.binary_path, plan.target.version)

    def _check_existing_binary(self, plan: InstallPlan) -> Optional[InstalledBinary]:
        """
        Returns the existing binary if it already reports the requested version, otherwise
        removes it and returns None.
        """
        binary_path = plan.binary_path
        if not binary_path.exists():
            return None

        if self.config.force:
            self.logger.log(f"Reinstalling over existing binary at {binary_path}", logging.INFO)
        else:
            result = self.validator.validate(binary_path, plan.target.version)
            if result.matches:
                self.logger.log(
                    f"AI Distiller v{result.reported_version} is already installed at {binary_path}",
                    logging.INFO,
                )
                return InstalledBinary.from_path(binary_path, result.reported_version)
            if result.reported_version is None:
                self.logger.log(f"Existing binary at {binary_path} is not usable, reinstalling", logging.INFO)
            else:
                self.logger.log(
                    f"Existing binary reports v{result.reported_version}, "
                    f"v{plan.target.version} requested, reinstalling",
                    logging.INFO,
                )

        FileUtils.remove_file(self.logger, binary_path)
        return None

    def _download_and_install(self, plan: InstallPlan) -> InstalledBinary:
        plan.install_dir.mkdir(parents=True, exist_ok=True)
        archive_path = plan.archive_path
        try:
            size = self.fetcher.fetch(plan.target.download_url, archive_path)
            self.logger.log(f"Archive size: {FileUtils.format_size(size)}", logging.INFO)

            if self.config.expected_sha256:
                self._verify_checksum(plan)

            self.extractor.extract(archive_path, plan.install_dir, plan.platform.os)

            binary_path = plan.binary_path
            if not binary_path.exists():
                raise ExtractionIncompleteError(str(binary_path))

            if not plan.platform.is_windows:
                FileUtils.make_executable(binary_path)

            result = self.validator.validate(binary_path, plan.target.version)
            if not result.matches:
                raise VerificationError(
                    str(binary_path), plan.target.version, result.reported_version
                )
            return InstalledBinary.from_path(binary_path, result.reported_version)
        finally:
            if archive_path.exists():
                self.logger.log(f"Removing {archive_path.name}", logging.DEBUG)
                FileUtils.remove_file(self.logger, archive_path)

    def _verify_checksum(self, plan: InstallPlan) -> None:
        actual = FileUtils.sha256(plan.archive_path, self.config.chunk_size)
        if actual != self.config.expected_sha256:
            raise ChecksumMismatchError(plan.target.download_url, self.config.expected_sha256, actual)
        self.logger.log("Archive checksum verified", logging.INFO)
