"""
Archive extractor implementation.

The in-process tarfile/zipfile implementation always works. When a native archive tool is
found on PATH it is tried first, because it is considerably faster on large archives; if it
fails, the failure is logged and the in-process implementation runs instead.
"""

import logging
import os
import pathlib
import shutil
import subprocess
import tarfile
import time
import zipfile
from typing import List, Optional

from aid_installer.aid_installer_exceptions import ExtractionError
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.aid_installer_utils import PathLike
from aid_installer.release_models import ArchiveExtension, OperatingSystem


def _powershell_quote(path: PathLike) -> str:
    """Escape a path for use inside a single-quoted PowerShell string."""
    return str(path).replace("'", "''")


class ArchiveExtractor:
    """
    Unpacks a release archive into a directory.
    """

    def __init__(self, logger: AidInstallerLogger, use_native_tools: bool = True):
        """
        Initialize the archive extractor.

        Args:
            logger: Logger for progress and error messages
            use_native_tools: Whether to try archive tools found on PATH before the library
        """
        self.logger = logger
        self.use_native_tools = use_native_tools

    def extract(
        self,
        archive_path: PathLike,
        destination_dir: PathLike,
        platform_os: OperatingSystem,
    ) -> None:
        """
        Extract archive_path into destination_dir, creating the directory if needed.

        Raises:
            ExtractionError: If the archive format is unknown or the archive cannot be read
        """
        archive = pathlib.Path(archive_path)
        destination = pathlib.Path(destination_dir)
        destination.mkdir(parents=True, exist_ok=True)
        archive_format = self.detect_format(archive)

        self.logger.log(f"Extracting {archive.name} to {destination}", logging.INFO)
        start = time.monotonic()

        method = None
        if self.use_native_tools:
            method = self._extract_with_native_tool(archive, destination, platform_os, archive_format)
        if method is None:
            self._extract_with_library(archive, destination, archive_format)
            method = "tarfile" if archive_format == ArchiveExtension.TAR_GZ else "zipfile"

        elapsed = time.monotonic() - start
        self.logger.log(f"Extraction complete using {method} in {elapsed:.1f}s", logging.INFO)

    @staticmethod
    def detect_format(archive: pathlib.Path) -> ArchiveExtension:
        name = archive.name.lower()
        if name.endswith((".tar.gz", ".tgz")):
            return ArchiveExtension.TAR_GZ
        if name.endswith(".zip"):
            return ArchiveExtension.ZIP
        raise ExtractionError(f"Unsupported archive format: {archive.name}")

    def native_commands(
        self,
        archive: pathlib.Path,
        destination: pathlib.Path,
        platform_os: OperatingSystem,
        archive_format: ArchiveExtension,
    ) -> List[List[str]]:
        """
        Candidate native extraction commands, in order of preference, whose tool is on PATH.
        """
        commands = []
        if platform_os == OperatingSystem.WINDOWS:
            powershell = shutil.which("powershell") or shutil.which("pwsh")
            if powershell and archive_format == ArchiveExtension.ZIP:
                commands.append(
                    [
                        powershell,
                        "-NoProfile",
                        "-NonInteractive",
                        "-Command",
                        f"Expand-Archive -LiteralPath '{_powershell_quote(archive)}' "
                        f"-DestinationPath '{_powershell_quote(destination)}' -Force",
                    ]
                )
            tar = shutil.which("tar")
            if tar:
                commands.append([tar, "-xf", str(archive), "-C", str(destination)])
        elif archive_format == ArchiveExtension.TAR_GZ:
            tar = shutil.which("tar")
            if tar:
                commands.append([tar, "-xzf", str(archive), "-C", str(destination)])
        else:
            unzip = shutil.which("unzip")
            if unzip:
                commands.append([unzip, "-o", "-q", str(archive), "-d", str(destination)])
        return commands

    def _extract_with_native_tool(
        self,
        archive: pathlib.Path,
        destination: pathlib.Path,
        platform_os: OperatingSystem,
        archive_format: ArchiveExtension,
    ) -> Optional[str]:
        """
        Returns the name of the tool that extracted the archive, or None if none did.
        """
        commands = self.native_commands(archive, destination, platform_os, archive_format)
        if not commands:
            self.logger.log("No native archive tool found, using built-in extraction", logging.DEBUG)
            return None

        for cmd in commands:
            tool = pathlib.Path(cmd[0]).stem
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, check=False)
            except OSError as e:
                self.logger.log(f"Could not run {tool}: {e}", logging.WARNING)
                continue
            if result.returncode == 0:
                return tool
            self.logger.log(
                f"{tool} exited with code {result.returncode}: {result.stderr.strip()}",
                logging.WARNING,
            )

        self.logger.log("Native extraction failed, falling back to built-in extraction", logging.INFO)
        return None

    def _extract_with_library(
        self,
        archive: pathlib.Path,
        destination: pathlib.Path,
        archive_format: ArchiveExtension,
    ) -> None:
        try:
            if archive_format == ArchiveExtension.TAR_GZ:
                self._extract_tar(archive, destination)
            else:
                self._extract_zip(archive, destination)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, OSError) as e:
            raise ExtractionError(
                f"Failed to extract {archive}: {e}. "
                f"Please extract the archive manually into {destination}"
            ) from e

    def _extract_tar(self, archive: pathlib.Path, destination: pathlib.Path) -> None:
        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                self._check_member_path(destination, member.name)
                self.logger.log(f"Extracting {member.name}", logging.DEBUG)
                if hasattr(tarfile, "data_filter"):
                    tar.extract(member, destination, filter="data")
                else:
                    tar.extract(member, destination)

    def _extract_zip(self, archive: pathlib.Path, destination: pathlib.Path) -> None:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                self._check_member_path(destination, info.filename)
                self.logger.log(f"Extracting {info.filename}", logging.DEBUG)
                extracted = zf.extract(info, destination)
                # zipfile drops permission bits, restore them when the archive recorded any
                mode = (info.external_attr >> 16) & 0o777
                if mode and not info.is_dir():
                    os.chmod(extracted, mode)

    @staticmethod
    def _check_member_path(destination: pathlib.Path, name: str) -> None:
        root = destination.resolve()
        target = (root / name).resolve()
        if target != root and root not in target.parents:
            raise ExtractionError(f"Archive entry {name} would be extracted outside {destination}")
