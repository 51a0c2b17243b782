"""
Binary validator implementation.

Runs an installed binary with --version and compares the reported version with the one requested.
"""

import logging
import pathlib
import re
import subprocess
from typing import Optional

from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.aid_installer_utils import PathLike
from aid_installer.release_models import ValidationResult, normalize_version

VERSION_PATTERN = re.compile(r"(\d+\.\d+\.\d+)")
VERSION_FLAG = "--version"


class BinaryValidator:
    """
    Checks that a binary runs and reports the expected version.

    A binary that cannot be run is reported as not matching rather than raising, since for an
    existing install that only means it has to be replaced.
    """

    def __init__(self, logger: AidInstallerLogger, timeout: Optional[float] = 30.0):
        self.logger = logger
        self.timeout = timeout

    def validate(self, binary_path: PathLike, expected_version: str) -> ValidationResult:
        """
        Run binary_path --version and compare the reported version with expected_version.

        Args:
            binary_path: Path of the binary to run
            expected_version: Version the binary should report, with or without a leading 'v'

        Returns:
            ValidationResult with the reported version, or None if the binary is unusable
        """
        reported_version = self.read_version(binary_path)
        matches = reported_version is not None and reported_version == normalize_version(
            expected_version
        )
        return ValidationResult(matches=matches, reported_version=reported_version)

    def read_version(self, binary_path: PathLike) -> Optional[str]:
        """
        The dotted version triplet printed by the binary, or None if it is unusable.
        """
        path = pathlib.Path(binary_path)
        try:
            result = subprocess.run(
                [str(path), VERSION_FLAG],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            self.logger.log(f"{path} {VERSION_FLAG} timed out after {self.timeout}s", logging.WARNING)
            return None
        except OSError as e:
            self.logger.log(f"Could not run {path}: {e}", logging.WARNING)
            return None

        if result.returncode != 0:
            self.logger.log(
                f"{path} {VERSION_FLAG} exited with code {result.returncode}", logging.WARNING
            )
            return None

        match = VERSION_PATTERN.search(result.stdout or "")
        if match is None:
            self.logger.log(f"{path} did not report a version", logging.WARNING)
            return None
        return match.group(1)
