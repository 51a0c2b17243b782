"""
This file contains various exceptions raised by aid_installer
"""

from typing import Optional


class AidInstallerException(Exception):
    """
    Exceptions raised by aid_installer
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InstallerConfigError(AidInstallerException):
    """
    Raised when installer configuration cannot be read or holds an invalid value
    """


class UnsupportedPlatformError(AidInstallerException):
    """
    Raised when the host operating system or CPU architecture is outside the platform matrix
    """

    def __init__(self, host_os: str, host_arch: str):
        super().__init__(
            f"Unsupported platform: {host_os}/{host_arch}. "
            "Supported platforms are darwin, linux and windows on amd64 (x64) or arm64."
        )
        self.host_os = host_os
        self.host_arch = host_arch


class DownloadError(AidInstallerException):
    """
    Raised when a release archive cannot be downloaded
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class TooManyRedirectsError(DownloadError):
    """
    Raised when a download is redirected more times than allowed
    """

    def __init__(self, url: str, max_redirects: int):
        super().__init__(f"Exceeded {max_redirects} redirects while downloading {url}", url)
        self.max_redirects = max_redirects


class ChecksumMismatchError(DownloadError):
    """
    Raised when a downloaded archive does not match the configured SHA-256 digest
    """

    def __init__(self, url: str, expected: str, actual: str):
        super().__init__(
            f"Checksum mismatch for {url}: expected sha256 {expected}, got {actual}", url
        )
        self.expected = expected
        self.actual = actual


class ExtractionError(AidInstallerException):
    """
    Raised when a release archive cannot be extracted
    """


class ExtractionIncompleteError(ExtractionError):
    """
    Raised when extraction finished but the expected binary is not present
    """

    def __init__(self, binary_path: str):
        super().__init__(f"Binary not found after extraction: {binary_path}")
        self.binary_path = binary_path


class VerificationError(AidInstallerException):
    """
    Raised when the installed binary does not run or reports the wrong version
    """

    def __init__(self, binary_path: str, expected_version: str, reported_version: Optional[str]):
        if reported_version is None:
            detail = "it could not be executed or did not report a version"
        else:
            detail = f"it reports version {reported_version}"
        super().__init__(
            f"Installed binary {binary_path} failed verification: expected version "
            f"{expected_version}, but {detail}"
        )
        self.binary_path = binary_path
        self.expected_version = expected_version
        self.reported_version = reported_version
