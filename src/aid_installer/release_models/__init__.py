"""
Release models for aid_installer.

This package provides Pydantic data models for the host platform, the release archive
that matches it, and the installed binary.
"""

from .release import (
    Architecture,
    ArchiveExtension,
    InstalledBinary,
    OperatingSystem,
    PlatformSpec,
    ReleaseTarget,
    ValidationResult,
    normalize_version,
)

__all__ = [
    "Architecture",
    "ArchiveExtension",
    "InstalledBinary",
    "OperatingSystem",
    "PlatformSpec",
    "ReleaseTarget",
    "ValidationResult",
    "normalize_version",
]
