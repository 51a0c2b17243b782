"""
This package installs the native AI Distiller (``aid``) binary for the running platform.

The installer resolves the host platform, downloads the matching GitHub release archive,
extracts it, and verifies the resulting executable by asking it for its version.
"""

__version__ = "1.3.0"

from aid_installer.aid_installer_config import InstallerConfig
from aid_installer.aid_installer_exceptions import AidInstallerException
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.installer import AidInstaller, InstallResult

__all__ = [
    "__version__",
    "AidInstaller",
    "AidInstallerException",
    "AidInstallerLogger",
    "InstallResult",
    "InstallerConfig",
]
