"""
Release configuration management.

This package handles:
1. Resolving the platform to install for
2. Building the release target from the configured version and repository
3. Deciding where the binary and the temporary archive live
"""

from .config_manager import InstallPlan, InstallStatus, ReleaseConfigManager

__all__ = ["InstallPlan", "InstallStatus", "ReleaseConfigManager"]
