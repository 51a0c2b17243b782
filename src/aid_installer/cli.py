"""Command line entry point, run by a package manager's install hook or by hand."""

import logging
import sys
from typing import Any, Mapping, Optional

import click

from aid_installer.aid_installer_config import (
    CONFIG_TOML_SCHEMA,
    InstallerConfig,
    env_overrides,
)
from aid_installer.aid_installer_exceptions import AidInstallerException, InstallerConfigError
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.installer import AidInstaller


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> InstallerConfig:
    """Build the effective configuration.

    Precedence, highest first: explicit overrides, AID_INSTALLER_* environment variables,
    the [installer] table of config_path, built-in defaults.
    """
    config = InstallerConfig.from_toml(config_path) if config_path else InstallerConfig()
    return config.merged(**env_overrides(environ)).merged(**overrides)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
    logging.getLogger("aid_installer").setLevel(level)


def _print_remediation(installer: AidInstaller, error: BaseException) -> None:
    manual_url = installer.config_manager.manual_download_url(installer.plan)
    install_dir = installer.config_manager.get_install_dir()
    click.echo(f"Installation failed: {error}", err=True)
    click.echo("", err=True)
    click.echo("You can install AI Distiller manually:", err=True)
    click.echo(f"  1. Download {manual_url}", err=True)
    click.echo(f"  2. Extract it into {install_dir}", err=True)


def _run_check(installer: AidInstaller) -> None:
    try:
        plan = installer.create_plan()
        result = installer.check()
    except (AidInstallerException, OSError) as e:
        click.echo(f"Check failed: {e}", err=True)
        raise SystemExit(1) from None

    if result.matches:
        click.echo(f"AI Distiller v{result.reported_version} is installed")
        return
    requested = plan.target.version
    if not plan.binary_path.exists():
        click.echo(f"AI Distiller v{requested} is not installed at {plan.binary_path}", err=True)
    elif result.reported_version is None:
        click.echo(f"AI Distiller at {plan.binary_path} is not usable, v{requested} requested", err=True)
    else:
        click.echo(
            f"AI Distiller at {plan.binary_path} reports v{result.reported_version}, v{requested} requested",
            err=True,
        )
    raise SystemExit(1)


@click.command("aid-install")
@click.option("--release", "release", default=None, help="Version to install, defaults to this package's version.")
@click.option(
    "--install-root",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory that receives bin/aid.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TOML file with an [installer] table.",
)
@click.option("--force", is_flag=True, help="Reinstall even if the requested version is present.")
@click.option("--check", is_flag=True, help="Only verify the installed binary, never download.")
@click.option("--no-native-tools", is_flag=True, help="Always extract with the built-in library.")
@click.option("--max-redirects", type=int, default=None, help="Maximum HTTP redirects to follow.")
@click.option("-v", "--verbose", is_flag=True, help="Log every step, including archive entries.")
@click.option("--json-logs", is_flag=True, help="Emit log lines as JSON.")
@click.option("--show-config-template", is_flag=True, help="Print an example config file and exit.")
def main(
    release: Optional[str],
    install_root: Optional[str],
    config_path: Optional[str],
    force: bool,
    check: bool,
    no_native_tools: bool,
    max_redirects: Optional[int],
    verbose: bool,
    json_logs: bool,
    show_config_template: bool,
) -> None:
    """Download and install the AI Distiller binary for this platform."""
    if show_config_template:
        click.echo(CONFIG_TOML_SCHEMA.strip())
        return

    _configure_logging(verbose)
    logger = AidInstallerLogger(json_output=json_logs)

    try:
        config = load_config(
            config_path,
            version=release,
            install_root=install_root,
            max_redirects=max_redirects,
            # Unset flags must not override the config file or environment
            force=True if force else None,
            use_native_tools=False if no_native_tools else None,
        )
    except InstallerConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None

    installer = AidInstaller(config, logger)
    if check:
        _run_check(installer)
        return

    try:
        installer.install()
    except (AidInstallerException, OSError) as e:
        _print_remediation(installer, e)
        raise SystemExit(1) from None
