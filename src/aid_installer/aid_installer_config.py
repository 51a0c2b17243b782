"""
Configuration parameters for aid_installer.
"""

import dataclasses
import inspect
import os
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from aid_installer.aid_installer_exceptions import InstallerConfigError

DEFAULT_REPOSITORY = "janreges/ai-distiller"
DEFAULT_URL_TEMPLATE = (
    "https://github.com/{repository}/releases/download/v{version}/{archive_name}"
)
ENV_PREFIX = "AID_INSTALLER_"
STRING_FIELDS = (
    "install_root",
    "repository",
    "url_template",
    "expected_sha256",
    "platform_os",
    "platform_arch",
)

CONFIG_TOML_SCHEMA = """
# aid-installer configuration

[installer]
# Release to install, defaults to the version of the aid-installer package
# version = "1.3.0"

# Directory holding bin/, defaults to the aid_installer package directory
# install_root = "/opt/aid"

# Follow at most this many HTTP redirects
# max_redirects = 5

# Optional SHA-256 digest of the release archive
# expected_sha256 = "..."
"""


def _default_version() -> str:
    from aid_installer import __version__

    return __version__


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise InstallerConfigError(f"Invalid boolean for {key}: {value!r}")


def _parse_optional_float(key: str, value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none")):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InstallerConfigError(f"Invalid number for {key}: {value!r}") from e


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InstallerConfigError(f"Invalid integer for {key}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InstallerConfigError(f"Invalid integer for {key}: {value!r}") from e


def _parse_optional_str(key: str, value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise InstallerConfigError(f"Invalid string for {key}: {value!r}")


@dataclass
class InstallerConfig:
    """
    Configuration parameters
    """

    version: str = dataclasses.field(default_factory=_default_version)
    install_root: Optional[str] = None
    repository: str = DEFAULT_REPOSITORY
    url_template: str = DEFAULT_URL_TEMPLATE
    max_redirects: int = 5
    download_timeout: Optional[float] = None
    validation_timeout: Optional[float] = 30.0
    use_native_tools: bool = True
    force: bool = False
    expected_sha256: Optional[str] = None
    platform_os: Optional[str] = None
    platform_arch: Optional[str] = None
    chunk_size: int = 64 * 1024

    def __post_init__(self):
        self.max_redirects = _parse_int("max_redirects", self.max_redirects)
        self.chunk_size = _parse_int("chunk_size", self.chunk_size)
        self.download_timeout = _parse_optional_float("download_timeout", self.download_timeout)
        self.validation_timeout = _parse_optional_float("validation_timeout", self.validation_timeout)
        self.use_native_tools = _parse_bool("use_native_tools", self.use_native_tools)
        self.force = _parse_bool("force", self.force)
        for key in STRING_FIELDS:
            setattr(self, key, _parse_optional_str(key, getattr(self, key)))
        if self.repository is None or self.url_template is None:
            raise InstallerConfigError("repository and url_template must be set")

        if not str(self.version).strip():
            raise InstallerConfigError("version must not be empty")
        self.version = str(self.version).strip()
        if self.max_redirects < 0:
            raise InstallerConfigError("max_redirects must not be negative")
        if self.chunk_size <= 0:
            raise InstallerConfigError("chunk_size must be positive")
        for key in ("download_timeout", "validation_timeout"):
            value = getattr(self, key)
            if value is not None and value <= 0:
                raise InstallerConfigError(f"{key} must be positive")
        if self.expected_sha256 is not None:
            self.expected_sha256 = self.expected_sha256.strip().lower() or None

    @classmethod
    def from_dict(cls, env: Mapping[str, Any]) -> "InstallerConfig":
        """
        Create a config from a dictionary, ignoring keys that are not config parameters
        """
        return cls(
            **{k: v for k, v in env.items() if k in inspect.signature(cls).parameters}
        )

    @classmethod
    def from_toml(cls, path: str) -> "InstallerConfig":
        """
        Create a config from the [installer] table of a TOML file
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError as e:
            raise InstallerConfigError(f"Config file not found: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise InstallerConfigError(f"Invalid TOML in {path}: {e}") from e

        section = data.get("installer", {})
        if not isinstance(section, dict):
            raise InstallerConfigError(f"[installer] in {path} must be a table")
        return cls.from_dict(section)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "InstallerConfig":
        """
        Create a config from AID_INSTALLER_* environment variables
        """
        return cls.from_dict(env_overrides(environ))

    def merged(self, **overrides: Any) -> "InstallerConfig":
        """
        Return a copy with every override that is not None applied
        """
        values: Dict[str, Any] = dataclasses.asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return InstallerConfig.from_dict(values)

    def resolved_install_root(self) -> pathlib.Path:
        """
        Directory that holds bin/. Defaults to the aid_installer package directory.
        """
        if self.install_root:
            return pathlib.Path(self.install_root).expanduser().resolve()
        return pathlib.Path(__file__).resolve().parent


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect config parameters from AID_INSTALLER_* environment variables
    """
    if environ is None:
        environ = os.environ
    fields = inspect.signature(InstallerConfig).parameters
    overrides = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in fields:
            overrides[name] = value
    return overrides
