"""Typed configuration loading and access.

The config file is optional TOML (`ipa-uploader.toml` by default). It supplies
defaults for repository coordinates and controls where manifests come from
and where they are written. Command-line options always win over it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "GitHubConfig",
    "ManifestConfig",
    "CONFIG_FILE_NAME",
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "ipa-uploader.toml"

DEFAULT_API_URL = "https://api.github.com"

# Per HTTP request; uploads of large packages need generous values.
DEFAULT_TIMEOUT_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Release target defaults and API settings."""

    owner: str | None = None
    repo: str | None = None
    tag_prefix: str | None = None
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    """Manifest template and output location.

    `template` replaces the bundled template. `output_dir` defaults to the
    system temp directory when unset.
    """

    template: Path | None = None
    output_dir: Path | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, base_dir: Path | None = None) -> Config:
        """Create Config from parsed TOML.

        Relative paths in [manifest] are resolved against base_dir (the
        directory holding the config file) when given.
        """
        github: StrDict = get_table(data, "github") or {}
        manifest: StrDict = get_table(data, "manifest") or {}

        timeout = get_float(github, "timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"github.timeout must be positive, got {timeout}")

        return cls(
            github=GitHubConfig(
                owner=get_str(github, "owner"),
                repo=get_str(github, "repo"),
                tag_prefix=get_str(github, "tag_prefix"),
                api_url=(get_str(github, "api_url") or DEFAULT_API_URL).rstrip("/"),
                timeout=timeout or DEFAULT_TIMEOUT_SECONDS,
            ),
            manifest=ManifestConfig(
                template=_optional_path(get_str(manifest, "template"), base_dir),
                output_dir=_optional_path(get_str(manifest, "output_dir"), base_dir),
            ),
        )


def _optional_path(value: str | None, base_dir: Path | None) -> Path | None:
    if value is None:
        return None
    path = Path(value).expanduser()
    if base_dir is not None and not path.is_absolute():
        return base_dir / path
    return path


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value, base_dir=path.parent))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config from path, or defaults if the file does not exist.

    Unlike a missing file, an unreadable or malformed file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
