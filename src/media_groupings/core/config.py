"""
Configuration management for Media Groupings
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger


@dataclass
class GroupingsConfig:
    """Configuration for the background grouping engine."""

    # Seconds to wait for an engine response before marking the grouping
    # unavailable. None waits forever.
    response_timeout_seconds: Optional[float] = None
    worker_name: str = "MediaGrouperThread"
    poll_interval_seconds: float = 0.05

    def validate(self) -> None:
        """Validate grouping configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        timeout = self.response_timeout_seconds
        if timeout is not None and (
            not isinstance(timeout, (int, float)) or timeout <= 0
        ):
            raise ValueError(
                f"response_timeout_seconds must be positive, got {timeout!r}"
            )
        if (
            not isinstance(self.poll_interval_seconds, (int, float))
            or self.poll_interval_seconds <= 0
        ):
            raise ValueError(
                f"poll_interval_seconds must be positive, got {self.poll_interval_seconds}"
            )


@dataclass
class SourcesConfig:
    """Configuration for offline source collection files."""

    albums_path: Optional[str] = None
    tracks_path: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/media-groupings/media-groupings.log)
    )


@dataclass
class Config:
    """Main configuration object."""

    groupings: GroupingsConfig = field(default_factory=GroupingsConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "media-groupings"
    return Path.home() / ".config" / "media-groupings"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            if config_path.exists():
                return config_path
            return None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/media-groupings (or ~/.config/media-groupings)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "media-groupings"
    return Path.home() / ".local" / "share" / "media-groupings"


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file from config, defaulting into the data dir."""
    if config.logging.log_file:
        return Path(config.logging.log_file)
    return get_data_dir() / "media-groupings.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Media Groupings Configuration

[groupings]
# Seconds to wait for a grouping result before reporting it unavailable.
# Leave unset to wait indefinitely.
# response_timeout_seconds = 30.0

# Name of the background worker thread
worker_name = "MediaGrouperThread"

# How often wait_until_idle() checks for results
poll_interval_seconds = 0.05

[sources]
# JSON files holding the flat album and track collections
# albums_path = "~/media/albums.json"
# tracks_path = "~/media/tracks.json"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/media-groupings/media-groupings.log)
# log_file = "/path/to/custom/media-groupings.log"
""".strip()


def _expand(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return str(Path(path).expanduser())


def _apply_env_overrides(config: Config) -> None:
    """Override TOML values with MEDIA_GROUPINGS_* environment variables."""
    level = os.environ.get("MEDIA_GROUPINGS_LOG_LEVEL")
    if level:
        config.logging.level = level.upper()

    timeout = os.environ.get("MEDIA_GROUPINGS_RESPONSE_TIMEOUT")
    if timeout:
        try:
            config.groupings.response_timeout_seconds = float(timeout)
        except ValueError:
            logger.warning(
                f"Ignoring MEDIA_GROUPINGS_RESPONSE_TIMEOUT={timeout!r}: not a number"
            )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, falling back to defaults.

    Environment variables override TOML values:
    - MEDIA_GROUPINGS_LOG_LEVEL
    - MEDIA_GROUPINGS_RESPONSE_TIMEOUT

    Args:
        config_path: Explicit config file; resolved via get_config_path() if omitted

    Returns:
        Loaded Config (defaults for anything missing or invalid)
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    path = config_path if config_path else get_config_path()
    config = Config()

    if path.exists():
        try:
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Error loading configuration from {path}: {e}")
            logger.warning("Using default configuration.")
            toml_data = {}

        if "groupings" in toml_data:
            groupings_data = toml_data["groupings"]
            config.groupings = GroupingsConfig(
                response_timeout_seconds=groupings_data.get(
                    "response_timeout_seconds",
                    config.groupings.response_timeout_seconds,
                ),
                worker_name=groupings_data.get(
                    "worker_name", config.groupings.worker_name
                ),
                poll_interval_seconds=groupings_data.get(
                    "poll_interval_seconds", config.groupings.poll_interval_seconds
                ),
            )

        if "sources" in toml_data:
            sources_data = toml_data["sources"]
            config.sources = SourcesConfig(
                albums_path=_expand(sources_data.get("albums_path")),
                tracks_path=_expand(sources_data.get("tracks_path")),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level).upper(),
                log_file=_expand(logging_data.get("log_file")),
            )

    _apply_env_overrides(config)

    try:
        config.groupings.validate()
    except ValueError as e:
        logger.warning(f"Invalid groupings configuration: {e}")
        logger.warning("Using default groupings configuration.")
        config.groupings = GroupingsConfig()

    return config

