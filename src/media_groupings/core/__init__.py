"""Core infrastructure layer - no domain dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging (Loguru)
- Console management (Rich)
- Process-wide background activity signal
"""

from .activity import BackgroundActivity, get_background_activity
from .config import (
    Config,
    GroupingsConfig,
    LoggingConfig,
    SourcesConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    load_config,
)
from .console import get_console, print_table, safe_print
from .output import setup_loguru

__all__ = [
    # Activity
    "BackgroundActivity",
    "get_background_activity",
    # Config
    "Config",
    "GroupingsConfig",
    "LoggingConfig",
    "SourcesConfig",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "load_config",
    # Console
    "get_console",
    "print_table",
    "safe_print",
    # Output
    "setup_loguru",
]
