"""
Configuration module for the chat server.

Exports the main configuration classes and functions for use throughout the application.
"""

from .backend_config import BackendConfig
from .defaults import DEFAULT_HOST, DEFAULT_PORT
from .history_config import HistoryConfig
from .hub_config import HubConfig
from .loader import (
    Environment,
    env_overrides,
    get_config,
    load_config,
    load_config_file,
    merge_configs,
    parse_environment,
)
from .main_config import Config

__all__ = [
    # Constants
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    # Config models
    "Config",
    "BackendConfig",
    "HubConfig",
    "HistoryConfig",
    # Loader functions
    "Environment",
    "parse_environment",
    "load_config",
    "get_config",
    "load_config_file",
    "merge_configs",
    "env_overrides",
]
