"""Configuration loading utilities."""

import logging
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

from .defaults import (
    BASE_CONFIG_FILENAME,
    CONFIG_DIR_NAME,
    ENV_NESTING_SEPARATOR,
    ENV_PREFIX,
    ENVIRONMENT_ENV,
)
from .main_config import Config

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Deployment environment selecting the per-environment config file."""

    LOCAL = "local"
    PRODUCTION = "prod"


def parse_environment(value: str) -> Environment:
    """
    Parse an environment name.

    Raises:
        ValueError: If the name is not a supported environment
    """
    try:
        return Environment(value.strip().lower())
    except ValueError:
        raise ValueError(
            f"{value} is not a supported environment. Use either `local` or `prod`."
        ) from None


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Load a YAML config file from the given path.

    Args:
        path: Path to the config file

    Returns:
        Parsed config dictionary or None if the file doesn't exist or can't be read
    """
    if not path.exists():
        return None

    try:
        data = yaml.safe_load(path.read_text())
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be a mapping", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw) if raw else raw
    except yaml.YAMLError:
        return raw


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Collect config overrides from environment variables.

    `CHAT_APP_BACKEND__PORT=9000` becomes `{"backend": {"port": 9000}}`.
    Values are parsed as YAML scalars so numbers and booleans keep their type.
    """
    overrides: dict[str, Any] = {}

    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX) or key == ENVIRONMENT_ENV:
            continue
        path = [part.lower() for part in key[len(ENV_PREFIX):].split(ENV_NESTING_SEPARATOR)]
        if not all(path):
            logger.warning("Ignoring malformed config variable %s", key)
            continue

        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = _parse_env_value(raw)

    return overrides


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """
    Load configuration from multiple sources with precedence.

    Sources, lowest precedence first:
    1. <config_dir>/base.yaml
    2. <config_dir>/<environment>.yaml (local or prod)
    3. CHAT_APP_* environment variables

    Args:
        config_dir: Directory holding the YAML files (defaults to ./configuration)
        environment: Environment name (defaults to CHAT_APP_ENVIRONMENT, then local)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Loaded and merged Config model

    Raises:
        ValueError: If the environment name is not supported
    """
    if environ is None:
        environ = os.environ
    if config_dir is None:
        config_dir = Path.cwd() / CONFIG_DIR_NAME

    env = parse_environment(environment or environ.get(ENVIRONMENT_ENV, Environment.LOCAL.value))

    config_data = load_config_file(config_dir / BASE_CONFIG_FILENAME) or {}
    env_config = load_config_file(config_dir / f"{env.value}.yaml")
    if env_config:
        config_data = merge_configs(config_data, env_config)
    config_data = merge_configs(config_data, env_overrides(environ))

    logger.debug("Loaded %s configuration from %s", env.value, config_dir)
    return Config(**config_data)


@lru_cache(maxsize=1)
def get_config(config_dir: Path | None = None) -> Config:
    """
    Get cached configuration.

    This function caches the config to avoid repeated file I/O.
    To reload the config, clear the cache with get_config.cache_clear().

    Args:
        config_dir: Directory holding the YAML files (defaults to ./configuration)

    Returns:
        Cached Config model
    """
    return load_config(config_dir)
