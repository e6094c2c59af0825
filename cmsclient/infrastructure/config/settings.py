"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file (``~/.cmsclient/config.yaml``),
a ``.env`` file and environment variables. Loading is explicit: call
``load_configuration()`` once at start-up, then build a client from
``get_client_settings()``.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from cmsclient.domain.errors import ConfigurationError
from cmsclient.infrastructure.cache.caching_service import (
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL_SECONDS,
    CacheSettings,
)
from cmsclient.infrastructure.resilience.rate_limiter import DEFAULT_MONTHLY_LIMIT

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".cmsclient"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
DEFAULT_BASE_URL = "http://localhost:1337"
DEFAULT_TIMEOUT_SECONDS = 10.0

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


@dataclass(frozen=True)
class ClientSettings:
    """Everything needed to construct a StrapiClient."""
    base_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None
    cache: CacheSettings = field(default_factory=CacheSettings)
    monthly_limit: int = DEFAULT_MONTHLY_LIMIT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None,
                       force: bool = False) -> None:
    """Loads configuration from the YAML file and the .env file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(_flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False keeps real environment variables on top
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    _loaded = True
    logger.info("Configuration loading process completed.")


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ('strapi.url')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _convert_env_value(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration
    2. Environment variable (the key upper-cased)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper()
    if env_key in os.environ:
        return _convert_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def _first(*keys: str, default: Any = None) -> Any:
    for key in keys:
        value = get_config(key)
        if value is not None and value != "":
            return value
    return default


def get_strapi_url() -> str:
    """CMS origin; STRAPI_URL, then strapi.url, then NEXT_PUBLIC_STRAPI_URL."""
    return str(_first("STRAPI_URL", "strapi.url", "NEXT_PUBLIC_STRAPI_URL", default=DEFAULT_BASE_URL))


def get_strapi_api_token() -> Optional[str]:
    token = _first("STRAPI_API_TOKEN", "strapi.api_token")
    return str(token) if token is not None else None


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("1", "yes", "on", "true"):
        return True
    if isinstance(value, str) and value.lower() in ("0", "no", "off", "false"):
        return False
    if isinstance(value, int):
        return bool(value)
    raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")


def _as_number(value: Any, key: str, cast: type) -> Any:
    try:
        number = cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid number for {key}: {value!r}") from e
    if number <= 0:
        raise ConfigurationError(f"{key} must be positive, got {number}")
    return number


def get_cache_settings() -> CacheSettings:
    return CacheSettings(
        enabled=_as_bool(_first("STRAPI_CACHE_ENABLED", "cache.enabled", default=True), "cache.enabled"),
        ttl_seconds=_as_number(_first("STRAPI_CACHE_TTL", "cache.ttl_seconds", default=DEFAULT_TTL_SECONDS),
                               "cache.ttl_seconds", float),
        max_size=_as_number(_first("STRAPI_CACHE_MAX_SIZE", "cache.max_size", default=DEFAULT_MAX_SIZE),
                            "cache.max_size", int),
    )


def get_client_settings() -> ClientSettings:
    """Collects the full client configuration.

    Raises:
        ConfigurationError: A value is present but invalid.
    """
    return ClientSettings(
        base_url=get_strapi_url(),
        api_token=get_strapi_api_token(),
        cache=get_cache_settings(),
        monthly_limit=_as_number(
            _first("STRAPI_MONTHLY_LIMIT", "rate_limit.monthly_limit", default=DEFAULT_MONTHLY_LIMIT),
            "rate_limit.monthly_limit", int),
        timeout_seconds=_as_number(
            _first("STRAPI_TIMEOUT", "strapi.timeout_seconds", default=DEFAULT_TIMEOUT_SECONDS),
            "strapi.timeout_seconds", float),
    )


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override everything else (tests only)."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
