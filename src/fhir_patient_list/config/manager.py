"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from fhir_patient_list.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from fhir_patient_list.config.schema import Config
from fhir_patient_list.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "FHIR_PATIENT_LIST_"

# (environment suffix, section, field, converter)
_ENV_OVERRIDES = (
    ("FHIR_BASE_URL", "endpoints", "fhir_base_url", str),
    ("VERIFY_TLS", "transport", "verify_tls", "bool"),
    ("TIMEOUT_CONNECT", "transport", "timeout_connect", int),
    ("TIMEOUT_READ", "transport", "timeout_read", int),
    ("MAX_CONNECTIONS", "transport", "max_connections", int),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", "bool"),
    ("PAGE_SIZE", "patient_list", "page_size", int),
)


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (FHIR_PATIENT_LIST_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config()
        >>> base_url = config.endpoints.fhir_base_url
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        )


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Raises:
        ConfigurationError: If JSON is malformed or the file is unreadable
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            )
        except (OSError, IOError) as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            )
    else:
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        # Return a deep copy of defaults to avoid mutation
        return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with FHIR_PATIENT_LIST_ prefix.

    For example: FHIR_PATIENT_LIST_FHIR_BASE_URL, FHIR_PATIENT_LIST_LOG_LEVEL

    Raises:
        ConfigurationError: If a numeric override is not a number
    """
    for suffix, section, field, converter in _ENV_OVERRIDES:
        env_key = f"{ENV_PREFIX}{suffix}"
        raw = os.getenv(env_key)
        if not raw:
            continue
        if converter == "bool":
            value: Any = _parse_bool(raw)
        else:
            try:
                value = converter(raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value for {env_key}: '{raw}'. Must be an integer."
                )
        config_dict.setdefault(section, {})[field] = value
        logger.debug(f"Override: {field} from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")
