"""Configuration management for mock server."""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("mocks/config.json")
ENV_PREFIX = "MOCK_SERVER_"

# Environment overrides that need conversion from string
_INT_FIELDS = ("http_port",)


class PatientEndpointBehavior(BaseModel):
    """Patient endpoint behavior configuration.

    Attributes:
        response_delay_min_ms: Lower bound of simulated latency in milliseconds
        response_delay_max_ms: Upper bound of simulated latency in milliseconds
        failure_rate: Probability of returning a 500 OperationOutcome (0.0-1.0)
        custom_fault_message: Diagnostics text for injected failures
    """

    response_delay_min_ms: int = Field(
        default=200,
        ge=0,
        le=5000,
        description="Minimum simulated response delay in milliseconds",
    )
    response_delay_max_ms: int = Field(
        default=700,
        ge=0,
        le=5000,
        description="Maximum simulated response delay in milliseconds",
    )
    failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability of returning an OperationOutcome fault (0.0-1.0)",
    )
    custom_fault_message: str | None = Field(
        default=None,
        description="Diagnostics message for injected faults",
    )

    @model_validator(mode="after")
    def validate_delay_range(self) -> "PatientEndpointBehavior":
        """Validate the delay bounds are ordered."""
        if self.response_delay_min_ms > self.response_delay_max_ms:
            raise ValueError(
                f"response_delay_min_ms ({self.response_delay_min_ms}) must not exceed "
                f"response_delay_max_ms ({self.response_delay_max_ms})"
            )
        return self


class MockServerConfig(BaseModel):
    """Mock server configuration model.

    Configuration precedence:
    1. Environment variables (MOCK_SERVER_* prefix)
    2. JSON config file
    3. Default values
    """

    host: str = Field(default="0.0.0.0", description="Server host address")
    http_port: int = Field(default=8080, description="HTTP server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_path: str = Field(default="mocks/logs/mock-server.log", description="Log file path")
    fhir_base_path: str = Field(default="/api/fhir", description="FHIR base path")

    patient_behavior: PatientEndpointBehavior = Field(
        default_factory=PatientEndpointBehavior,
        description="Patient endpoint behavior configuration",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator("http_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Invalid port {v}. Must be between 1 and 65535.")
        return v

    @field_validator("fhir_base_path")
    @classmethod
    def validate_base_path(cls, v: str) -> str:
        """Normalize base path to a leading slash and no trailing slash."""
        v = "/" + v.strip("/")
        return "" if v == "/" else v


def load_config(config_file: Path | None = None) -> MockServerConfig:
    """Load mock server configuration from file and environment variables.

    Args:
        config_file: Path to configuration JSON file. Defaults to mocks/config.json

    Returns:
        MockServerConfig instance with merged configuration

    Raises:
        FileNotFoundError: If config file specified but not found
        ValueError: If configuration is invalid
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_data = {}
    if config_file.exists():
        try:
            with open(config_file, encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse configuration file '{config_file}': {e}. "
                f"Ensure the file contains valid JSON."
            )
        logger.debug("Loaded mock server configuration from %s", config_file)
    elif config_file != DEFAULT_CONFIG_FILE:
        # Only raise if non-default config file was explicitly specified
        raise FileNotFoundError(
            f"Configuration file not found: '{config_file}'. "
            f"Ensure the file exists or check the path."
        )

    for key in MockServerConfig.model_fields.keys():
        env_key = f"{ENV_PREFIX}{key.upper()}"
        if env_key in os.environ and key != "patient_behavior":
            value: str | int = os.environ[env_key]
            if key in _INT_FIELDS:
                try:
                    value = int(value)
                except ValueError:
                    raise ValueError(
                        f"Invalid value for {env_key}: '{value}'. Must be an integer."
                    )
            config_data[key] = value

    try:
        config = MockServerConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    return config
