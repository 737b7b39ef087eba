"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class EndpointsConfig(BaseModel):
    """Configuration for the FHIR server location.

    Attributes:
        fhir_base_url: Base URL of the FHIR server (the local mock server
            by default, or any FHIR-compliant server)
    """

    fhir_base_url: str = Field(
        default="http://localhost:8080/api/fhir",
        description="FHIR server base URL",
    )

    @field_validator("fhir_base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS and strip the trailing slash.

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")


class TransportConfig(BaseModel):
    """Configuration for HTTP/HTTPS transport.

    Attributes:
        verify_tls: Whether to verify TLS certificates
        timeout_connect: Connection timeout in seconds
        timeout_read: Read timeout in seconds
        max_connections: Connection pool size
    """

    verify_tls: bool = True
    timeout_connect: int = Field(
        default=10,
        ge=1,
        description="Connection timeout in seconds"
    )
    timeout_read: int = Field(
        default=30,
        ge=1,
        description="Read timeout in seconds"
    )
    max_connections: int = Field(
        default=10,
        ge=1,
        description="Connection pool size"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/fhir-patient-list.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact patient names, MRNs, phone numbers and emails from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level.

        Raises:
            ValueError: If level is not a valid log level
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class ListConfig(BaseModel):
    """Configuration for the patient list.

    Attributes:
        page_size: Number of patients requested per page
    """

    page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Patients per page"
    )


class Config(BaseModel):
    """Main configuration model.

    This is the main configuration class that contains all configuration sections.
    """

    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    patient_list: ListConfig = Field(default_factory=ListConfig)
