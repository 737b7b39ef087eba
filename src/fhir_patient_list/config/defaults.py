"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "endpoints": {
        # Default to the local mock server
        "fhir_base_url": "http://localhost:8080/api/fhir",
    },
    "transport": {
        "verify_tls": True,
        "timeout_connect": 10,
        "timeout_read": 30,
        "max_connections": 10,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/fhir-patient-list.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
    "patient_list": {
        "page_size": 10,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
