"""Config module.

This module provides configuration management functionality.
"""

from fhir_patient_list.config.manager import load_config
from fhir_patient_list.config.schema import (
    Config,
    EndpointsConfig,
    ListConfig,
    LoggingConfig,
    TransportConfig,
)

__all__ = [
    "load_config",
    "Config",
    "EndpointsConfig",
    "ListConfig",
    "LoggingConfig",
    "TransportConfig",
]
