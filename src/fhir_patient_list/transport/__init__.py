"""Transport module.

Pooled HTTP sessions for the FHIR client.
"""

from fhir_patient_list.transport.http_client import ConnectionPool, ConnectionPoolConfig

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
]
