"""Audit trail functionality for FHIR Patient List.

Structured audit logging of patient data access (searches and reads).
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)

# Key fields, in the order they appear in audit messages
FIELD_ORDER = [
    "status",
    "base_url",
    "resource",
    "query",
    "total",
    "returned",
    "duration",
    "http_status",
    "error_message",
    "correlation_id",
]


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Events are
    logged at INFO level for successful operations and ERROR level for
    failures.

    Args:
        event_type: Type of operation (e.g., "PATIENT_SEARCH", "PATIENT_READ")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - base_url: FHIR server base URL
                - resource: Resource path requested
                - query: Encoded query arguments
                - total / returned: Match count and page size of the result
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for tracking related events

    Example:
        >>> log_audit_event("PATIENT_SEARCH", {
        ...     "status": "success",
        ...     "query": "_count=10",
        ...     "total": 5,
        ...     "duration": 0.42
        ... })
    """
    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    for field in FIELD_ORDER:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in FIELD_ORDER and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)
