"""Custom log formatters for FHIR Patient List.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts patient PII from log messages.

    Regex-based redaction of medical record numbers, e-mail addresses, phone
    numbers, search tokens and patient names.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # MRN-001
            (re.compile(r'\bMRN-[A-Za-z0-9]+\b'), '[MRN-REDACTED]'),

            # john.smith@email.com
            (re.compile(r'\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b'), '[EMAIL-REDACTED]'),

            # +1-555-0123, 555-123-4567
            (re.compile(r'\+?\d{1,3}[-\s]\d{3}[-\s]\d{3,4}(?:[-\s]\d{4})?\b'), '[PHONE-REDACTED]'),

            # search='John', search="John Smith", search=John
            (re.compile(r"search=(?:'[^']*'|\"[^\"]*\"|\S+)"), 'search=[REDACTED]'),

            # name="John Doe", name='Jane Smith', name=Bob
            (re.compile(r'name=["\']?([^"\'\s,)]+(?:\s[^"\'\s,)]+)*)["\']?'), 'name=[NAME-REDACTED]'),

            # "Patient: John Doe", "Name: Jane Smith"
            (re.compile(r'(Patient|Name):\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+'),
             r'\1: [NAME-REDACTED]'),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction."""
        original = super().format(record)

        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
