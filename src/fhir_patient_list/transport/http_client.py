"""HTTP session management for FHIR requests.

This module provides pooled, reusable ``requests`` sessions for the FHIR
client. Automatic retries are disabled by default: retrying a failed
patient query is left to the user (see the list controller's retry).
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

# Default connection pool settings
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_POOL_BLOCK = False
DEFAULT_RETRY_COUNT = 0
DEFAULT_BACKOFF_FACTOR = 0.3


@dataclass
class ConnectionPoolConfig:
    """Configuration for HTTP connection pooling.

    Attributes:
        max_connections: Maximum number of connections in the pool (>= 1).
        pool_block: Whether to block when pool is exhausted.
        retry_count: Number of automatic retries for failed requests.
        backoff_factor: Factor for exponential backoff between retries.

    Example:
        >>> config = ConnectionPoolConfig(max_connections=5)
        >>> pool = ConnectionPool(config)
        >>> session = pool.get_session()
    """
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    pool_block: bool = DEFAULT_POOL_BLOCK
    retry_count: int = DEFAULT_RETRY_COUNT
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be >= 1, got {self.max_connections}"
            )
        if self.retry_count < 0:
            raise ValueError(
                f"retry_count must be >= 0, got {self.retry_count}"
            )
        if self.backoff_factor < 0:
            raise ValueError(
                f"backoff_factor must be >= 0, got {self.backoff_factor}"
            )


class ConnectionPool:
    """Lazily creates and owns one pooled HTTP session.

    Thread-safe for concurrent use.

    Example:
        >>> with ConnectionPool() as pool:
        ...     response = pool.get_session().get(url)
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()
        logger.debug(
            "ConnectionPool initialized with max_connections=%d, retry_count=%d",
            self.config.max_connections,
            self.config.retry_count,
        )

    def get_session(self) -> requests.Session:
        """Get or create the pooled session."""
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        retry_strategy = Retry(
            total=self.config.retry_count,
            backoff_factor=self.config.backoff_factor,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(
            pool_connections=self.config.max_connections,
            pool_maxsize=self.config.max_connections,
            pool_block=self.config.pool_block,
            max_retries=retry_strategy,
        )

        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        logger.info(
            "Created HTTP session with pool_maxsize=%d, retry_count=%d",
            self.config.max_connections,
            self.config.retry_count,
        )

        return session

    def close(self) -> None:
        """Close the session and release resources."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.debug("ConnectionPool session closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
