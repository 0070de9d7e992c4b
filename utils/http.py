"""HTTP utilities for the egg pool.

Provides reusable pieces for:
- HTTP sessions with connection pooling and transport-level retries
- JSON GET requests with failures classified into the error taxonomy

Only idempotent methods are retried here.  The conditional PUT that commits
the egg document must never be replayed by the transport: a replayed write
with a stale token is exactly the conflict the append coordinator handles.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

from utils.errors import NotFoundError, TransportError

logger = logging.getLogger(__name__)


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 0.5,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 0.5)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 500, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 500, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        Returns:
            urllib3.util.retry.Retry object
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"]
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 10, pool_maxsize: int = 20,
                 headers: Optional[Dict[str, str]] = None):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: standard strategy)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
            headers: Default headers sent with every request
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self.headers = dict(headers or {})
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling.

        Returns:
            requests.Session object
        """
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.headers)

            retry = self.retry_strategy.get_retry_object()

            # Mount for both http and https
            adapter = HTTPAdapter(
                max_retries=retry,
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def get_json(session: requests.Session, url: str,
             params: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None,
             timeout: float = 30) -> Any:
    """GET *url* and return the decoded JSON body.

    Args:
        session: requests.Session to issue the request on
        url: URL to fetch
        params: Optional query parameters
        headers: Optional extra headers
        timeout: Request timeout in seconds

    Returns:
        Parsed JSON payload

    Raises:
        NotFoundError: on HTTP 404
        TransportError: on connection failure, any other non-2xx status,
            or a body that is not JSON
    """
    logger.debug("GET %s params=%s", url, params)
    try:
        resp = session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Request to {url} failed: {e}") from e

    if resp.status_code == 404:
        raise NotFoundError(f"Not found: {url}", status=404)
    if not resp.ok:
        raise TransportError(f"{url} returned HTTP {resp.status_code}",
                             status=resp.status_code)
    try:
        return resp.json()
    except ValueError as e:
        raise TransportError(f"Malformed JSON from {url}",
                             status=resp.status_code) from e
