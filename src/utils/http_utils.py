"""
HTTP utilities with connection error handling and transport-level retries.
"""
import time
import logging
from typing import Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from urllib3.exceptions import ConnectionError, ProtocolError

logger = logging.getLogger(__name__)


class RobustHTTPSession:
    """HTTP session with built-in retry logic and connection error handling."""

    def __init__(self,
                 max_retries: int = 3,
                 backoff_factor: float = 0.3,
                 timeout: int = 120,
                 verify_ssl: bool = True,
                 proxies: Optional[dict] = None,
                 max_attempts: int = 3):
        """
        Initialize the HTTP session.

        Args:
            max_retries: Maximum number of retry attempts for transient HTTP statuses
            backoff_factor: Factor to apply between retry attempts
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            proxies: Optional requests-style proxy mapping
            max_attempts: Default number of attempts on connection errors
        """
        self.session = requests.Session()
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.max_attempts = max_attempts
        if proxies:
            self.session.proxies.update(proxies)

        # urllib3 only retries idempotent methods by default, so POST writes are never replayed
        retry_strategy = Retry(
            total=max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=backoff_factor,
            respect_retry_after_header=True,
            raise_on_status=False
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _handle_connection_error(self, error: Exception, attempt: int, max_attempts: int) -> bool:
        """
        Handle connection errors with exponential backoff.

        Returns:
            True if should retry, False otherwise
        """
        if attempt >= max_attempts:
            logger.error(f"Max retry attempts ({max_attempts}) reached. Final error: {error}")
            return False

        backoff_time = (2 ** attempt) + (time.time() % 1)
        logger.warning(f"Connection error on attempt {attempt}/{max_attempts}: {error}. "
                       f"Retrying in {backoff_time:.2f} seconds...")
        time.sleep(backoff_time)
        return True

    def request(self, method: str, url: str, max_attempts: Optional[int] = None, **kwargs) -> Optional[requests.Response]:
        """
        Make an HTTP request with retry logic for connection errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Request URL
            max_attempts: Maximum number of attempts for connection errors (default: session setting)
            **kwargs: Additional arguments passed to requests

        Returns:
            Response object or None if all attempts failed
        """
        max_attempts = max_attempts or self.max_attempts
        kwargs.setdefault('timeout', self.timeout)
        kwargs.setdefault('verify', self.verify_ssl)

        for attempt in range(1, max_attempts + 1):
            try:
                response = self.session.request(method, url, **kwargs)

                if attempt > 1:
                    logger.info(f"Request succeeded on attempt {attempt}")

                return response

            except (ConnectionError, ProtocolError, requests.exceptions.ConnectionError) as e:
                if not self._handle_connection_error(e, attempt, max_attempts):
                    break
                continue

            except requests.exceptions.Timeout as e:
                logger.warning(f"Request timeout on attempt {attempt}/{max_attempts}: {e}")
                if attempt >= max_attempts:
                    logger.error(f"Request failed after {max_attempts} timeout attempts")
                    raise
                time.sleep(1)
                continue

            except requests.exceptions.RequestException as e:
                logger.error(f"Request failed with non-recoverable error: {e}")
                raise

        return None

    def get(self, url: str, **kwargs) -> Optional[requests.Response]:
        """Make a GET request with retry logic."""
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> Optional[requests.Response]:
        """Make a POST request with retry logic."""
        return self.request('POST', url, **kwargs)

    def close(self):
        """Close the session."""
        self.session.close()


def bearer_headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def error_detail(response: requests.Response) -> str:
    """Pull the remote error text out of a Microsoft-style error payload."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message") or ""
        return f"{code}: {message}" if code else message
    if error:
        return str(error)
    return response.text or f"HTTP {response.status_code}"
