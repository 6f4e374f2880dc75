"""Base HTTP client with retry logic and error handling."""

import logging
from typing import Optional, Dict

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    retry_if_exception_type
)

from ..models.session import Session
from ..utils.config import get_config
from ..utils.exceptions import InventoryAPIError
from ..utils.logger import get_api_logger

# Failures worth another attempt; HTTP error statuses are answered, not retried.
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class BaseClient:
    """Base HTTP client with retry logic and logging."""

    def __init__(
        self,
        base_url: str,
        session: Optional[Session] = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL for API requests
            session: Credentials used to authorize every request
            headers: Optional default headers
            transport: Optional httpx transport (tests use a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.config = get_config()
        self.logger = get_api_logger()
        self.session = session or Session()

        default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": "MedInventory-Client/1.0"
        }
        default_headers.update(self.session.auth_headers())

        if headers:
            default_headers.update(headers)

        self.client = httpx.Client(
            base_url=self.base_url,
            headers=default_headers,
            timeout=self.config.api.timeout,
            follow_redirects=True,
            transport=transport
        )

    def request(self, method: str, endpoint: str, action: str, **kwargs) -> httpx.Response:
        """
        Send a request, retrying timeouts and network errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Path relative to the base URL
            action: What the request does, used in error messages
            **kwargs: Passed through to ``httpx.Client.request``

        Returns:
            The response, whatever its status

        Raises:
            InventoryAPIError: When the request could not be completed
        """
        api = self.config.api

        @retry(
            stop=stop_after_attempt(api.max_retries),
            wait=wait_exponential(multiplier=api.retry_delay) if api.exponential_backoff else wait_none(),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True
        )
        def _attempt():
            self.logger.debug(f"{method} {endpoint}")
            response = self.client.request(method, endpoint, **kwargs)
            self.logger.debug(f"Response: {response.status_code}")
            return response

        try:
            return _attempt()
        except httpx.HTTPError as e:
            raise InventoryAPIError(
                f"Failed to {action}: {str(e)}",
                details={"endpoint": endpoint, "method": method, "error": str(e)}
            )

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
