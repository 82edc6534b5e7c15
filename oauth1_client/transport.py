"""
HTTP transport for OAuth requests.

A thin wrapper around ``requests.Session`` that:
- Verifies TLS against an explicitly configured CA bundle
- Retries transient failures with exponential backoff
- Returns response bodies as text, including error bodies, because
  OAuth providers report ``oauth_problem`` in 4xx responses
"""

import logging
import time
from typing import Dict, Optional

import requests

from .exceptions import TransportError

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    Blocking HTTP transport with retry logic.

    Example:
        transport = HttpTransport(ca_bundle="/etc/ssl/certs/ca-certificates.crt")
        body = transport.get(url, headers={"Authorization": "OAuth ..."})
    """

    def __init__(
        self,
        ca_bundle: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the transport.

        Args:
            ca_bundle: CA bundle path for TLS verification (system default if None)
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for transient errors
            retry_delay: Base delay between retries in seconds
            session: Pre-built session (mainly for tests)
        """
        self.ca_bundle = ca_bundle
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        if ca_bundle:
            self.session.verify = ca_bundle

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        """
        Send a GET request.

        Returns:
            Response body text

        Raises:
            TransportError: If the request fails after all retries
        """
        return self._request("GET", url, headers=headers)

    def post(
        self,
        url: str,
        body: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Send a POST request.

        Returns:
            Response body text

        Raises:
            TransportError: If the request fails after all retries
        """
        request_headers = dict(headers or {})
        if body:
            request_headers.setdefault(
                "Content-Type", "application/x-www-form-urlencoded"
            )
        return self._request("POST", url, headers=request_headers, data=body)

    def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[str] = None,
        retry_count: int = 0,
    ) -> str:
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                data=data or None,
                timeout=self.timeout,
            )
        except requests.exceptions.SSLError as e:
            # Certificate problems won't go away on retry
            logger.error(f"TLS error for {method} {url}: {e}")
            raise TransportError(f"TLS error: {e}") from e
        except requests.RequestException as e:
            if retry_count < self.max_retries:
                delay = self._calculate_backoff_delay(retry_count)
                logger.warning(
                    f"Network error: {e}. Retrying in {delay}s "
                    f"(attempt {retry_count + 1}/{self.max_retries})"
                )
                time.sleep(delay)
                return self._request(method, url, headers, data, retry_count + 1)

            logger.error(f"Network error after {self.max_retries} retries: {e}")
            raise TransportError(f"Network error: {e}") from e

        if response.status_code >= 500 and retry_count < self.max_retries:
            delay = self._calculate_backoff_delay(retry_count)
            logger.warning(
                f"Server error ({response.status_code}). "
                f"Retrying in {delay}s (attempt {retry_count + 1}/{self.max_retries})"
            )
            time.sleep(delay)
            return self._request(method, url, headers, data, retry_count + 1)

        if response.status_code >= 400:
            logger.warning(f"{method} {url} returned {response.status_code}")
        else:
            logger.debug(f"Response: {response.status_code}")

        return response.text

    def _calculate_backoff_delay(self, retry_count: int) -> float:
        return self.retry_delay * (2 ** retry_count)

    def close(self) -> None:
        self.session.close()
