import logging
import ssl
import urllib.parse
from contextlib import contextmanager
from typing import Dict, Optional, Generator

import urllib3
from urllib3 import BaseHTTPResponse, PoolManager

from sfcc_cip.exc import RequestError
from sfcc_cip.common.http import HttpMethod

logger = logging.getLogger(__name__)


class UnifiedHttpClient:
    """
    Unified HTTP client for all CIP connector HTTP operations.

    The token endpoint and the Avatica endpoint both go through this client, which
    owns a urllib3 connection pool, the SSL context and the socket timeout. Requests
    are never retried: any failure surfaces to the caller as RequestError.
    """

    def __init__(self, client_context):
        """
        Initialize the unified HTTP client.

        Args:
            client_context: ClientContext instance containing HTTP configuration
        """
        self.config = client_context
        self._pool_manager = None
        self._setup_pool_manager()

    def _setup_pool_manager(self):
        ssl_context = None
        if self.config.tls_no_verify:
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        pool_kwargs = {
            "num_pools": self.config.pool_connections,
            "maxsize": self.config.pool_maxsize,
            "retries": False,
        }

        if self.config.socket_timeout:
            pool_kwargs["timeout"] = urllib3.Timeout(
                connect=self.config.socket_timeout, read=self.config.socket_timeout
            )

        if ssl_context is not None:
            pool_kwargs["ssl_context"] = ssl_context

        self._pool_manager = PoolManager(**pool_kwargs)

    def _prepare_headers(
        self, headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, str]:
        """Prepare headers for the request, including User-Agent."""
        request_headers = {}

        if self.config.user_agent:
            request_headers["User-Agent"] = self.config.user_agent

        if headers:
            request_headers.update(headers)

        return request_headers

    @contextmanager
    def request_context(
        self,
        method: HttpMethod,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> Generator[BaseHTTPResponse, None, None]:
        """
        Context manager for making HTTP requests with proper resource cleanup.

        Args:
            method: HTTP method (HttpMethod.GET, HttpMethod.POST)
            url: URL to request
            headers: Optional headers dict
            **kwargs: Additional arguments passed to urllib3 request

        Yields:
            BaseHTTPResponse: The HTTP response object
        """
        logger.debug(
            "Making %s request to %s", method.value, urllib.parse.urlparse(url).netloc
        )

        if self._pool_manager is None:
            raise RequestError("HTTP client is closed")

        request_headers = self._prepare_headers(headers)
        response = None

        try:
            response = self._pool_manager.request(
                method=method.value, url=url, headers=request_headers, **kwargs
            )
        except Exception as e:
            logger.error("HTTP request error: %s", e)
            raise RequestError(
                f"HTTP request error: {e}", {"original-exception": repr(e)}
            ) from e

        try:
            yield response
        finally:
            response.close()

    def request(
        self,
        method: HttpMethod,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> BaseHTTPResponse:
        """
        Make an HTTP request.

        Args:
            method: HTTP method (HttpMethod.GET, HttpMethod.POST)
            url: URL to request
            headers: Optional headers dict
            **kwargs: Additional arguments passed to urllib3 request

        Returns:
            BaseHTTPResponse: The HTTP response object with data and metadata pre-loaded
        """
        with self.request_context(method, url, headers=headers, **kwargs) as response:
            # status and headers remain accessible after close(); read() caches the body
            response.read()
            return response

    def close(self):
        """Close the underlying connection pools."""
        if self._pool_manager:
            self._pool_manager.clear()
            self._pool_manager = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
