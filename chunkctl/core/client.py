"""HTTP client for the chunked upload REST API.

Maps transport failures and error statuses onto the chunkctl exception
hierarchy. Requests are issued exactly once: retry is always a fresh call
made by the caller.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from chunkctl.core.exceptions import (
    AuthenticationError,
    NetworkError,
    RemoteStoreError,
    ResourceNotFoundError,
    ServerUnreachableError,
    TimeoutError,
)
from chunkctl.core.validation import validate_server_url
from chunkctl.uploaders.constants import DEFAULT_TIMEOUT

# =============================================================================
# Constants
# =============================================================================

USER_AGENT = "chunkctl"
ERROR_BODY_EXCERPT = 200


# =============================================================================
# StoreClient
# =============================================================================


@dataclass
class StoreClient:
    """HTTP client for the remote chunk store."""

    base_url: str
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    transport: httpx.BaseTransport | None = field(default=None, repr=False)
    _client: httpx.Client | None = field(init=False, default=None, repr=False)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        """Validate and normalize URL."""
        self.base_url = validate_server_url(self.base_url)

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (shared by upload worker threads)."""
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    verify=self.verify_ssl,
                    follow_redirects=True,
                    transport=self.transport,
                    headers={"User-Agent": USER_AGENT},
                )
            return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> StoreClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def _get_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Build request headers, attaching the bearer token if configured."""
        headers: dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        content: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Execute a single HTTP request.

        Args:
            method: HTTP method.
            path: API path.
            params: Query parameters.
            json: JSON body.
            content: Raw body (bytes or an iterator of bytes).
            headers: Additional headers.
            timeout: Request timeout override.

        Returns:
            HTTP response with a 2xx status.

        Raises:
            ServerUnreachableError: If the connection cannot be established.
            TimeoutError: If the request times out.
            NetworkError: On any other transport failure.
            AuthenticationError: On 401/403.
            ResourceNotFoundError: On 404.
            RemoteStoreError: On any other non-2xx status.
        """
        client = self._get_client()
        request_timeout = timeout or self.timeout

        try:
            resp = client.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=self._get_headers(headers),
                timeout=request_timeout,
            )
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(self.base_url, request_timeout) from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e) or type(e).__name__) from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(self.base_url, f"HTTP {resp.status_code}")

        if resp.status_code == 404:
            raise ResourceNotFoundError("resource", path)

        if resp.is_error:
            raise RemoteStoreError(
                resp.status_code,
                method,
                path,
                resp.text.strip()[:ERROR_BODY_EXCERPT],
            )

        return resp

    def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """GET request."""
        return self._request("GET", path, params=params, headers=headers, timeout=timeout)

    def post(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        content: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """POST request."""
        return self._request(
            "POST",
            path,
            params=params,
            json=json,
            content=content,
            headers=headers,
            timeout=timeout,
        )

    def put(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        content: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """PUT request."""
        return self._request(
            "PUT",
            path,
            params=params,
            json=json,
            content=content,
            headers=headers,
            timeout=timeout,
        )

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    def ping(self) -> dict[str, Any]:
        """Check server connectivity.

        Returns:
            Dict with server info.

        Raises:
            NetworkError: If server is unreachable.
        """
        start = time.time()
        resp = self.get("/health")
        latency = int((time.time() - start) * 1000)

        return {
            "url": self.base_url,
            "status": resp.text.strip() or "ok",
            "latency_ms": latency,
        }
