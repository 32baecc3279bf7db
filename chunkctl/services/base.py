"""Base service with common methods for store-facing services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from chunkctl.core.exceptions import ProtocolInconsistencyError

if TYPE_CHECKING:
    from chunkctl.core.client import StoreClient


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "StoreClient") -> None:
        """Initialize service with a store client.

        Args:
            client: StoreClient instance
        """
        self.client = client

    def _json(self, resp: httpx.Response, upload_id: str | None = None) -> Any:
        """Decode a JSON body, treating garbage as a protocol failure."""
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolInconsistencyError(
                f"Store returned a non-JSON body for {resp.request.method} "
                f"{resp.request.url.path}",
                upload_id,
            ) from e

    def _get(self, path: str, **kwargs: Any) -> Any:
        """Execute GET request and return JSON data.

        Args:
            path: API endpoint path
            **kwargs: Additional request parameters

        Returns:
            Parsed JSON response data
        """
        return self._json(self.client.get(path, **kwargs))

    def _post(self, path: str, **kwargs: Any) -> Any:
        """Execute POST request and return JSON data.

        Args:
            path: API endpoint path
            **kwargs: Additional request parameters

        Returns:
            Parsed JSON response data
        """
        return self._json(self.client.post(path, **kwargs))

    def _build_path(self, *parts: str) -> str:
        """Build API path from parts, quoting each segment.

        Args:
            *parts: Path segments

        Returns:
            Joined path string
        """
        return "/" + "/".join(quote(p.strip("/"), safe="") for p in parts if p)
