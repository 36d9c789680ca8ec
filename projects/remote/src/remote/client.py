"""HTTP client for the schema sync backend."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from requests import RequestException, Session

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = getLogger(__name__)

DEFAULT_TIMEOUT = 30


class TransportError(Exception):
    """A request to the backend failed or returned something unreadable."""


class ApiBridge:
    """Synchronous JSON calls against the backend endpoints."""

    def __init__(
        self,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else Session()
        self.headers = {"Content-Type": "application/json", **(headers or {})}

    def url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def fetch_schema(self) -> Any:  # noqa: ANN401
        """Fetch the schema stored on the backend."""
        return self._request("GET", "/api/schema")

    def save_schema(self, payload: Any) -> Any:  # noqa: ANN401
        """Push a schema to the backend."""
        return self._request("POST", "/api/sync", payload)

    def save_layout(self, payload: Any) -> Any:  # noqa: ANN401
        """Push node positions to the backend."""
        return self._request("POST", "/api/save-layout", payload)

    def fetch_live_db(self, database_id: str) -> Any:  # noqa: ANN401
        """Fetch the schema of a live database connection."""
        return self._request("GET", f"/api/live-db/{database_id}")

    def fetch_databases(self) -> Any:  # noqa: ANN401
        """List the databases known to the backend."""
        return self._request("GET", "/api/databases")

    def _request(self, method: str, endpoint: str, payload: Any = None) -> Any:  # noqa: ANN401
        url = self.url(endpoint)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (RequestException, ValueError) as err:
            logger.error("%s %s failed: %s", method, url, err)
            msg = f"{method} {endpoint} failed: {err}"
            raise TransportError(msg) from err
