"""HTTP client for the delay tracker API, used by the dashboard."""
from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"


class DelayApiError(Exception):
    """The API answered with an error envelope or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error

    def __str__(self) -> str:
        if self.error and self.error != self.message:
            return f"{self.message}: {self.error}"
        return self.message


class DelayApiClient:
    """Thin wrapper around the REST endpoints. Every call returns the decoded envelope."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Args:
            base_url: API root including the /api prefix
            timeout: Request timeout in seconds
            http_client: Preconfigured client; its own base_url is used as is
        """
        self.http = http_client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Content-Type": "application/json"}
        )

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request {method} {path} failed: {e}")
            raise DelayApiError(f"Cannot reach the delay API: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_error:
            raise DelayApiError(
                body.get("message") or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                error=body.get("error")
            )

        return body

    # Aggregation API
    def get_delays_by_neighborhood(self) -> Dict[str, Any]:
        return self._request("GET", "/delays/aggregate/by-neighborhood")

    # CRUD APIs
    def get_all_delays(self, page: int = 1, limit: int = 10, status: str = "active") -> Dict[str, Any]:
        return self._request("GET", "/delays", params={"page": page, "limit": limit, "status": status})

    def create_delay(self, delay_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/delays", json=delay_data)

    def delete_delay(self, delay_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/delays/{delay_id}")

    def resolve_delay(self, delay_id: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/delays/{delay_id}/resolve")

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
