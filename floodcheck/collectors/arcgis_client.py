"""
ArcGIS REST API client

Handles communication with an ArcGIS MapServer:
- Per-call timeout
- Error payloads returned with HTTP 200
- Malformed responses
"""

from typing import Any, Dict, Optional

import requests
from loguru import logger

from ..config import get_config, PipelineConfig


class ArcGISServiceError(RuntimeError):
    """MapServer request failed or returned an unusable payload"""


class ArcGISAPIClient:
    """Client for an ArcGIS MapServer. No retries: callers decide."""

    def __init__(self, service_url: Optional[str] = None, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        self.service_url = (service_url or self.config.api.flood_service_url or "").rstrip("/")
        self.timeout = self.config.api.request_timeout

    @property
    def configured(self) -> bool:
        return bool(self.service_url)

    def get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        GET a JSON resource below the service URL

        Args:
            path: Resource path, e.g. "10/query" or "identify"
            params: Query parameters ("f=json" is added)

        Returns:
            Decoded JSON object

        Raises:
            ArcGISServiceError: on network, HTTP, or payload errors
        """
        if not self.configured:
            raise ArcGISServiceError("flood service URL not configured")

        url = f"{self.service_url}/{path}"
        query = {"f": "json"}
        query.update(params)

        try:
            response = requests.get(
                url,
                params=query,
                headers={"User-Agent": self.config.api.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise ArcGISServiceError(f"timeout after {self.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            raise ArcGISServiceError(f"HTTP {e.response.status_code}") from e
        except requests.exceptions.RequestException as e:
            raise ArcGISServiceError(f"request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ArcGISServiceError("invalid JSON in response") from e

        if not isinstance(data, dict):
            raise ArcGISServiceError("expected a JSON object")
        if "error" in data:
            error = data["error"] or {}
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else error
            raise ArcGISServiceError(f"service error {code}: {message}")

        logger.debug(f"ArcGIS {path}: {len(data)} keys")
        return data
