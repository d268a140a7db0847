"""
Address geocoder using the Nominatim search API

Resolves a free-text address to a WGS84 point, restricted to a single
country's results. Only the top-ranked candidate is used.
"""

import re
import time
import threading
from typing import Optional

import requests
from loguru import logger
from pydantic import ValidationError

from ..config import get_config, PipelineConfig
from ..errors import GeocodingFailure, GeocodingFailureReason
from ..models import GeoPoint


def normalize_address(address: str) -> str:
    """Collapse runs of whitespace and trim"""
    return re.sub(r"\s+", " ", address or "").strip()


class Geocoder:
    """Resolve addresses via Nominatim"""

    # Shared across instances: Nominatim rate limits per client
    _rate_lock = threading.Lock()
    _last_request_time = 0.0

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        self.url = self.config.api.geocoder_url
        self.country_code = self.config.api.country_code
        self._min_request_interval = self.config.api.geocoder_min_interval_s

    def _rate_limit(self):
        """Ensure we don't exceed rate limits"""
        cls = type(self)
        with cls._rate_lock:
            elapsed = time.time() - cls._last_request_time
            if elapsed < self._min_request_interval:
                time.sleep(self._min_request_interval - elapsed)
            cls._last_request_time = time.time()

    def resolve(self, address: str) -> GeoPoint:
        """
        Resolve an address to a point

        Args:
            address: Free-text street address

        Returns:
            GeoPoint of the top-ranked candidate

        Raises:
            GeocodingFailure: network_error, no_results or malformed_response
        """
        query = normalize_address(address)
        if not query:
            raise GeocodingFailure(GeocodingFailureReason.NO_RESULTS, address, "empty address")

        self._rate_limit()
        logger.debug(f"Geocoding {query!r} (country={self.country_code})")

        try:
            response = requests.get(
                self.url,
                params={
                    "format": "json",
                    "countrycodes": self.country_code,
                    "limit": 1,
                    "q": query,
                },
                headers={"User-Agent": self.config.api.user_agent},
                timeout=self.config.api.request_timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Geocoding request failed for {query!r}: {e}")
            raise GeocodingFailure(GeocodingFailureReason.NETWORK_ERROR, query, str(e)) from e

        try:
            candidates = response.json()
        except ValueError as e:
            raise GeocodingFailure(GeocodingFailureReason.MALFORMED_RESPONSE, query, "invalid JSON") from e

        if not isinstance(candidates, list):
            raise GeocodingFailure(
                GeocodingFailureReason.MALFORMED_RESPONSE, query, "expected a list of candidates"
            )
        if not candidates:
            logger.warning(f"No geocoding results for {query!r}")
            raise GeocodingFailure(GeocodingFailureReason.NO_RESULTS, query)

        top = candidates[0]
        try:
            point = GeoPoint(
                latitude=float(top["lat"]),
                longitude=float(top["lon"]),
                display_name=top.get("display_name"),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise GeocodingFailure(
                GeocodingFailureReason.MALFORMED_RESPONSE, query, f"bad candidate: {e}"
            ) from e

        logger.info(f"Geocoded {query!r} -> ({point.latitude:.6f}, {point.longitude:.6f})")
        return point
