"""
Reverse geocoding through the Google Geocoding API.

Resolving a place name is enrichment only: every failure is logged and
reported as ``None`` so callers keep the bare coordinates.
"""

from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

LOCALITY_TYPES = ("locality", "administrative_area_level_2")
COMPONENT_TYPES = (
    "locality",
    "administrative_area_level_2",
    "administrative_area_level_1",
)


def extract_place_name(results: list[dict[str, Any]]) -> Optional[str]:
    """
    Pick a town or city name from geocoding results.

    Prefers the locality component of a locality-level result and falls back
    to the first segment of the first formatted address.
    """
    for result in results:
        if not any(t in result.get("types", []) for t in LOCALITY_TYPES):
            continue
        for component in result.get("address_components", []):
            if any(t in component.get("types", []) for t in COMPONENT_TYPES):
                return component.get("long_name")

    if results and results[0].get("formatted_address"):
        return results[0]["formatted_address"].split(",")[0].strip()
    return None


class ReverseGeocoder:
    """Resolves coordinates to a human-readable place name."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = settings.GOOGLE_GEOCODING_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self.base_url, params=params, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.base_url, params=params)

    async def reverse(self, lat: float, lng: float) -> Optional[str]:
        """Place name for the coordinates, or None when it cannot be resolved."""
        if not self.api_key:
            logger.info("No geocoding API key configured, skipping place name lookup")
            return None

        try:
            response = await self._get({"latlng": f"{lat},{lng}", "key": self.api_key})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {str(e)}")
            return None
        except ValueError as e:
            logger.warning(f"Reverse geocoding returned invalid JSON: {str(e)}")
            return None

        if data.get("status") != "OK" or not data.get("results"):
            logger.warning(f"Geocoding API error: {data.get('status')}")
            return None

        name = extract_place_name(data["results"])
        logger.info(f"Resolved ({lat}, {lng}) to {name}")
        return name


# Create a default instance
# Key should be set via environment variable: GOOGLE_MAPS_API_KEY
reverse_geocoder = ReverseGeocoder(
    api_key=settings.GOOGLE_MAPS_API_KEY, timeout=settings.HTTP_TIMEOUT_SECONDS
)
