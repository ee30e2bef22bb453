"""
Google Places client used for lead discovery.

Two calls:
- text search "<industry> in <geography>" -> candidate place ids
- place details per id -> name, website, phone, formatted address

Environment variables:
- GOOGLE_PLACES_API_KEY: enables discovery; without it `configured` is False
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)

PLACES_BASE_URL: str = "https://maps.googleapis.com/maps/api/place"
PLACES_TIMEOUT_SECONDS: float = 15.0

_DETAIL_FIELDS = "name,website,formatted_phone_number,formatted_address"


@dataclass(frozen=True, slots=True)
class PlaceDetails:
    place_id: str
    name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @property
    def city(self) -> Optional[str]:
        """First comma-separated segment of the formatted address."""

        if not self.address:
            return None
        return self.address.split(",")[0].strip() or None


class PlacesClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = PLACES_BASE_URL,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv("GOOGLE_PLACES_API_KEY")
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, params: dict[str, str]) -> dict:
        query = dict(params, key=self.api_key or "")
        with httpx.Client(timeout=PLACES_TIMEOUT_SECONDS, transport=self._transport) as client:
            response = client.get(f"{self.base_url}{path}", params=query)
        response.raise_for_status()
        return response.json()

    def text_search(self, query: str) -> List[str]:
        """
        Place ids matching a free-text query, in relevance order.

        Raises httpx.HTTPError on transport failure or non-2xx.
        """

        data = self._get("/textsearch/json", {"query": query})
        results = data.get("results") or []
        return [str(place["place_id"]) for place in results if place.get("place_id")]

    def place_details(self, place_id: str) -> Optional[PlaceDetails]:
        """Details for one place, or None when the response has no result or no name."""

        data = self._get("/details/json", {"place_id": place_id, "fields": _DETAIL_FIELDS})
        result = data.get("result")
        if not result or not result.get("name"):
            logger.warning("Place details missing", extra={"place_id": place_id, "status": data.get("status")})
            return None

        return PlaceDetails(
            place_id=place_id,
            name=str(result["name"]),
            website=result.get("website") or None,
            phone=result.get("formatted_phone_number") or None,
            address=result.get("formatted_address") or None,
        )


__all__ = ["PlaceDetails", "PlacesClient"]
