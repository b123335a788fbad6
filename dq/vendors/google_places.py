"""Client utilities for the Google Places API (v1)."""

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from dq.core.errors import UpstreamError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://places.googleapis.com/v1"

DEFAULT_NEARBY_TYPES = ("place_of_worship", "tourist_attraction")


class GooglePlacesError(UpstreamError):
    """Raised when the Places API returns a non-successful response."""


class PlacesClient:
    """Rate-limited Places lookups.

    Public methods never raise for upstream trouble: non-2xx responses and
    network failures are logged and reported as ``None`` (or ``[]``).
    """

    def __init__(self, api_key: str, delay_seconds: float = 0.2, timeout: float = 10) -> None:
        if not api_key:
            raise GooglePlacesError("GOOGLE_PLACES_API_KEY is required for Places lookups")
        self.api_key = api_key
        self.delay_seconds = delay_seconds
        self.timeout = timeout
        self._lock = threading.Lock()
        self._last_call = 0.0

    def _throttle(self) -> None:
        with self._lock:
            wait = self._last_call + self.delay_seconds - time.monotonic()
            if wait > 0:
                time.sleep(wait)
            self._last_call = time.monotonic()

    def _headers(self, field_mask: str) -> Dict[str, str]:
        return {
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
            "Content-Type": "application/json",
        }

    def _check(self, response: Any, what: str) -> Dict[str, Any]:
        if not 200 <= response.status_code < 300:
            logger.error("%s failed: status=%s, body=%s", what, response.status_code, response.text[:300])
            raise GooglePlacesError(f"{what} returned HTTP {response.status_code}")
        return response.json()

    def _get_place(self, place_id: str, field_mask: str) -> Dict[str, Any]:
        self._throttle()
        response = _SESSION.get(
            f"{_BASE_URL}/places/{place_id}",
            headers=self._headers(field_mask),
            timeout=self.timeout,
        )
        return self._check(response, f"place lookup {place_id}")

    def _safe_get_place(self, place_id: str, field_mask: str) -> Optional[Dict[str, Any]]:
        try:
            return self._get_place(place_id, field_mask)
        except (requests.RequestException, GooglePlacesError, ValueError) as exc:
            logger.warning("Places lookup for %s failed: %s", place_id, exc)
            return None

    @staticmethod
    def _summary_text(payload: Dict[str, Any]) -> Optional[str]:
        editorial = (payload.get("editorialSummary") or {}).get("text")
        generative = ((payload.get("generativeSummary") or {}).get("overview") or {}).get("text")
        return editorial or generative or None

    def display_name(self, place_id: str) -> Optional[str]:
        payload = self._safe_get_place(place_id, "displayName,types")
        if payload is None:
            return None
        return (payload.get("displayName") or {}).get("text") or None

    def summary(self, place_id: str) -> Optional[str]:
        """Editorial summary, falling back to the generative overview."""
        payload = self._safe_get_place(place_id, "editorialSummary,generativeSummary")
        if payload is None:
            return None
        return self._summary_text(payload)

    def nearby_search(
        self,
        lat: float,
        lng: float,
        radius_m: float = 100,
        type_hints: Sequence[str] = DEFAULT_NEARBY_TYPES,
        max_results: int = 5,
    ) -> List[Dict[str, Any]]:
        body = {
            "locationRestriction": {
                "circle": {"center": {"latitude": lat, "longitude": lng}, "radius": radius_m},
            },
            "includedTypes": list(type_hints),
            "maxResultCount": max_results,
        }
        try:
            self._throttle()
            response = _SESSION.post(
                f"{_BASE_URL}/places:searchNearby",
                headers=self._headers("places.id,places.displayName,places.types"),
                json=body,
                timeout=self.timeout,
            )
            payload = self._check(response, "nearby search")
        except (requests.RequestException, GooglePlacesError, ValueError) as exc:
            logger.warning("Nearby search at %.6f,%.6f failed: %s", lat, lng, exc)
            return []

        return [
            {
                "name": (place.get("displayName") or {}).get("text"),
                "place_id": place.get("id"),
                "types": place.get("types") or [],
            }
            for place in payload.get("places") or []
        ]
