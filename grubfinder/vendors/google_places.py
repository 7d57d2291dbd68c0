"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_TIMEOUT = 10

DETAIL_FIELDS = (
    "place_id",
    "name",
    "formatted_address",
    "rating",
    "user_ratings_total",
    "price_level",
    "geometry",
    "formatted_phone_number",
    "website",
)


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def _check_status(payload: Dict[str, Any], operation: str) -> None:
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("%s failed: status=%s, error_message=%s", operation, status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)


def text_search(
    query: str,
    api_key: str,
    *,
    place_type: Optional[str] = "restaurant",
    language: Optional[str] = None,
) -> List[Dict[str, Any]]:
    params = {"query": query, "key": api_key}
    if place_type:
        params["type"] = place_type
    if language:
        params["language"] = language
    response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=_TIMEOUT)
    response.raise_for_status()
    payload = response.json()
    _check_status(payload, "text_search")
    return payload.get("results", [])


def place_details(
    place_id: str,
    api_key: str,
    *,
    fields: Sequence[str] = DETAIL_FIELDS,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": ",".join(fields)}
    if language:
        params["language"] = language
    response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=_TIMEOUT)
    response.raise_for_status()
    payload = response.json()
    _check_status(payload, "place_details")
    return payload.get("result", {})
