"""Utilities for transforming Places and generated payloads into candidates."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import phonenumbers

from grubfinder.models import PRICE_LEVELS, PRICE_UNKNOWN, Candidate, GeoPoint, SearchCriterion

logger = logging.getLogger(__name__)

WILDCARD_CUISINES = {"", "any", "all", "*"}


def build_search_query(criterion: SearchCriterion) -> str:
    cuisine = (criterion.cuisine or "").strip()
    city = (criterion.city or "").strip()
    if cuisine.lower() in WILDCARD_CUISINES:
        return f"restaurants in {city}"

    parts = [(criterion.sub_cuisine or "").strip(), cuisine, "restaurants"]
    return f"{' '.join(filter(None, parts))} in {city}"


def map_price_level(value: Any) -> str:
    """Map the numeric Places price tier (0-4) onto the ``$`` scale."""
    if value is None or isinstance(value, bool):
        return PRICE_UNKNOWN
    try:
        tier = int(float(value))
    except (TypeError, ValueError):
        return PRICE_UNKNOWN
    tier = min(max(tier, 1), len(PRICE_LEVELS))
    return PRICE_LEVELS[tier - 1]


def normalize_phone(raw: Optional[str], default_region: Optional[str] = None) -> Optional[str]:
    """Return an E.164 phone string, or None when the number cannot be parsed."""
    if not raw or not raw.strip():
        return None
    try:
        parsed = phonenumbers.parse(raw.strip(), default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_possible_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def sanitize_website(raw_url: Optional[str]) -> Optional[str]:
    """Keep absolute http(s) URLs only."""
    if not raw_url:
        return None
    url = raw_url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return url


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    try:
        if value is None:
            return None
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_location(result: Dict[str, Any]) -> Optional[GeoPoint]:
    location = (result.get("geometry") or {}).get("location") or {}
    lat = _safe_float(location.get("lat"))
    lng = _safe_float(location.get("lng"))
    if lat is None or lng is None:
        return None
    return GeoPoint(lat=lat, lng=lng)


def to_candidate(
    result: Dict[str, Any],
    basic: Optional[Dict[str, Any]] = None,
    default_phone_region: Optional[str] = None,
) -> Optional[Candidate]:
    """Build a Candidate from a details payload, filling gaps from the search hit.

    Returns None when neither payload carries a name.
    """
    basic = basic or {}
    merged = {**basic, **{key: value for key, value in result.items() if value is not None}}

    name = _strip_or_none(merged.get("name"))
    if not name:
        logger.debug("Skipping place without a name: %s", merged.get("place_id"))
        return None

    # Directory numbers are real; keep the local format when no region is configured.
    raw_phone = _strip_or_none(merged.get("formatted_phone_number"))
    phone_number = normalize_phone(raw_phone, default_phone_region) or raw_phone

    return Candidate(
        name=name,
        address=_strip_or_none(merged.get("formatted_address") or merged.get("vicinity")),
        rating=_safe_float(merged.get("rating")),
        review_count=_safe_int(merged.get("user_ratings_total")),
        price_level=map_price_level(merged.get("price_level")),
        place_id=_strip_or_none(merged.get("place_id")),
        location=_parse_location(merged),
        phone_number=phone_number,
        website_url=sanitize_website(merged.get("website")),
    )


def from_generated(record: Dict[str, Any], default_phone_region: Optional[str] = None) -> Optional[Candidate]:
    """Build a Candidate from one generated restaurant.

    Contact fields that cannot be validated are omitted rather than passed on.
    """
    name = _strip_or_none(record.get("name"))
    if not name:
        return None

    price_level = _strip_or_none(record.get("price_level"))
    if price_level not in PRICE_LEVELS:
        price_level = PRICE_UNKNOWN

    return Candidate(
        name=name,
        address=_strip_or_none(record.get("address")),
        rating=_safe_float(record.get("rating")),
        review_count=_safe_int(record.get("review_count")),
        price_level=price_level,
        phone_number=normalize_phone(record.get("phone_number"), default_phone_region),
        website_url=sanitize_website(record.get("website_url")),
    )
