"""Core data models shared by the resolution and enrichment pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

PRICE_LEVELS = ("$", "$$", "$$$", "$$$$")
PRICE_UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class SearchCriterion:
    """A single user search.

    ``sub_cuisine == ""`` means "any sub-cuisine" (search every style of the
    cuisine); ``None`` means the caller gave no preference at all. Directory
    queries treat both the same way, but the generative prompt does not.
    """

    cuisine: str
    city: str
    sub_cuisine: Optional[str] = ""

    @property
    def is_any_sub_cuisine(self) -> bool:
        return self.sub_cuisine is not None and not self.sub_cuisine.strip()

    @property
    def has_sub_cuisine_preference(self) -> bool:
        return self.sub_cuisine is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class Candidate:
    """Unenriched restaurant record produced by a resolver."""

    name: str
    address: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_level: Optional[str] = None
    place_id: Optional[str] = None
    location: Optional[GeoPoint] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None

    def __post_init__(self) -> None:
        if self.rating is not None and not 0 <= self.rating <= 5:
            object.__setattr__(self, "rating", None)
        if self.review_count is not None and self.review_count < 0:
            object.__setattr__(self, "review_count", None)
        if self.price_level is not None and self.price_level not in PRICE_LEVELS + (PRICE_UNKNOWN,):
            object.__setattr__(self, "price_level", PRICE_UNKNOWN)


@dataclass(frozen=True, slots=True)
class EnrichedRestaurant:
    """Candidate fields merged with the outputs of its enrichment tasks."""

    name: str
    image_ref: str
    address: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    price_level: Optional[str] = None
    place_id: Optional[str] = None
    location: Optional[GeoPoint] = None
    phone_number: Optional[str] = None
    website_url: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        *,
        image_ref: str,
        description: Optional[str] = None,
    ) -> "EnrichedRestaurant":
        values = {f.name: getattr(candidate, f.name) for f in fields(Candidate)}
        return cls(image_ref=image_ref, description=description, **values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
