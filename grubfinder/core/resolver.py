"""Candidate resolution strategies.

Two interchangeable strategies turn a SearchCriterion into an ordered,
size-bounded list of Candidates:

* ``GenerativeResolver`` asks the generative model to invent plausible
  restaurants. Contact fields it returns are unverified.
* ``DirectoryLookupResolver`` runs a Places text search and fetches details
  for each hit.

Both resolve to an empty list when their upstream call fails wholesale; only
configuration errors raise.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from grubfinder.core.config import ConfigError, Settings, require
from grubfinder.core.image_synth import PLACEHOLDER_IMAGE_URL
from grubfinder.etl.transform import build_search_query, from_generated, to_candidate
from grubfinder.models import Candidate, SearchCriterion
from grubfinder.vendors import google_places
from grubfinder.vendors.gemini import GeminiClient, GeminiError

logger = logging.getLogger(__name__)


class GeneratedRestaurant(BaseModel):
    name: str = Field(description="The restaurant's name.")
    image_url: str = Field(
        default=PLACEHOLDER_IMAGE_URL,
        description=f"MUST be exactly '{PLACEHOLDER_IMAGE_URL}'.",
    )
    address: Optional[str] = Field(
        default=None, description="Street address in the requested city. Omit unless highly confident it is real."
    )
    phone_number: Optional[str] = Field(
        default=None, description="Phone number. Omit unless highly confident it is real."
    )
    website_url: Optional[str] = Field(
        default=None, description="Official website. Omit unless highly confident it is real."
    )
    rating: Optional[float] = Field(default=None, description="Simulated rating from 0 to 5.")
    review_count: Optional[int] = Field(default=None, description="Simulated number of reviews.")
    price_level: Optional[str] = Field(default=None, description="One of $, $$, $$$, $$$$.")


class GeneratedRestaurants(BaseModel):
    restaurants: List[GeneratedRestaurant] = Field(default_factory=list)


GENERATIVE_PROMPT = """You are a restaurant finder. Find restaurants matching the cuisine, city and,
optionally, the sub-cuisine below. Prefer between 6 and 12 diverse, realistic restaurants
located in the given city; returning fewer is acceptable.

Rules:
- For image_url you MUST use '{placeholder}' for every restaurant. Never search for or invent other image URLs.
- Only include address, phone_number and website_url when you are highly confident they belong to a real
  restaurant in {city}. Otherwise leave them out. Never guess contact details.
- rating (0-5), review_count and price_level ($, $$, $$$ or $$$$) may be simulated.

Cuisine: {cuisine}
Sub-cuisine: {sub_cuisine}
City: {city}
"""


class CandidateResolver:
    """Base class for resolution strategies."""

    name = "base"

    def __init__(self, max_candidates: int = 12) -> None:
        self.max_candidates = max_candidates

    async def resolve(self, criterion: SearchCriterion) -> List[Candidate]:
        raise NotImplementedError


class GenerativeResolver(CandidateResolver):
    name = "generative"

    def __init__(
        self,
        client: GeminiClient,
        *,
        max_candidates: int = 12,
        default_phone_region: Optional[str] = None,
    ) -> None:
        super().__init__(max_candidates)
        self.client = client
        self.default_phone_region = default_phone_region

    @staticmethod
    def render_prompt(criterion: SearchCriterion) -> str:
        if not criterion.has_sub_cuisine_preference:
            sub_cuisine = f"No preference (pick the {criterion.cuisine} restaurants locals recommend most)"
        elif criterion.is_any_sub_cuisine:
            sub_cuisine = f"Any (search all types of {criterion.cuisine} restaurants)"
        else:
            sub_cuisine = criterion.sub_cuisine.strip()
        return GENERATIVE_PROMPT.format(
            placeholder=PLACEHOLDER_IMAGE_URL,
            cuisine=criterion.cuisine,
            sub_cuisine=sub_cuisine,
            city=criterion.city,
        )

    async def resolve(self, criterion: SearchCriterion) -> List[Candidate]:
        try:
            output = await self.client.generate_structured(self.render_prompt(criterion), GeneratedRestaurants)
        except GeminiError as exc:
            logger.error("Generative resolution failed for %s: %s", criterion, exc)
            return []

        candidates: List[Candidate] = []
        for record in output.restaurants:
            candidate = from_generated(record.model_dump(), self.default_phone_region)
            if candidate is None:
                continue
            candidates.append(candidate)
            if len(candidates) >= self.max_candidates:
                break

        if len(candidates) < 6:
            logger.info("Generator returned %d restaurants for %s", len(candidates), criterion)
        return candidates


class DirectoryLookupResolver(CandidateResolver):
    name = "lookup"

    def __init__(
        self,
        api_key: str,
        *,
        max_candidates: int = 12,
        search_limit: int = 15,
        language: Optional[str] = "en",
        default_phone_region: Optional[str] = None,
    ) -> None:
        super().__init__(max_candidates)
        self.api_key = require(api_key, "GOOGLE_API_KEY")
        self.search_limit = search_limit
        self.language = language
        self.default_phone_region = default_phone_region

    async def _details(self, hit: Dict[str, Any]) -> Optional[Candidate]:
        place_id = hit.get("place_id")
        details: Dict[str, Any] = {}
        if place_id:
            try:
                details = await asyncio.to_thread(
                    google_places.place_details, place_id, self.api_key, language=self.language
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to fetch details for %s: %s", place_id, exc)
        else:
            logger.debug("Search hit without place_id, using basic fields: %s", hit.get("name"))
        return to_candidate(details, basic=hit, default_phone_region=self.default_phone_region)

    async def resolve(self, criterion: SearchCriterion) -> List[Candidate]:
        query = build_search_query(criterion)
        logger.info("Running Places text search for query=%s", query)
        try:
            hits = await asyncio.to_thread(
                google_places.text_search, query, self.api_key, place_type="restaurant", language=self.language
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Places text search failed for query=%s: %s", query, exc)
            return []

        if not hits:
            logger.info("No places found for query=%s", query)
            return []

        hits = [hit for hit in hits[: self.search_limit] if hit.get("name") or hit.get("place_id")]
        hits = hits[: self.max_candidates]
        results = await asyncio.gather(*(self._details(hit) for hit in hits))
        candidates = [candidate for candidate in results if candidate is not None]
        logger.info("Resolved %d candidates for query=%s", len(candidates), query)
        return candidates


def build_resolver(settings: Settings, *, gemini: Optional[GeminiClient] = None) -> CandidateResolver:
    """Select the resolution strategy configured by RESOLVER_STRATEGY."""
    if settings.resolver_strategy == "lookup":
        return DirectoryLookupResolver(
            settings.google_api_key,
            max_candidates=settings.max_candidates,
            search_limit=settings.places_search_limit,
            language=settings.places_language,
            default_phone_region=settings.default_phone_region,
        )
    if settings.resolver_strategy == "generative":
        if gemini is None:
            gemini = GeminiClient(
                require(settings.gemini_api_key, "GEMINI_API_KEY"),
                text_model=settings.text_model,
                image_model=settings.image_model,
            )
        return GenerativeResolver(
            gemini,
            max_candidates=settings.max_candidates,
            default_phone_region=settings.default_phone_region,
        )
    raise ConfigError(f"Unknown resolver strategy: {settings.resolver_strategy!r}")
