"""Entry points the presentation layer depends on.

Only ``ConfigError`` escapes from here; every other failure is absorbed into
fallback data, so an empty list means "no matches", not "something broke".
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from grubfinder.core.ambiance import AmbianceEnricher
from grubfinder.core.config import Settings, get_settings, require
from grubfinder.core.generations import SearchGenerations
from grubfinder.core.image_cache import ImageCache, image_cache_key
from grubfinder.core.image_synth import ImageSynthesizer
from grubfinder.core.orchestrator import EnrichmentOrchestrator
from grubfinder.core.resolver import CandidateResolver, build_resolver
from grubfinder.core.sub_cuisines import SubCuisineFinder
from grubfinder.models import EnrichedRestaurant, SearchCriterion
from grubfinder.vendors.gemini import GeminiClient

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    generation: int
    criterion: SearchCriterion
    restaurants: List[EnrichedRestaurant] = field(default_factory=list)
    session_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "generation": self.generation,
            "criterion": self.criterion.to_dict(),
            "restaurants": [restaurant.to_dict() for restaurant in self.restaurants],
        }


@dataclass
class SearchSession:
    """Search state owned by one client.

    A newer search only supersedes older searches of the same session, and
    image eviction after a search only touches that session's own cache.
    """

    session_id: Optional[str] = None
    generations: SearchGenerations = field(default_factory=SearchGenerations)
    image_cache: ImageCache = field(default_factory=ImageCache)


class GrubFinder:
    """Wires the resolver, orchestrator and image caches from settings.

    ``image_cache`` is shared by image requests that carry no session id.
    Per-client generations and caches live in a bounded LRU of sessions.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        gemini: Optional[GeminiClient] = None,
        resolver: Optional[CandidateResolver] = None,
        orchestrator: Optional[EnrichmentOrchestrator] = None,
        images: Optional[ImageSynthesizer] = None,
        image_cache: Optional[ImageCache] = None,
        max_sessions: int = 256,
        shared_cache_size: int = 512,
    ) -> None:
        self.settings = settings or get_settings()
        self._gemini = gemini
        self._images = images
        self.resolver = resolver or build_resolver(self.settings, gemini=gemini)
        self.orchestrator = orchestrator or EnrichmentOrchestrator(
            AmbianceEnricher(self.gemini),
            images=self.images if self.settings.images_eager else None,
            max_concurrency=self.settings.enrich_max_concurrency,
        )
        self.image_cache = image_cache or ImageCache(max_entries=shared_cache_size)
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, SearchSession]" = OrderedDict()

    @property
    def gemini(self) -> GeminiClient:
        if self._gemini is None:
            self._gemini = GeminiClient(
                require(self.settings.gemini_api_key, "GEMINI_API_KEY"),
                text_model=self.settings.text_model,
                image_model=self.settings.image_model,
            )
        return self._gemini

    @property
    def images(self) -> ImageSynthesizer:
        if self._images is None:
            self._images = ImageSynthesizer(self.gemini)
        return self._images

    def session(self, session_id: str) -> SearchSession:
        """Return the session for ``session_id``, creating it on first use."""
        session = self._sessions.get(session_id)
        if session is None:
            session = SearchSession(session_id=session_id)
            self._sessions[session_id] = session
            while len(self._sessions) > self.max_sessions:
                expired, _ = self._sessions.popitem(last=False)
                logger.debug("Dropped idle search session %s", expired)
        else:
            self._sessions.move_to_end(session_id)
        return session

    async def resolve_and_enrich(self, criterion: SearchCriterion) -> List[EnrichedRestaurant]:
        logger.info("Searching %s/%s restaurants in %s", criterion.cuisine, criterion.sub_cuisine or "*", criterion.city)
        candidates = await self.resolver.resolve(criterion)
        if not candidates:
            logger.info("No candidates for %s in %s", criterion.cuisine, criterion.city)
            return []
        return await self.orchestrator.enrich(candidates, criterion)

    async def search(self, criterion: SearchCriterion, *, session_id: Optional[str] = None) -> Optional[SearchResult]:
        """Run a search tagged with a new generation of its session.

        Returns None when a newer search of the same session started before
        this one finished. Without a session id the search stands alone and
        can never be superseded.
        """
        session = self.session(session_id) if session_id else SearchSession()
        generation = session.generations.begin(criterion)
        restaurants = await self.resolve_and_enrich(criterion)
        if session.generations.accept(generation, restaurants) is None:
            return None
        if session_id:
            session.image_cache.retain(
                image_cache_key(r.name, r.address, criterion.city, criterion.cuisine) for r in restaurants
            )
        return SearchResult(
            generation=generation, criterion=criterion, restaurants=restaurants, session_id=session_id
        )

    async def synthesize_image(
        self,
        name: str,
        cuisine: str,
        city: str,
        *,
        address: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> str:
        """Lazy per-restaurant image, deduplicated per cache key."""
        key = image_cache_key(name, address, city, cuisine)
        cache = self.session(session_id).image_cache if session_id else self.image_cache
        return await cache.get(key, lambda: self.images.synthesize(name, cuisine, city))

    async def list_sub_cuisines(self, cuisine: str) -> List[str]:
        return await SubCuisineFinder(self.gemini).list_sub_cuisines(cuisine)


@lru_cache(maxsize=1)
def get_finder() -> GrubFinder:
    return GrubFinder()


async def resolve_and_enrich_restaurants(
    criterion: SearchCriterion,
    *,
    finder: Optional[GrubFinder] = None,
) -> List[EnrichedRestaurant]:
    return await (finder or get_finder()).resolve_and_enrich(criterion)


async def synthesize_image(
    name: str,
    cuisine: str,
    city: str,
    *,
    address: Optional[str] = None,
    session_id: Optional[str] = None,
    finder: Optional[GrubFinder] = None,
) -> str:
    return await (finder or get_finder()).synthesize_image(
        name, cuisine, city, address=address, session_id=session_id
    )


async def list_sub_cuisines(cuisine: str, *, finder: Optional[GrubFinder] = None) -> List[str]:
    return await (finder or get_finder()).list_sub_cuisines(cuisine)
