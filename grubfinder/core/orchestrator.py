"""Fan candidates out to per-item enrichment tasks and join the results by index."""

from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, List, Optional, Sequence

from grubfinder.core.ambiance import AmbianceEnricher, fallback_description
from grubfinder.core.image_synth import PLACEHOLDER_IMAGE_URL, ImageSynthesizer
from grubfinder.models import Candidate, EnrichedRestaurant, SearchCriterion

logger = logging.getLogger(__name__)


class EnrichmentOrchestrator:
    """Enrich every candidate concurrently without letting one failure affect the others.

    ``max_concurrency`` of 0 or None leaves the fan-out unbounded. When
    ``images`` is given, each candidate's image is generated alongside its
    description; otherwise ``image_ref`` is the placeholder and images are
    left to the lazy per-restaurant path.
    """

    def __init__(
        self,
        ambiance: AmbianceEnricher,
        *,
        images: Optional[ImageSynthesizer] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        self.ambiance = ambiance
        self.images = images
        self.max_concurrency = max_concurrency or None

    async def _describe(self, candidate: Candidate, criterion: SearchCriterion) -> str:
        try:
            return await self.ambiance.describe(candidate, criterion)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Description failed for %s: %s", candidate.name, exc)
            return fallback_description(criterion)

    async def _image(self, candidate: Candidate, criterion: SearchCriterion) -> str:
        if self.images is None:
            return PLACEHOLDER_IMAGE_URL
        try:
            return await self.images.synthesize_or_placeholder(candidate.name, criterion.cuisine, criterion.city)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Image failed for %s: %s", candidate.name, exc)
            return PLACEHOLDER_IMAGE_URL

    async def _enrich_one(
        self,
        candidate: Candidate,
        criterion: SearchCriterion,
        semaphore: Optional[asyncio.Semaphore],
    ) -> EnrichedRestaurant:
        async with semaphore if semaphore is not None else nullcontext():
            description, image_ref = await asyncio.gather(
                self._describe(candidate, criterion),
                self._image(candidate, criterion),
            )
        return EnrichedRestaurant.from_candidate(candidate, description=description, image_ref=image_ref)

    async def enrich(self, candidates: Sequence[Candidate], criterion: SearchCriterion) -> List[EnrichedRestaurant]:
        if not candidates:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        settled: List[Any] = await asyncio.gather(
            *(self._enrich_one(candidate, criterion, semaphore) for candidate in candidates),
            return_exceptions=True,
        )

        enriched: List[EnrichedRestaurant] = []
        for candidate, outcome in zip(candidates, settled):
            if isinstance(outcome, BaseException):
                logger.error("Enrichment task for %s failed unexpectedly: %s", candidate.name, outcome)
                outcome = EnrichedRestaurant.from_candidate(
                    candidate,
                    description=fallback_description(criterion),
                    image_ref=PLACEHOLDER_IMAGE_URL,
                )
            enriched.append(outcome)

        logger.info("Enriched %d candidates for %s in %s", len(enriched), criterion.cuisine, criterion.city)
        return enriched
