"""Cuisine catalogue and generated sub-cuisine suggestions."""

import logging
from typing import List

from pydantic import BaseModel, Field

from grubfinder.vendors.gemini import GeminiClient, GeminiError

logger = logging.getLogger(__name__)

MAX_SUB_CUISINES = 15

CUISINE_TYPES = (
    "American",
    "Brazilian",
    "Chinese",
    "French",
    "Greek",
    "Indian",
    "Italian",
    "Japanese",
    "Korean",
    "Lebanese",
    "Mexican",
    "Peruvian",
    "Spanish",
    "Thai",
    "Turkish",
    "Vietnamese",
)

SUB_CUISINE_PROMPT = (
    "List up to {limit} well-known sub-cuisines, regional styles or signature dishes of {cuisine} cuisine "
    "that people commonly search restaurants for (for example, for Italian: Pizza, Pasta, Sicilian). "
    "Use short names only."
)


class SubCuisineList(BaseModel):
    sub_cuisines: List[str] = Field(default_factory=list)


def _dedupe(names: List[str]) -> List[str]:
    seen = set()
    unique: List[str] = []
    for name in names:
        cleaned = " ".join((name or "").split())
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        unique.append(cleaned)
    return unique


class SubCuisineFinder:
    def __init__(self, client: GeminiClient, limit: int = MAX_SUB_CUISINES) -> None:
        self.client = client
        self.limit = limit

    async def list_sub_cuisines(self, cuisine: str) -> List[str]:
        prompt = SUB_CUISINE_PROMPT.format(limit=self.limit, cuisine=cuisine)
        try:
            output = await self.client.generate_structured(prompt, SubCuisineList, temperature=0.2)
        except GeminiError as exc:
            logger.error("Sub-cuisine lookup failed for %s: %s", cuisine, exc)
            return []
        return _dedupe(output.sub_cuisines)[: self.limit]
