"""Night-time ambiance descriptions for resolved candidates."""

import logging
from typing import List

from grubfinder.models import PRICE_UNKNOWN, Candidate, SearchCriterion
from grubfinder.vendors.gemini import GeminiClient

logger = logging.getLogger(__name__)

AMBIANCE_PROMPT = """Write a short, evocative description (one or two sentences) of the restaurant below,
focusing on its night-time dining atmosphere. If the venue is not suited to a night-time framing
(for example a breakfast cafe or a bakery), describe its general cozy atmosphere instead.
Do not mention the address, phone number, website or any other contact details.

The restaurant is known to be in {city} and was found in a search for {cuisine} food.
{facts}
"""


class AmbianceError(RuntimeError):
    """Raised when the model returns no usable description."""


def fallback_description(criterion: SearchCriterion) -> str:
    return f"A {criterion.cuisine} cuisine restaurant in {criterion.city}."


def _facts(candidate: Candidate) -> str:
    lines: List[str] = [f"Name: {candidate.name}"]
    if candidate.address:
        lines.append(f"Address: {candidate.address}")
    if candidate.price_level and candidate.price_level != PRICE_UNKNOWN:
        lines.append(f"Price level: {candidate.price_level}")
    if candidate.rating is not None:
        rating = f"Rating: {candidate.rating:.1f}/5"
        if candidate.review_count:
            rating += f" from {candidate.review_count} reviews"
        lines.append(rating)
    return "\n".join(lines)


class AmbianceEnricher:
    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    def render_prompt(self, candidate: Candidate, criterion: SearchCriterion) -> str:
        return AMBIANCE_PROMPT.format(city=criterion.city, cuisine=criterion.cuisine, facts=_facts(candidate))

    async def describe(self, candidate: Candidate, criterion: SearchCriterion) -> str:
        text = await self.client.generate_text(self.render_prompt(candidate, criterion))
        text = " ".join(text.split())
        if not text:
            raise AmbianceError(f"empty description for {candidate.name!r}")
        return text
