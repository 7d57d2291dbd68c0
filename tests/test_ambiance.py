import asyncio

import pytest

from grubfinder.core.ambiance import AmbianceEnricher, fallback_description
from grubfinder.models import Candidate, SearchCriterion
from grubfinder.vendors.gemini import GeminiError

CRITERION = SearchCriterion(cuisine="Thai", sub_cuisine="Curry", city="Portland")


def test_fallback_description():
    assert fallback_description(CRITERION) == "A Thai cuisine restaurant in Portland."


def test_prompt_includes_available_facts_only(fake_gemini):
    enricher = AmbianceEnricher(fake_gemini)
    candidate = Candidate(
        name="Lotus",
        address="5 River Rd",
        rating=4.3,
        review_count=120,
        price_level="$$",
        phone_number="+15035550100",
    )

    prompt = enricher.render_prompt(candidate, CRITERION)

    assert "Name: Lotus" in prompt
    assert "Address: 5 River Rd" in prompt
    assert "Price level: $$" in prompt
    assert "Rating: 4.3/5 from 120 reviews" in prompt
    assert "known to be in Portland" in prompt
    assert "night-time" in prompt
    assert "+15035550100" not in prompt

    bare = enricher.render_prompt(Candidate(name="Lotus", price_level="Unknown"), CRITERION)
    assert "Price level" not in bare
    assert "Rating" not in bare
    assert "Address" not in bare


def test_describe_collapses_whitespace(fake_gemini):
    fake_gemini.text = "  Lanterns glow over\n late-night curry.  "
    text = asyncio.run(AmbianceEnricher(fake_gemini).describe(Candidate(name="Lotus"), CRITERION))
    assert text == "Lanterns glow over late-night curry."


def test_describe_propagates_errors(fake_gemini):
    fake_gemini.text = GeminiError("boom")
    with pytest.raises(GeminiError):
        asyncio.run(AmbianceEnricher(fake_gemini).describe(Candidate(name="Lotus"), CRITERION))
