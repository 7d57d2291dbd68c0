import asyncio

import pytest

from grubfinder.core import resolver
from grubfinder.core.config import ConfigError, Settings
from grubfinder.core.image_synth import PLACEHOLDER_IMAGE_URL
from grubfinder.models import SearchCriterion
from grubfinder.vendors.gemini import GeminiError

CRITERION = SearchCriterion(cuisine="Italian", sub_cuisine="", city="Springfield")


def _generated(count):
    return {
        "restaurants": [
            {"name": f"Trattoria {i}", "image_url": PLACEHOLDER_IMAGE_URL, "rating": 4.0, "price_level": "$$"}
            for i in range(count)
        ]
    }


def test_generative_prompt_rules():
    prompt = resolver.GenerativeResolver.render_prompt(CRITERION)
    assert PLACEHOLDER_IMAGE_URL in prompt
    assert "highly confident" in prompt
    assert "between 6 and 12" in prompt
    assert "Any (search all types of Italian restaurants)" in prompt

    prompt = resolver.GenerativeResolver.render_prompt(
        SearchCriterion(cuisine="Italian", sub_cuisine="Pizza", city="Springfield")
    )
    assert "Sub-cuisine: Pizza" in prompt


def test_generative_prompt_tells_no_preference_from_any():
    no_preference = resolver.GenerativeResolver.render_prompt(
        SearchCriterion(cuisine="Italian", sub_cuisine=None, city="Springfield")
    )
    assert "Sub-cuisine: No preference" in no_preference
    assert "Any (search all types" not in no_preference

    blank = resolver.GenerativeResolver.render_prompt(
        SearchCriterion(cuisine="Italian", sub_cuisine="  ", city="Springfield")
    )
    assert "Any (search all types of Italian restaurants)" in blank


def test_generative_resolver_caps_results(fake_gemini):
    fake_gemini.structured = _generated(20)
    candidates = asyncio.run(resolver.GenerativeResolver(fake_gemini, max_candidates=12).resolve(CRITERION))
    assert len(candidates) == 12
    assert [c.name for c in candidates[:2]] == ["Trattoria 0", "Trattoria 1"]


def test_generative_resolver_accepts_fewer_results(fake_gemini):
    fake_gemini.structured = _generated(2)
    candidates = asyncio.run(resolver.GenerativeResolver(fake_gemini).resolve(CRITERION))
    assert len(candidates) == 2


def test_generative_resolver_returns_empty_on_failure(fake_gemini):
    fake_gemini.structured = GeminiError("unparseable")
    assert asyncio.run(resolver.GenerativeResolver(fake_gemini).resolve(CRITERION)) == []


def _hit(i, **extra):
    return {"place_id": f"p{i}", "name": f"Place {i}", "formatted_address": f"{i} Main St", "rating": 4.0, **extra}


@pytest.fixture
def lookup():
    return resolver.DirectoryLookupResolver("places-key")


def test_lookup_requires_api_key():
    with pytest.raises(ConfigError):
        resolver.DirectoryLookupResolver("")


def test_lookup_fetches_details_and_caps(monkeypatch, lookup):
    queries = []
    detail_calls = []

    def fake_text_search(query, api_key, place_type=None, language=None):
        queries.append((query, place_type))
        return [_hit(i) for i in range(20)]

    def fake_place_details(place_id, api_key, language=None):
        detail_calls.append(place_id)
        return {
            "place_id": place_id,
            "name": f"Place {place_id[1:]}",
            "formatted_address": "Detailed address",
            "user_ratings_total": 50,
            "price_level": 3,
            "geometry": {"location": {"lat": 1.0, "lng": 2.0}},
        }

    monkeypatch.setattr(resolver.google_places, "text_search", fake_text_search)
    monkeypatch.setattr(resolver.google_places, "place_details", fake_place_details)

    candidates = asyncio.run(lookup.resolve(CRITERION))

    assert queries == [("Italian restaurants in Springfield", "restaurant")]
    assert len(candidates) == 12
    assert sorted(detail_calls) == sorted(f"p{i}" for i in range(12))
    assert [c.place_id for c in candidates] == [f"p{i}" for i in range(12)]
    assert candidates[0].address == "Detailed address"
    assert candidates[0].price_level == "$$$"
    assert candidates[0].review_count == 50
    assert candidates[0].rating == 4.0


def test_lookup_degrades_single_failed_details(monkeypatch, lookup):
    monkeypatch.setattr(resolver.google_places, "text_search", lambda *a, **k: [_hit(1), _hit(2), _hit(3)])

    def fake_place_details(place_id, api_key, language=None):
        if place_id == "p2":
            raise resolver.google_places.GooglePlacesError("NOT_FOUND")
        return {"place_id": place_id, "name": f"Detailed {place_id}", "price_level": 1}

    monkeypatch.setattr(resolver.google_places, "place_details", fake_place_details)

    candidates = asyncio.run(lookup.resolve(CRITERION))

    assert [c.name for c in candidates] == ["Detailed p1", "Place 2", "Detailed p3"]
    degraded = candidates[1]
    assert degraded.address == "2 Main St"
    assert degraded.rating == 4.0
    assert degraded.price_level == "Unknown"
    assert degraded.location is None


def test_lookup_returns_empty_when_search_fails(monkeypatch, lookup):
    def boom(*args, **kwargs):
        raise resolver.google_places.GooglePlacesError("REQUEST_DENIED")

    monkeypatch.setattr(resolver.google_places, "text_search", boom)
    assert asyncio.run(lookup.resolve(CRITERION)) == []


def test_lookup_returns_empty_without_hits(monkeypatch, lookup):
    monkeypatch.setattr(resolver.google_places, "text_search", lambda *a, **k: [])
    assert asyncio.run(lookup.resolve(CRITERION)) == []


def test_build_resolver_selects_strategy(fake_gemini):
    lookup = resolver.build_resolver(Settings(google_api_key="k", resolver_strategy="lookup"))
    assert isinstance(lookup, resolver.DirectoryLookupResolver)

    generative = resolver.build_resolver(Settings(resolver_strategy="generative"), gemini=fake_gemini)
    assert isinstance(generative, resolver.GenerativeResolver)

    with pytest.raises(ConfigError):
        resolver.build_resolver(Settings(resolver_strategy="generative", gemini_api_key=""))
    with pytest.raises(ConfigError):
        resolver.build_resolver(Settings(resolver_strategy="psychic"))
