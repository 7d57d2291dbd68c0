import asyncio

import pytest

from grubfinder.core.image_synth import PLACEHOLDER_IMAGE_URL, ImageSynthesisError, ImageSynthesizer
from grubfinder.vendors.gemini import GeminiError


def test_synthesize_builds_prompt(fake_gemini):
    fake_gemini.image = "data:image/png;base64,AAAA"

    payload = asyncio.run(ImageSynthesizer(fake_gemini).synthesize("Luigi's", "Italian", "Springfield"))

    assert payload == "data:image/png;base64,AAAA"
    prompt = fake_gemini.prompts[0]
    assert "'Luigi's'" in prompt
    assert "'Springfield'" in prompt
    assert "Italian cuisine" in prompt
    assert "night-time" in prompt
    assert "visible text" in prompt


def test_synthesize_raises_without_media(fake_gemini):
    fake_gemini.image = GeminiError("image response contained no media")
    with pytest.raises(ImageSynthesisError):
        asyncio.run(ImageSynthesizer(fake_gemini).synthesize("Luigi's", "Italian", "Springfield"))


def test_synthesize_or_placeholder(fake_gemini):
    fake_gemini.image = GeminiError("quota")
    payload = asyncio.run(ImageSynthesizer(fake_gemini).synthesize_or_placeholder("Luigi's", "Italian", "Springfield"))
    assert payload == PLACEHOLDER_IMAGE_URL
