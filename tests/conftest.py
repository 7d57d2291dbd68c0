import sys
from pathlib import Path

import pytest

# Ensure `grubfinder` package is importable when running pytest from the repository root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from grubfinder.core.config import Settings  # noqa: E402
from grubfinder.vendors.gemini import GeminiError  # noqa: E402


class FakeGemini:
    """Stands in for GeminiClient; each generator may be a value, an exception or a callable."""

    def __init__(self, structured=None, text=None, image=None):
        self.structured = structured
        self.text = text
        self.image = image
        self.prompts = []

    async def _answer(self, source, prompt):
        self.prompts.append(prompt)
        if callable(source):
            source = source(prompt)
            if hasattr(source, "__await__"):
                source = await source
        if isinstance(source, BaseException):
            raise source
        if source is None:
            raise GeminiError("no canned response")
        return source

    async def generate_structured(self, prompt, schema, *, temperature=0.7):
        result = await self._answer(self.structured, prompt)
        return result if isinstance(result, schema) else schema.model_validate(result)

    async def generate_text(self, prompt, *, temperature=0.9):
        return await self._answer(self.text, prompt)

    async def generate_image(self, prompt):
        return await self._answer(self.image, prompt)


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def settings():
    return Settings(google_api_key="places-key", gemini_api_key="gemini-key")
