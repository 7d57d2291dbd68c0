"""Async client utilities for the Gemini generation API."""

import base64
import logging
from typing import Any, Optional, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_TIMEOUT_MS = 60_000


class GeminiError(RuntimeError):
    """Raised when a generation request fails or returns nothing usable."""


class GeminiClient:
    """Thin async wrapper around ``google.genai`` for the calls the pipeline makes."""

    def __init__(
        self,
        api_key: str,
        *,
        text_model: str = "gemini-2.0-flash",
        image_model: str = "gemini-2.0-flash-exp",
        client: Optional[Any] = None,
    ) -> None:
        self.text_model = text_model
        self.image_model = image_model
        self._client = client or genai.Client(api_key=api_key, http_options={"timeout": _TIMEOUT_MS})

    async def _generate(self, model: str, prompt: str, config: types.GenerateContentConfig) -> Any:
        try:
            return await self._client.aio.models.generate_content(model=model, contents=prompt, config=config)
        except Exception as exc:  # noqa: BLE001
            raise GeminiError(f"{model} request failed: {exc}") from exc

    async def generate_structured(self, prompt: str, schema: Type[SchemaT], *, temperature: float = 0.7) -> SchemaT:
        """Request JSON constrained to ``schema`` and return the parsed model."""
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            temperature=temperature,
        )
        response = await self._generate(self.text_model, prompt, config)

        parsed = getattr(response, "parsed", None)
        if isinstance(parsed, schema):
            return parsed

        text = getattr(response, "text", None)
        if not text:
            raise GeminiError("structured response was empty")
        try:
            return schema.model_validate_json(text)
        except ValidationError as exc:
            raise GeminiError(f"structured response did not match {schema.__name__}: {exc}") from exc

    async def generate_text(self, prompt: str, *, temperature: float = 0.9) -> str:
        config = types.GenerateContentConfig(temperature=temperature)
        response = await self._generate(self.text_model, prompt, config)
        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise GeminiError("text response was empty")
        return text

    async def generate_image(self, prompt: str) -> str:
        """Return the first generated image as a ``data:`` URI."""
        config = types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])
        response = await self._generate(self.image_model, prompt, config)

        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    mime_type = inline.mime_type or "image/png"
                    encoded = base64.b64encode(inline.data).decode("ascii")
                    return f"data:{mime_type};base64,{encoded}"

        raise GeminiError("image response contained no media")
