"""Generated ambiance images for restaurants."""

import logging

from grubfinder.vendors.gemini import GeminiClient, GeminiError

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x400.png"

IMAGE_PROMPT = (
    "Generate an attractive, high-quality image for a restaurant called '{name}' in the city of '{city}' "
    "that specialises in {cuisine} cuisine. The image should evoke a night-time dining atmosphere, "
    "possibly showing appetising food or the restaurant's interior. Do not include any visible text. "
    "Prefer a photorealistic style, otherwise a detailed illustration. Respond with the image only."
)


class ImageSynthesisError(RuntimeError):
    """Raised when no image could be generated."""


class ImageSynthesizer:
    def __init__(self, client: GeminiClient) -> None:
        self.client = client

    async def synthesize(self, name: str, cuisine: str, city: str) -> str:
        """Return a ``data:`` URI depicting the restaurant's ambiance."""
        prompt = IMAGE_PROMPT.format(name=name, cuisine=cuisine, city=city)
        try:
            return await self.client.generate_image(prompt)
        except GeminiError as exc:
            raise ImageSynthesisError(f"image generation failed for {name!r}: {exc}") from exc

    async def synthesize_or_placeholder(self, name: str, cuisine: str, city: str) -> str:
        try:
            return await self.synthesize(name, cuisine, city)
        except ImageSynthesisError as exc:
            logger.warning("%s; using placeholder", exc)
            return PLACEHOLDER_IMAGE_URL
