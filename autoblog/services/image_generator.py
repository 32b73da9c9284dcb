"""OpenAI image generator (featured image). Lỗi -> ImageGenerationError; caller coi là non-fatal."""
import asyncio
from typing import Any

from autoblog.config import Settings
from autoblog.errors import ImageGenerationError
from autoblog.logging_config import get_logger

logger = get_logger(__name__)

IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "standard"


class OpenAIImageGenerator:
    """ImageGenerator qua OpenAI images API."""

    def __init__(self, settings: Settings, client: Any = None) -> None:
        self.api_key = settings.openai_api_key
        self.model = settings.openai_image_model
        self.timeout_seconds = settings.openai_timeout_seconds
        self.max_retries = settings.openai_max_retries
        self._client: Any = client

    def _get_client(self):  # noqa: ANN201
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise ImageGenerationError("OpenAI API key not configured. Cannot generate images.")
        from openai import OpenAI

        self._client = OpenAI(api_key=self.api_key, timeout=float(self.timeout_seconds), max_retries=self.max_retries)
        return self._client

    async def generate_image(self, prompt: str) -> str:
        """Trả về URL ảnh."""
        client = self._get_client()
        try:
            resp = await asyncio.to_thread(
                client.images.generate,
                model=self.model,
                prompt=prompt,
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
                n=1,
            )
        except Exception as e:
            logger.warning("image.generate_failed", model=self.model, error=str(e))
            raise ImageGenerationError(f"Image generation failed: {e}") from e
        data = getattr(resp, "data", None) or []
        url = getattr(data[0], "url", None) if data else None
        if not url:
            raise ImageGenerationError("Image generation returned no URL")
        logger.info("image.generate_success", model=self.model)
        return url
