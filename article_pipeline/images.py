# article_pipeline/images.py
import logging
from typing import Optional, Protocol

from openai import OpenAI
from openai import OpenAIError

from .config import Settings, load_settings
from .models import ImageResult

logger = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    def generate(self, prompt: str) -> ImageResult:
        ...


class OpenAIImageGenerator:
    """Cover-image generation. Reports failures in the result instead of raising."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        settings: Optional[Settings] = None,
        quality: str = "medium",
    ):
        self._client = client
        self.settings = settings or load_settings()
        self.quality = quality

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.require_api_key(),
                timeout=self.settings.request_timeout,
            )
        return self._client

    def generate(self, prompt: str) -> ImageResult:
        if not (prompt or "").strip():
            return ImageResult(success=False, error="Empty image prompt")

        logger.info(
            "Image generation request: model=%s size=%s prompt_len=%d",
            self.settings.image_model, self.settings.image_size, len(prompt),
        )
        try:
            resp = self.client.images.generate(
                model=self.settings.image_model,
                prompt=prompt,
                n=1,
                size=self.settings.image_size,
                quality=self.quality,
            )
        except OpenAIError as e:
            logger.warning("Image generation failed: %s", e)
            return ImageResult(success=False, error=str(e))

        data = resp.data[0] if resp.data else None
        b64 = getattr(data, "b64_json", None) if data is not None else None
        if not b64:
            return ImageResult(success=False, error="No image data found in response")
        return ImageResult(success=True, image_base64=b64)
