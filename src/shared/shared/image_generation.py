"""
Image generation service abstraction.
Supports: Google Gemini (image-capable preview models)
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import httpx

from .errors import ProviderError

LOG = logging.getLogger(__name__)

NO_IMAGE_DATA = "No image data received from Gemini"


class ImageGenerationProvider(ABC):
    """Abstract base class for image generation providers"""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Generate an image from prompt, returning the base64-encoded payload"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging"""
        pass


class GeminiProvider(ImageGenerationProvider):
    """Google Gemini generateContent API"""

    # Fixed sampling settings; not user-configurable.
    GENERATION_CONFIG = {
        "temperature": 0.4,
        "topK": 32,
        "topP": 1,
        "maxOutputTokens": 4096,
        "responseModalities": ["TEXT", "IMAGE"],
    }

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash-preview-image-generation",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        LOG.info("Gemini provider initialized (model=%s)", model)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": dict(self.GENERATION_CONFIG),
        }

    def generate(self, prompt: str) -> str:
        LOG.info(f"Generating with Gemini: {prompt[:50]}...")

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.endpoint, json=self.build_payload(prompt), headers=headers)
        except httpx.HTTPError as e:
            LOG.error("Gemini request failed: %s", e)
            raise ProviderError(f"Gemini request failed: {e}") from e

        if response.is_error:
            message = _upstream_error_message(response)
            LOG.error("Google AI API error (%s): %s", response.status_code, message)
            raise ProviderError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Invalid JSON received from Gemini") from e

        image_data = extract_inline_image(data)
        if not image_data:
            raise ProviderError(NO_IMAGE_DATA)

        LOG.info("Gemini generation successful")
        return image_data

    @property
    def name(self) -> str:
        return "gemini"


def _upstream_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Failed to generate image"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Failed to generate image"


def extract_inline_image(data: Any) -> Optional[str]:
    """
    Return the base64 payload of the first inline image part of the first
    candidate, or None. Image models may put a text part ahead of the image.
    """
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None

    for part in parts or []:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict) and inline.get("data"):
            return inline["data"]
    return None


def get_image_gen_provider(provider_name: str = "gemini", **kwargs) -> ImageGenerationProvider:
    """Factory function to get image generation provider"""
    providers = {
        "gemini": GeminiProvider,
    }

    if provider_name not in providers:
        raise ValueError(f"Unknown provider: {provider_name}. Available: {list(providers.keys())}")

    provider_class = providers[provider_name]
    return provider_class(**kwargs)
