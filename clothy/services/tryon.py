"""
Virtual try-on generation — powered by Google Gemini native image generation.

One request per attempt: person image + clothing image + fixed instruction,
image-only response modality. Async wrapper around the sync google-genai SDK.
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from google import genai
from google.genai import types

from ..core.config import Settings
from ..core.errors import ConfigurationError, EmptyResponseError, TransportError
from .encoder import EncodedImage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"

TRYON_PROMPT = (
    "Using the two images provided, superimpose the clothing item from the second "
    "image onto the person in the first image. The fit should be realistic and "
    "natural. The output must be a high-quality, photorealistic image showing only "
    "the final result of the person wearing the clothing."
)

MISSING_KEY_MESSAGE = "GEMINI_API_KEY is required for virtual try-on generation."
EMPTY_RESPONSE_MESSAGE = (
    "The API did not return a valid image. The response might have been blocked "
    "or did not meet safety guidelines."
)
TRANSPORT_MESSAGE = (
    "Failed to generate image. The model may be unavailable or the request was invalid."
)


# ── Response parts ───────────────────────────────────────────────────


class PartKind(str, Enum):
    IMAGE = "image"
    TEXT = "text"
    OTHER = "other"


@dataclass
class ResponsePart:
    """One normalised content part from a Gemini response."""

    kind: PartKind
    data: Optional[bytes] = None
    mime_type: str = ""
    text: str = ""


def _classify_part(part) -> ResponsePart:
    inline = getattr(part, "inline_data", None)
    if inline is not None:
        mime_type = getattr(inline, "mime_type", None) or ""
        data = getattr(inline, "data", None)
        if isinstance(data, str):
            # Some transports hand back the base64 text instead of raw bytes
            try:
                data = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError):
                logger.warning("Discarding %s part with undecodable payload", mime_type or "inline")
                return ResponsePart(kind=PartKind.OTHER, mime_type=mime_type)
        if data and mime_type.startswith("image/"):
            return ResponsePart(kind=PartKind.IMAGE, data=data, mime_type=mime_type)
        return ResponsePart(kind=PartKind.OTHER, mime_type=mime_type)

    text = getattr(part, "text", None)
    if text is not None:
        return ResponsePart(kind=PartKind.TEXT, text=text)
    return ResponsePart(kind=PartKind.OTHER)


def response_parts(response) -> list[ResponsePart]:
    """Flatten the first candidate's content into tagged parts, in order."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return [_classify_part(p) for p in parts]


def first_image(parts: Iterable[ResponsePart]) -> Optional[ResponsePart]:
    for part in parts:
        if part.kind is PartKind.IMAGE:
            return part
    return None


# ── Client ───────────────────────────────────────────────────────────


class GenerationClient:
    """
    Sends one try-on request to Gemini and returns the composited image as base64.

    The credential is passed in explicitly; use from_settings() to build one
    from the environment-backed Settings.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, prompt: str = TRYON_PROMPT):
        self.api_key = api_key
        self.model = model
        self.prompt = prompt
        self._client = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        return cls(api_key=settings.gemini_api_key, model=settings.tryon_model)

    def _get_client(self):
        """Lazy-create and keep the SDK client; dropping it closes its HTTP connection."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def build_contents(self, person: EncodedImage, clothing: EncodedImage) -> list:
        return [
            types.Part.from_bytes(data=person.to_bytes(), mime_type=person.media_type),
            types.Part.from_bytes(data=clothing.to_bytes(), mime_type=clothing.media_type),
            self.prompt,
        ]

    def _sync_generate(self, person: EncodedImage, clothing: EncodedImage):
        client = self._get_client()
        return client.models.generate_content(
            model=self.model,
            contents=self.build_contents(person, clothing),
            config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
        )

    async def generate(self, person: EncodedImage, clothing: EncodedImage) -> str:
        """
        Run one try-on generation.

        Returns the base64 payload of the first image part in the response.

        Raises:
            ConfigurationError: no API key configured.
            TransportError:     the SDK call raised.
            EmptyResponseError: the response carried no image part.
        """
        if not self.api_key:
            raise ConfigurationError(MISSING_KEY_MESSAGE)

        logger.info(
            "Try-on generation started: model=%s person=%s clothing=%s",
            self.model, person.media_type, clothing.media_type,
        )
        try:
            response = await asyncio.to_thread(self._sync_generate, person, clothing)
        except Exception as e:
            logger.exception("Error calling Gemini API")
            raise TransportError(TRANSPORT_MESSAGE) from e

        parts = response_parts(response)
        image = first_image(parts)
        if image is None:
            logger.warning(
                "Gemini returned no image (%d parts: %s)",
                len(parts), ", ".join(p.kind.value for p in parts) or "none",
            )
            raise EmptyResponseError(EMPTY_RESPONSE_MESSAGE)

        logger.info("Try-on generation complete: %s, %d bytes", image.mime_type, len(image.data))
        return base64.b64encode(image.data).decode("utf-8")
