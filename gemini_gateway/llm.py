from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

from google import genai
from google.genai import types

from gemini_gateway.config import Settings, settings
from gemini_gateway.schemas import EncodedPayload

if TYPE_CHECKING:
    from google.genai import Client

_logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PROMPT = "Write a story about this image"
DOCUMENT_PROMPT = "Analyze this document"
AUDIO_PROMPT = "Transcribe this audio"


def build_client(config: Settings = settings) -> Client:
    """
    Create the GenAI client shared by every request.

    The client is built once at startup and never mutated afterwards.

    Raises:
        RuntimeError: If API_KEY is not set.
    """
    if not config.api_key:
        raise RuntimeError(
            "API_KEY environment variable is not set or is empty. "
            "Please set API_KEY to a valid Gemini API key."
        )
    client = genai.Client(api_key=config.api_key)
    _logger.info("Initialized GenAI client (model=%s)", config.gemini_model)
    return client


def to_part(item: str | EncodedPayload) -> types.Part:
    if isinstance(item, EncodedPayload):
        return types.Part.from_bytes(
            data=base64.b64decode(item.data),
            mime_type=item.mime_type,
        )
    return types.Part.from_text(text=item)


async def generate_content(
    client: Client,
    contents: list[str | EncodedPayload | None],
    model: str | None = None,
) -> str:
    """
    Send one generation request and return the response text.

    Args:
        client: Shared GenAI client.
        contents: Prompt text and encoded files, in order.
        model: Model name; defaults to the configured model.

    Returns:
        The generated text, or an empty string when the model returned none.

    Raises:
        ValueError: If the prompt is missing or empty.
    """
    if not contents or any(item is None or item == "" for item in contents):
        raise ValueError("prompt is required")

    response = await client.aio.models.generate_content(
        model=model or settings.gemini_model,
        contents=[
            types.Content(role="user", parts=[to_part(item) for item in contents]),
        ],
    )
    return response.text or ""
