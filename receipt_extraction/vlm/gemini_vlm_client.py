"""
Gemini VLM Client: Google Gemini over the Generative Language REST API.

Talks plain HTTP through httpx; no Google SDK needed.
"""

import logging
from typing import Optional

import httpx

from receipt_extraction.errors import ProviderCallFailed
from receipt_extraction.vlm.vlm_types import GEMINI, VisionRequest

logger = logging.getLogger(__name__)


class GeminiVLMClient:
    """Gemini generateContent with inline image data."""

    provider = GEMINI

    def __init__(
        self,
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.call_count = 0

    def _build_payload(self, request: VisionRequest) -> dict:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": request.prompt},
                        {
                            "inline_data": {
                                "mime_type": request.media_type,
                                "data": request.image_b64,
                            }
                        },
                    ]
                }
            ]
        }

    async def complete(self, request: VisionRequest) -> str:
        """Send the receipt and return the raw reply text."""
        self.call_count += 1
        url = f"{self.api_base}/models/{request.model}:generateContent"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    headers={"x-goog-api-key": request.credential},
                    json=self._build_payload(request),
                )
        except httpx.HTTPError as e:
            raise ProviderCallFailed(self.provider, str(e)) from e

        if response.status_code != 200:
            raise ProviderCallFailed(
                self.provider, f"HTTP {response.status_code} - {response.text[:200]}"
            )

        try:
            candidates = response.json().get("candidates") or []
            parts = candidates[0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderCallFailed(self.provider, f"unexpected response shape: {e}") from e

        reply = "".join(part.get("text", "") for part in parts)
        logger.debug(f"Gemini reply ({request.model}): {reply[:200]}")
        return reply
