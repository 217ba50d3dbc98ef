"""
OpenAI VLM Client: chat-completions vision models for receipt field extraction.

OpenRouter speaks the same API, so OpenRouterVLMClient only swaps the base URL.
"""

import asyncio
import logging
from typing import Optional

import openai

from receipt_extraction.errors import ProviderCallFailed
from receipt_extraction.vlm.vlm_types import OPENAI, OPENROUTER, VisionRequest

logger = logging.getLogger(__name__)


class OpenAIVLMClient:
    """OpenAI chat-completions with an inline base64 image."""

    provider = OPENAI
    base_url: Optional[str] = None

    def __init__(self, timeout: float = 60.0, max_tokens: int = 1024):
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.call_count = 0

    def _make_client(self, api_key: str) -> openai.OpenAI:
        return openai.OpenAI(api_key=api_key, base_url=self.base_url, timeout=self.timeout)

    def _call_sync(self, request: VisionRequest) -> str:
        client = self._make_client(request.credential)
        try:
            response = client.chat.completions.create(
                model=request.model,
                max_tokens=self.max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": request.prompt},
                            {"type": "image_url", "image_url": {"url": request.data_url}},
                        ],
                    }
                ],
            )
        except openai.OpenAIError as e:
            raise ProviderCallFailed(self.provider, str(e)) from e

        if not response.choices:
            raise ProviderCallFailed(self.provider, "response contained no choices")
        return response.choices[0].message.content or ""

    async def complete(self, request: VisionRequest) -> str:
        """Send the receipt and return the raw reply text."""
        self.call_count += 1

        loop = asyncio.get_event_loop()
        reply = await loop.run_in_executor(None, self._call_sync, request)
        logger.debug(f"{self.provider} reply ({request.model}): {reply[:200]}")
        return reply


class OpenRouterVLMClient(OpenAIVLMClient):
    """OpenRouter via its OpenAI-compatible endpoint."""

    provider = OPENROUTER
    base_url = "https://openrouter.ai/api/v1"
