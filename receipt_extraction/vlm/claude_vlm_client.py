"""
Claude VLM Client: Anthropic Claude for receipt field extraction.

Requires: pip install anthropic
The API key is passed in per request; nothing is read from the environment.
"""

import asyncio
import logging

import anthropic

from receipt_extraction.errors import ProviderCallFailed
from receipt_extraction.vlm.vlm_types import CLAUDE, VisionRequest

logger = logging.getLogger(__name__)


class ClaudeVLMClient:
    """
    Claude-based receipt extraction.

    Images go in as ``image`` blocks, PDFs as ``document`` blocks.
    """

    provider = CLAUDE

    def __init__(self, timeout: float = 60.0, max_tokens: int = 1024):
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.call_count = 0

    def _build_content(self, request: VisionRequest):
        block_type = "document" if request.media_type == "application/pdf" else "image"
        return [
            {
                "type": block_type,
                "source": {
                    "type": "base64",
                    "media_type": request.media_type,
                    "data": request.image_b64,
                },
            },
            {"type": "text", "text": request.prompt},
        ]

    def _call_sync(self, request: VisionRequest) -> str:
        client = anthropic.Anthropic(api_key=request.credential, timeout=self.timeout)
        try:
            response = client.messages.create(
                model=request.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": self._build_content(request)}],
            )
        except anthropic.APIError as e:
            raise ProviderCallFailed(self.provider, str(e)) from e

        texts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
        return "".join(texts)

    async def complete(self, request: VisionRequest) -> str:
        """Send the receipt and return the raw reply text."""
        self.call_count += 1

        loop = asyncio.get_event_loop()
        reply = await loop.run_in_executor(None, self._call_sync, request)
        logger.debug(f"Claude reply ({request.model}): {reply[:200]}")
        return reply
