"""
VLM Router: Unified interface over the cloud vision providers.

Routes a receipt to the client for the requested provider id, parses the
reply into ExtractedFields and runs that provider's refinement hooks.

Usage:
    from receipt_extraction.vlm import get_vlm_router

    router = get_vlm_router()
    fields = await router.request_fields("gemini", document, model=None, credential=key)
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from receipt_extraction.schema import ExtractedFields
from receipt_extraction.text_extractor import RawDocument
from receipt_extraction.vlm.claude_vlm_client import ClaudeVLMClient
from receipt_extraction.vlm.gemini_vlm_client import GeminiVLMClient
from receipt_extraction.vlm.openai_vlm_client import OpenAIVLMClient, OpenRouterVLMClient
from receipt_extraction.vlm.refinements import apply_refinements
from receipt_extraction.vlm.reply_parser import parse_receipt_reply
from receipt_extraction.vlm.vlm_types import (
    CLAUDE,
    DEFAULT_MODELS,
    GEMINI,
    OPENAI,
    OPENROUTER,
    VisionRequest,
)

logger = logging.getLogger(__name__)

CLIENT_CLASSES = {
    OPENAI: OpenAIVLMClient,
    GEMINI: GeminiVLMClient,
    CLAUDE: ClaudeVLMClient,
    OPENROUTER: OpenRouterVLMClient,
}


@dataclass
class VLMStats:
    """Track VLM usage across providers."""

    calls: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, int] = field(default_factory=dict)
    total_time_ms: float = 0


class VLMRouter:
    """Routes receipt extraction requests to the named vision provider."""

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout
        self.stats = VLMStats()
        self._clients: Dict[str, Any] = {}

    def get_client(self, provider: str):
        """Get or create the client for a provider id."""
        if provider not in CLIENT_CLASSES:
            raise ValueError(f"Unknown vision provider: {provider!r}")
        if provider not in self._clients:
            self._clients[provider] = CLIENT_CLASSES[provider](timeout=self.timeout)
        return self._clients[provider]

    def build_request(
        self,
        provider: str,
        document: RawDocument,
        model: Optional[str],
        credential: str,
    ) -> VisionRequest:
        return VisionRequest(
            image_b64=document.to_base64(),
            media_type=document.media_type,
            model=model or DEFAULT_MODELS[provider],
            credential=credential,
        )

    async def request_fields(
        self,
        provider: str,
        document: RawDocument,
        model: Optional[str],
        credential: str,
    ) -> ExtractedFields:
        """
        Extract receipt fields with one provider.

        Raises:
            ProviderCallFailed: network or HTTP failure
            ProviderReplyUnparseable: reply held no usable JSON object
        """
        client = self.get_client(provider)
        request = self.build_request(provider, document, model, credential)

        logger.info(f"Requesting receipt fields from {provider} ({request.model})")
        self.stats.calls[provider] = self.stats.calls.get(provider, 0) + 1
        start_time = time.time()
        try:
            reply = await client.complete(request)
            fields = parse_receipt_reply(reply)
        except Exception:
            self.stats.errors[provider] = self.stats.errors.get(provider, 0) + 1
            raise
        finally:
            self.stats.total_time_ms += (time.time() - start_time) * 1000

        return apply_refinements(provider, fields, reply)

    def get_stats(self) -> Dict[str, Any]:
        """Get usage statistics."""
        return {
            "calls": dict(self.stats.calls),
            "errors": dict(self.stats.errors),
            "total_calls": sum(self.stats.calls.values()),
            "total_errors": sum(self.stats.errors.values()),
            "total_time_ms": round(self.stats.total_time_ms, 1),
        }

    def get_call_count(self) -> int:
        """Total call count across all providers."""
        return sum(self.stats.calls.values())


# Singleton
_vlm_router: Optional[VLMRouter] = None


def get_vlm_router(timeout: Optional[float] = None) -> VLMRouter:
    """
    Get unified VLM router (singleton).

    Reads from environment:
    - VLM_TIMEOUT: per-call timeout in seconds (default: 60)
    """
    global _vlm_router

    if _vlm_router is None:
        _vlm_router = VLMRouter(
            timeout=timeout or float(os.getenv("VLM_TIMEOUT", "60")),
        )

    return _vlm_router


def reset_vlm_router():
    """Reset singleton (for testing)."""
    global _vlm_router
    _vlm_router = None
