"""
VLM (Vision-Language Model) integration for receipt understanding.

Provides a unified interface to route receipts between providers:
- OpenAI chat-completions vision models
- Google Gemini (REST)
- Anthropic Claude
- OpenRouter (OpenAI-compatible)

Usage:
    from receipt_extraction.vlm import get_vlm_router

    router = get_vlm_router()
    fields = await router.request_fields("claude", document, model=None, credential=key)
"""

from receipt_extraction.vlm.vlm_types import (
    DEFAULT_MODELS,
    PROVIDERS,
    RECEIPT_EXTRACTION_PROMPT,
    VisionRequest,
)
from receipt_extraction.vlm.reply_parser import parse_receipt_reply
from receipt_extraction.vlm.refinements import (
    apply_refinements,
    prefer_rideshare_vendor,
    register_refinement,
    unregister_refinement,
)
from receipt_extraction.vlm.vlm_router import VLMRouter, VLMStats, get_vlm_router, reset_vlm_router

__all__ = [
    "DEFAULT_MODELS",
    "PROVIDERS",
    "RECEIPT_EXTRACTION_PROMPT",
    "VisionRequest",
    "parse_receipt_reply",
    "apply_refinements",
    "prefer_rideshare_vendor",
    "register_refinement",
    "unregister_refinement",
    "VLMRouter",
    "VLMStats",
    "get_vlm_router",
    "reset_vlm_router",
]
