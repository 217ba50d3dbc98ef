"""
Extraction strategies: built-in OCR heuristics or a cloud vision provider.

A StrategySelector says which one to use for a call. Cloud providers fall
back to the built-in strategy on any provider-side failure, so callers only
ever see the final fields and the method that produced them.
"""

import logging
import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

from receipt_extraction.errors import MissingCredential, UnsupportedMediaType
from receipt_extraction.field_extractor import FieldExtractor
from receipt_extraction.schema import ExtractionOutcome
from receipt_extraction.text_extractor import RawDocument, TextExtractor
from receipt_extraction.vlm.vlm_router import VLMRouter, get_vlm_router

logger = logging.getLogger(__name__)

BUILTIN = "builtin"

Method = Literal["builtin", "openai", "gemini", "claude", "openrouter"]

CREDENTIAL_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "claude": "CLAUDE_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


def is_usable_credential(credential: Optional[str]) -> bool:
    """Reject empty keys and the settings page's placeholder values."""
    if not credential or not credential.strip():
        return False
    credential = credential.strip()
    return not (credential.startswith("YOUR_") or credential.endswith("_HERE"))


class StrategySelector(BaseModel):
    """Per-call choice of extraction method, model and API key."""

    method: Method = BUILTIN
    model: Optional[str] = None
    credential: Optional[str] = Field(None, repr=False)

    @classmethod
    def from_env(
        cls, method: Optional[str] = None, model: Optional[str] = None
    ) -> "StrategySelector":
        """
        Build a selector from environment variables.

        Reads from environment:
        - EXPENSE_OCR_METHOD: builtin | openai | gemini | claude | openrouter
        - <PROVIDER>_API_KEY: e.g. GEMINI_API_KEY
        - <PROVIDER>_MODEL: e.g. GEMINI_MODEL
        """
        method = (method or os.getenv("EXPENSE_OCR_METHOD", BUILTIN)).lower()
        if method == BUILTIN:
            return cls(method=method)

        prefix = method.upper()
        return cls(
            method=method,
            model=model or os.getenv(f"{prefix}_MODEL"),
            credential=os.getenv(CREDENTIAL_ENV_VARS.get(method, f"{prefix}_API_KEY")),
        )


class ExtractionStrategy:
    """Base class: run(document) -> ExtractionOutcome."""

    name = BUILTIN
    # method that handled the latest run; differs from name after a fallback
    active_method = BUILTIN

    async def run(self, document: RawDocument) -> ExtractionOutcome:
        raise NotImplementedError


class BuiltInStrategy(ExtractionStrategy):
    """Local OCR/PDF text followed by the regex field heuristics."""

    name = BUILTIN

    def __init__(
        self,
        text_extractor: Optional[TextExtractor] = None,
        field_extractor: Optional[FieldExtractor] = None,
    ):
        self.text_extractor = text_extractor or TextExtractor()
        self.field_extractor = field_extractor or FieldExtractor()

    async def run(self, document: RawDocument) -> ExtractionOutcome:
        """
        Raises:
            UnsupportedMediaType, TextExtractionFailed
        """
        if not document.is_supported:
            raise UnsupportedMediaType(document.media_type)

        text = await self.text_extractor.extract_text_async(document)
        fields = self.field_extractor.extract_fields(text)
        return ExtractionOutcome(fields=fields, attempted=True, method=self.name)


class CloudProviderStrategy(ExtractionStrategy):
    """Vision-model extraction with transparent fallback to BuiltInStrategy."""

    def __init__(
        self,
        provider: str,
        model: Optional[str] = None,
        credential: Optional[str] = None,
        router: Optional[VLMRouter] = None,
        fallback: Optional[BuiltInStrategy] = None,
    ):
        self.name = provider
        self.provider = provider
        self.active_method = provider
        self.model = model
        self.credential = credential
        self.router = router or get_vlm_router()
        self.fallback = fallback or BuiltInStrategy()
        self.fallback_count = 0

    async def run(self, document: RawDocument) -> ExtractionOutcome:
        """
        Raises:
            MissingCredential: no usable API key (checked before any I/O)
            UnsupportedMediaType: nothing is sent for non image/PDF documents
        """
        self.active_method = self.provider

        if not is_usable_credential(self.credential):
            raise MissingCredential(self.provider)

        if not document.is_supported:
            raise UnsupportedMediaType(document.media_type)

        try:
            fields = await self.router.request_fields(
                self.provider, document, self.model, self.credential
            )
        except Exception as e:
            self.fallback_count += 1
            logger.warning(
                f"{self.provider} extraction failed ({type(e).__name__}: {e}); "
                "falling back to builtin OCR"
            )
            self.active_method = self.fallback.name
            return await self.fallback.run(document)

        return ExtractionOutcome(fields=fields, attempted=True, method=self.provider)


def build_strategy(
    selector: StrategySelector,
    builtin: Optional[BuiltInStrategy] = None,
    router: Optional[VLMRouter] = None,
) -> ExtractionStrategy:
    """Instantiate the strategy a selector names."""
    builtin = builtin or BuiltInStrategy()
    if selector.method == BUILTIN:
        return builtin

    return CloudProviderStrategy(
        provider=selector.method,
        model=selector.model,
        credential=selector.credential,
        router=router,
        fallback=builtin,
    )
