"""
Extraction Orchestrator: run a strategy, merge with user input, accept or reject.

Extraction failures are values, not exceptions: an unsupported file or an
OCR/PDF error comes back as an outcome with ``attempted=False``. The only
exception callers see is MissingCredential, raised before any I/O when a
cloud provider is selected without a usable key.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from receipt_extraction.errors import (
    MissingCredential,
    TextExtractionFailed,
    UnsupportedMediaType,
)
from receipt_extraction.schema import (
    FIELD_NAMES,
    ExpenseOverrides,
    ExtractedFields,
    ExtractionOutcome,
    MergedExpenseDraft,
    RejectionReason,
    normalize_cost,
)
from receipt_extraction.strategy import (
    BuiltInStrategy,
    StrategySelector,
    build_strategy,
)
from receipt_extraction.text_extractor import RawDocument
from receipt_extraction.vlm.vlm_router import VLMRouter

logger = logging.getLogger(__name__)


def merge_fields(
    extracted: ExtractedFields, overrides: ExpenseOverrides
) -> Dict[str, Any]:
    """Per field: non-empty override, else extracted value, else None."""
    merged = {}
    for field_name in FIELD_NAMES:
        override = overrides.value_for(field_name)
        merged[field_name] = override if override is not None else getattr(extracted, field_name)
    return merged


class ExtractionOrchestrator:
    """
    High-level entry point used by the API layer.

    ``extract`` backs the "process without saving" flow; ``extract_and_merge``
    backs expense creation and update.
    """

    def __init__(
        self,
        builtin: Optional[BuiltInStrategy] = None,
        router: Optional[VLMRouter] = None,
    ):
        self._builtin = builtin or BuiltInStrategy()
        self._router = router
        self.extract_count = 0
        self.not_attempted_count = 0
        self.fallback_count = 0
        self.rejection_count = 0
        self.methods_used: Dict[str, int] = {}

    async def extract(
        self,
        document: RawDocument,
        selector: Optional[StrategySelector] = None,
    ) -> ExtractionOutcome:
        """
        Extract expense fields from a receipt.

        Raises:
            MissingCredential: cloud method selected without a usable key
        """
        selector = selector or StrategySelector()
        strategy = build_strategy(selector, builtin=self._builtin, router=self._router)
        self.extract_count += 1

        logger.info(
            f"Extracting {document.filename or 'receipt'} "
            f"({document.media_type}) with {selector.method}"
        )

        try:
            outcome = await strategy.run(document)
        except MissingCredential:
            raise
        except UnsupportedMediaType as e:
            logger.warning(str(e))
            outcome = self._not_attempted(strategy.active_method, str(e))
        except TextExtractionFailed as e:
            logger.error(f"Text extraction failed: {e}", exc_info=True)
            outcome = self._not_attempted(strategy.active_method, str(e))
        except Exception as e:
            logger.error(f"Extraction failed: {e}", exc_info=True)
            outcome = self._not_attempted(strategy.active_method, str(e))

        if outcome.attempted and outcome.method != selector.method:
            self.fallback_count += 1
        self.methods_used[outcome.method] = self.methods_used.get(outcome.method, 0) + 1
        return outcome

    async def extract_and_merge(
        self,
        document: RawDocument,
        selector: Optional[StrategySelector] = None,
        overrides: Optional[Union[ExpenseOverrides, Mapping[str, Any]]] = None,
    ) -> Union[MergedExpenseDraft, RejectionReason]:
        """
        Extract, overlay the user's form values, and decide if it can be saved.

        Returns a RejectionReason naming the missing date and/or cost instead
        of raising.
        """
        if overrides is None:
            overrides = ExpenseOverrides()
        elif not isinstance(overrides, ExpenseOverrides):
            overrides = ExpenseOverrides(**dict(overrides))

        outcome = await self.extract(document, selector)
        merged = merge_fields(outcome.fields, overrides)

        cost = normalize_cost(merged["cost"])
        missing_date = not merged["date"]
        missing_cost = cost is None or float(cost) <= 0

        if missing_date or missing_cost:
            self.rejection_count += 1
            reason = RejectionReason(
                missing_date=missing_date,
                missing_cost=missing_cost,
                method=outcome.method,
            )
            logger.info(f"Rejected draft: missing {', '.join(reason.missing_fields)}")
            return reason

        return MergedExpenseDraft(
            date=str(merged["date"]),
            cost=cost,
            vendor=merged["vendor"],
            location=merged["location"],
            category=merged["category"],
            trip_name=overrides.trip_name,
            comments=overrides.comments,
            method=outcome.method,
            attempted=outcome.attempted,
        )

    def _not_attempted(self, method: str, error: str) -> ExtractionOutcome:
        self.not_attempted_count += 1
        return ExtractionOutcome(
            fields=ExtractedFields(), attempted=False, method=method, error=error
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "extractions": self.extract_count,
            "not_attempted": self.not_attempted_count,
            "fallbacks": self.fallback_count,
            "rejections": self.rejection_count,
            "methods_used": dict(self.methods_used),
        }

    def get_health(self) -> Dict[str, Any]:
        """Get service health status."""
        return {
            "name": "receipt_extraction",
            "healthy": True,
            "status": "ready",
            "details": self.get_stats(),
        }


# Singleton
_orchestrator: Optional[ExtractionOrchestrator] = None


def get_orchestrator() -> ExtractionOrchestrator:
    """Get or create the singleton ExtractionOrchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ExtractionOrchestrator()
    return _orchestrator


def reset_orchestrator():
    """Reset singleton (for testing)."""
    global _orchestrator
    _orchestrator = None


async def extract_receipt_async(
    path: str, selector: Optional[StrategySelector] = None
) -> ExtractionOutcome:
    """
    Extract expense fields from a receipt file (async).

    Args:
        path: Path to an image or PDF receipt
        selector: Extraction method; builtin OCR when omitted
    """
    document = RawDocument.from_path(path)
    return await get_orchestrator().extract(document, selector)


def extract_receipt(
    path: str, selector: Optional[StrategySelector] = None
) -> ExtractionOutcome:
    """Extract expense fields from a receipt file (synchronous)."""
    return asyncio.run(extract_receipt_async(path, selector))
