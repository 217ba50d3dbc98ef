"""
Receipt Extraction - Turn receipt images and PDFs into expense fields.

Built-in extraction runs Tesseract OCR (images) or pypdf (PDFs) followed by
regex heuristics for date, cost, vendor, location and category. Cloud vision
providers (OpenAI, Gemini, Claude, OpenRouter) can be selected per call and
fall back to the built-in path on failure.

Usage:
    from receipt_extraction import extract_receipt

    outcome = extract_receipt("path/to/receipt.jpg")
    print(outcome.fields.date, outcome.fields.cost, outcome.method)

Create/update flows:
    from receipt_extraction import get_orchestrator, RawDocument, StrategySelector

    result = await get_orchestrator().extract_and_merge(
        RawDocument(content, "image/png"),
        StrategySelector(method="gemini", credential=api_key),
        {"cost": "12.50", "tripName": "Chicago"},
    )
"""

from receipt_extraction.errors import (
    MissingCredential,
    ProviderCallFailed,
    ProviderReplyUnparseable,
    ReceiptExtractionError,
    TextExtractionFailed,
    UnsupportedMediaType,
)
from receipt_extraction.field_extractor import (
    CATEGORY_KEYWORDS,
    DEFAULT_CATEGORY,
    FieldExtractor,
    find_category,
    find_cost,
    find_date,
    find_location,
    find_vendor,
)
from receipt_extraction.schema import (
    ExpenseOverrides,
    ExtractedFields,
    ExtractionOutcome,
    MergedExpenseDraft,
    RejectionReason,
)
from receipt_extraction.text_extractor import RawDocument, TextExtractor
from receipt_extraction.strategy import (
    BuiltInStrategy,
    CloudProviderStrategy,
    ExtractionStrategy,
    StrategySelector,
    build_strategy,
)
from receipt_extraction.orchestrator import (
    ExtractionOrchestrator,
    extract_receipt,
    extract_receipt_async,
    get_orchestrator,
    reset_orchestrator,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "ReceiptExtractionError",
    "UnsupportedMediaType",
    "TextExtractionFailed",
    "MissingCredential",
    "ProviderCallFailed",
    "ProviderReplyUnparseable",
    # Field heuristics
    "FieldExtractor",
    "find_date",
    "find_cost",
    "find_vendor",
    "find_location",
    "find_category",
    "CATEGORY_KEYWORDS",
    "DEFAULT_CATEGORY",
    # Schema
    "ExtractedFields",
    "ExtractionOutcome",
    "ExpenseOverrides",
    "MergedExpenseDraft",
    "RejectionReason",
    # Text extraction
    "RawDocument",
    "TextExtractor",
    # Strategies
    "ExtractionStrategy",
    "BuiltInStrategy",
    "CloudProviderStrategy",
    "StrategySelector",
    "build_strategy",
    # Orchestration
    "ExtractionOrchestrator",
    "get_orchestrator",
    "reset_orchestrator",
    "extract_receipt",
    "extract_receipt_async",
]
