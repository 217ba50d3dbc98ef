"""Parse a vision provider's free-form reply into ExtractedFields."""

import json
import logging
import re
from typing import Any, Dict, Optional

from receipt_extraction.errors import ProviderReplyUnparseable
from receipt_extraction.field_extractor import CATEGORY_LABELS, DEFAULT_CATEGORY
from receipt_extraction.schema import ExtractedFields, normalize_cost

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

_LABELS_BY_LOWER = {label.lower(): label for label in CATEGORY_LABELS}


def load_reply_json(response_text: str) -> Dict[str, Any]:
    """
    Load the JSON object from a reply (handles markdown wrappers).

    Raises:
        ProviderReplyUnparseable: no JSON object could be recovered
    """
    if not response_text or not response_text.strip():
        raise ProviderReplyUnparseable("Empty reply", response_text or "")

    candidates = []
    fence_match = CODE_FENCE_PATTERN.search(response_text)
    if fence_match:
        candidates.append(fence_match.group(1))
    candidates.append(response_text.strip())

    # Bare object surrounded by prose
    object_match = re.search(r"\{.*\}", response_text, re.DOTALL)
    if object_match:
        candidates.append(object_match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ProviderReplyUnparseable("Reply did not contain a JSON object", response_text)


def _clean_date(value: Any) -> Optional[str]:
    if isinstance(value, str) and ISO_DATE_PATTERN.match(value.strip()):
        return value.strip()
    return None


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _clean_category(value: Any) -> str:
    if isinstance(value, str):
        return _LABELS_BY_LOWER.get(value.strip().lower(), DEFAULT_CATEGORY)
    return DEFAULT_CATEGORY


def fields_from_reply(data: Dict[str, Any]) -> ExtractedFields:
    """Validate each reply key's shape; bad values become null."""
    return ExtractedFields(
        date=_clean_date(data.get("date")),
        cost=normalize_cost(data.get("cost")),
        vendor=_clean_text(data.get("vendor")),
        location=_clean_text(data.get("location")),
        category=_clean_category(data.get("type")),
    )


def parse_receipt_reply(response_text: str) -> ExtractedFields:
    """Reply text -> ExtractedFields. Raises ProviderReplyUnparseable."""
    data = load_reply_json(response_text)
    fields = fields_from_reply(data)
    logger.debug(f"Parsed provider reply: {fields.to_reply_dict()}")
    return fields
