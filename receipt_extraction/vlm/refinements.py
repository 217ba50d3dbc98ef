"""
Provider refinements: small post-processing hooks run after the generic reply parse.

A hook takes the parsed fields and the raw reply text and returns (possibly
updated) fields. Hooks are registered per provider so that providers can be
added or removed without touching the shared parsing logic.
"""

import re
from typing import Callable, Dict, List

from receipt_extraction.schema import ExtractedFields
from receipt_extraction.vlm.vlm_types import OPENAI, OPENROUTER

RefinementHook = Callable[[ExtractedFields, str], ExtractedFields]

RIDESHARE_BRANDS = {
    "uber": "Uber",
    "lyft": "Lyft",
}

_refinements: Dict[str, List[RefinementHook]] = {}


def prefer_rideshare_vendor(fields: ExtractedFields, reply_text: str) -> ExtractedFields:
    """A rideshare brand named anywhere in the reply wins as vendor."""
    haystack = f"{fields.vendor or ''} {reply_text or ''}".lower()
    for keyword, brand in RIDESHARE_BRANDS.items():
        if re.search(rf"\b{keyword}\b", haystack):
            return fields.model_copy(update={"vendor": brand, "category": "Transportation"})
    return fields


def register_refinement(provider: str, hook: RefinementHook) -> None:
    hooks = _refinements.setdefault(provider, [])
    if hook not in hooks:
        hooks.append(hook)


def unregister_refinement(provider: str, hook: RefinementHook) -> None:
    hooks = _refinements.get(provider, [])
    if hook in hooks:
        hooks.remove(hook)


def get_refinements(provider: str) -> List[RefinementHook]:
    return list(_refinements.get(provider, []))


def apply_refinements(provider: str, fields: ExtractedFields, reply_text: str) -> ExtractedFields:
    for hook in _refinements.get(provider, []):
        fields = hook(fields, reply_text)
    return fields


register_refinement(OPENAI, prefer_rideshare_vendor)
register_refinement(OPENROUTER, prefer_rideshare_vendor)
