"""
Field Extractor: Pull expense fields out of raw receipt text with regex heuristics.

Each finder is a pure function over the OCR/PDF text and can be called on
its own. FieldExtractor bundles them for the built-in strategy.
"""

import re
from datetime import date as calendar_date
from decimal import Decimal
from typing import Dict, List, Optional

from receipt_extraction.schema import ExtractedFields

DEFAULT_CATEGORY = "Expense"

# Declaration order matters: first category with any keyword present wins.
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Groceries": ["grocery", "supermarket", "food", "produce", "meat", "dairy", "bakery"],
    "Dining": [
        "restaurant",
        "cafe",
        "diner",
        "bistro",
        "bar",
        "pub",
        "eatery",
        "food court",
        "coffee",  # extension beyond the base keyword table
    ],
    "Transportation": [
        "gas",
        "fuel",
        "parking",
        "taxi",
        "uber",
        "lyft",
        "transit",
        "train",
        "bus",
        "subway",
    ],
    "Shopping": ["clothing", "apparel", "shoes", "accessories", "department store", "mall"],
    "Utilities": ["electric", "water", "gas", "internet", "phone", "utility", "bill"],
    "Entertainment": ["movie", "theatre", "concert", "show", "event", "ticket"],
    "Healthcare": ["doctor", "hospital", "clinic", "pharmacy", "medical", "dental", "vision"],
    "Travel": ["hotel", "motel", "lodging", "airfare", "airline", "flight", "booking"],
    "Office": ["office", "supplies", "stationery", "printing", "software", "hardware"],
}

CATEGORY_LABELS = tuple(CATEGORY_KEYWORDS) + (DEFAULT_CATEGORY,)

# ISO, then M/D/Y, then M.D.Y; leftmost match in the text wins
DATE_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2})|(\d{1,2}/\d{1,2}/\d{2,4})|(\d{1,2}\.\d{1,2}\.\d{2,4})"
)
AMOUNT_PATTERN = re.compile(r"\$?(\d{1,3}(?:,\d{3})*\.\d{2}|\d+\.\d{2})")
COST_KEYWORD_PATTERN = re.compile(r"total|amount|balance|due|sum|pay|charge", re.IGNORECASE)

VENDOR_DENYLIST_PATTERN = re.compile(
    r"receipt|invoice|order|date|time|customer|phone|tel|fax|www|http|cash|card|total|amount",
    re.IGNORECASE,
)

CITY_STATE_ZIP_PATTERN = re.compile(r"([a-zA-Z\s\-']+),?\s+([A-Z]{2})\s+(\d{5}(?:-\d{4})?)")
CITY_STATE_PATTERN = re.compile(r"([a-zA-Z\s\-']+),\s+([A-Z]{2})")
STREET_ADDRESS_PATTERN = re.compile(
    r"\d+\s+[\w\s]+(?:street|st|avenue|ave|road|rd|blvd|ln|dr)", re.IGNORECASE
)
PAYMENT_LINE_PATTERN = re.compile(r"total|amount|cash|card", re.IGNORECASE)


def find_date(text: str) -> Optional[str]:
    """
    First date in the text, normalized to YYYY-MM-DD.

    Two-digit years pivot at 70. When the normalized month/day is not a real
    calendar date, the matched text is returned as-is.
    """
    match = DATE_PATTERN.search(text or "")
    if not match:
        return None

    raw = match.group(0)
    parts = re.split(r"[-/.]", raw)

    if len(parts[0]) == 4:
        year, month, day = parts
    else:
        month, day, year = parts
        if len(year) == 2:
            year = ("20" if int(year) < 70 else "19") + year

    month = month.zfill(2)
    day = day.zfill(2)

    if not (1 <= int(month) <= 12 and 1 <= int(day) <= 31):
        return raw
    try:
        calendar_date(int(year), int(month), int(day))
    except ValueError:
        return raw

    return f"{year}-{month}-{day}"


def _largest_amount(text: str) -> Optional[Decimal]:
    amounts = [
        Decimal(m.group(1).replace(",", "")) for m in AMOUNT_PATTERN.finditer(text)
    ]
    return max(amounts) if amounts else None


def find_cost(text: str) -> Optional[str]:
    """
    Receipt total as a two-decimal string.

    Largest amount on lines mentioning total/amount/balance/etc., else the
    largest amount anywhere in the text.
    """
    text = text or ""

    best = None
    for line in text.split("\n"):
        if not COST_KEYWORD_PATTERN.search(line):
            continue
        amount = _largest_amount(line)
        if amount is not None and (best is None or amount > best):
            best = amount

    if best is None:
        best = _largest_amount(text)

    if best is None:
        return None
    return f"{best:.2f}"


def find_vendor(text: str) -> Optional[str]:
    """First line that is not receipt boilerplate; the first line otherwise."""
    lines = (text or "").split("\n")

    for line in lines:
        candidate = line.strip()
        if len(candidate) > 1 and not VENDOR_DENYLIST_PATTERN.search(candidate):
            return candidate

    return lines[0].strip() or None


def _city_from_line(line: str) -> Optional[str]:
    for pattern in (CITY_STATE_ZIP_PATTERN, CITY_STATE_PATTERN):
        match = pattern.search(line)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def find_location(text: str) -> Optional[str]:
    """
    City from the first "City, ST 12345" or "City, ST" line, else a street address.

    Both city patterns are tried on each line before moving to the next one.
    """
    lines = (text or "").split("\n")

    for line in lines:
        city = _city_from_line(line)
        if city:
            return city

    for line in lines:
        if STREET_ADDRESS_PATTERN.search(line) and not PAYMENT_LINE_PATTERN.search(line):
            address = line.split(",")[0].strip()
            if address:
                return address

    return None


def find_category(text: str) -> str:
    """First category (table order) with a keyword present in the text."""
    lower_text = (text or "").lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if keyword in lower_text:
                return category
    return DEFAULT_CATEGORY


FINDERS = {
    "date": find_date,
    "cost": find_cost,
    "vendor": find_vendor,
    "location": find_location,
    "category": find_category,
}


class FieldExtractor:
    """Run every field finder over receipt text."""

    def __init__(self):
        self.extraction_count = 0

    def extract_fields(self, text: str) -> ExtractedFields:
        """Apply all five finders; each may independently miss."""
        self.extraction_count += 1
        return ExtractedFields(**{name: finder(text) for name, finder in FINDERS.items()})

