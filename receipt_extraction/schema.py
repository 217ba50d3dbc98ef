"""
Receipt Schema: Pydantic models for extracted fields, outcomes and merged drafts.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, validator

FIELD_NAMES = ("date", "cost", "vendor", "location", "category")


def normalize_cost(value: Any) -> Optional[str]:
    """
    Render a cost as a two-decimal string.

    Accepts numbers and numeric strings (``$`` and thousands commas are
    tolerated). Returns None for anything that is not a finite,
    non-negative number, or that is too large to represent in cents.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        amount = Decimal(str(value))
    else:
        text = str(value).strip().replace("$", "").replace(",", "")
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
        if not amount.is_finite():
            return None

    if amount < 0:
        return None
    try:
        return str(amount.quantize(Decimal("0.01")))
    except InvalidOperation:
        # more digits than the decimal context can hold
        return None


class ExtractedFields(BaseModel):
    """The five expense fields; each one independently nullable."""

    date: Optional[str] = Field(None, description="YYYY-MM-DD (or the raw matched text)")
    cost: Optional[str] = Field(None, description="Decimal string with two fraction digits")
    vendor: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None

    @validator("vendor", "location", "category")
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

    @validator("cost", pre=True)
    def validate_cost(cls, v):
        if v is None:
            return v
        return normalize_cost(v)

    def to_reply_dict(self) -> Dict[str, Optional[str]]:
        """Render in the provider reply shape (category exposed as ``type``)."""
        return {
            "date": self.date,
            "cost": self.cost,
            "vendor": self.vendor,
            "location": self.location,
            "type": self.category,
        }

    class Config:
        json_schema_extra = {
            "example": {
                "date": "2024-03-15",
                "cost": "5.25",
                "vendor": "Starbucks Coffee",
                "location": "Springfield",
                "category": "Dining",
            }
        }


class ExtractionOutcome(BaseModel):
    """Result of one extraction call."""

    fields: ExtractedFields = Field(default_factory=ExtractedFields)
    attempted: bool = True
    method: str = "builtin"
    error: Optional[str] = None

    class Config:
        frozen = True


class ExpenseOverrides(BaseModel):
    """User-supplied form values for the create/update flows."""

    date: Optional[str] = None
    cost: Optional[Union[str, float]] = None
    vendor: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = Field(None, alias="type")

    # Pass-through, never interpreted
    trip_name: Optional[str] = Field(None, alias="tripName")
    comments: Optional[str] = None

    class Config:
        populate_by_name = True

    def value_for(self, field_name: str) -> Optional[Any]:
        """Override value for a field, or None when absent or blank."""
        value = getattr(self, field_name)
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


class MergedExpenseDraft(BaseModel):
    """Extracted values merged with overrides; ready to persist."""

    date: str
    cost: str
    vendor: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    trip_name: Optional[str] = None
    comments: Optional[str] = None
    method: str = "builtin"
    attempted: bool = True

    @validator("cost")
    def validate_positive_cost(cls, v):
        if Decimal(v) <= 0:
            raise ValueError(f"Cost must be positive: {v}")
        return v


class RejectionReason(BaseModel):
    """Why a merged draft cannot be saved. Data, not an exception."""

    missing_date: bool = False
    missing_cost: bool = False
    method: str = "builtin"

    @property
    def missing_fields(self) -> List[str]:
        missing = []
        if self.missing_date:
            missing.append("date")
        if self.missing_cost:
            missing.append("cost")
        return missing

    @property
    def message(self) -> str:
        missing = " and ".join(self.missing_fields) or "required fields"
        return (
            f"Could not detect {missing} from the receipt. "
            "Please retry with a clearer image or enter the values manually."
        )
