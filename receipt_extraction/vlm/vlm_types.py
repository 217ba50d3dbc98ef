"""Shared data types and constants for vision providers."""

from dataclasses import dataclass, field
from typing import Dict

OPENAI = "openai"
GEMINI = "gemini"
CLAUDE = "claude"
OPENROUTER = "openrouter"

PROVIDERS = (OPENAI, GEMINI, CLAUDE, OPENROUTER)

DEFAULT_MODELS: Dict[str, str] = {
    OPENAI: "gpt-4o-mini",
    GEMINI: "gemini-1.5-flash",
    CLAUDE: "claude-3-haiku-20240307",
    OPENROUTER: "openai/gpt-4o-mini",
}

RECEIPT_EXTRACTION_PROMPT = (
    "Extract the following details from this receipt image/document as a JSON object: "
    "date (YYYY-MM-DD), cost (total amount paid, as a number), vendor (store or service name), "
    "location (city or address), type (one of Groceries, Dining, Transportation, Shopping, "
    "Utilities, Entertainment, Healthcare, Travel, Office, Expense). "
    "Use null for any field that cannot be determined. Respond ONLY with the JSON object. "
    'Example: {"date": "2024-01-15", "cost": 25.50, "vendor": "Example Store", '
    '"location": "Anytown", "type": "Shopping"}'
)


@dataclass
class VisionRequest:
    """One structured-extraction request to a vision model."""

    image_b64: str
    media_type: str
    model: str
    credential: str = field(repr=False)
    prompt: str = RECEIPT_EXTRACTION_PROMPT

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.image_b64}"
