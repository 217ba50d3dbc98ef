"""
Text Extractor: Turn an uploaded receipt (image or PDF) into raw text.

PDFs are read with pypdf; images go through Tesseract (pytesseract) with
English language data and default page segmentation. OCR output is returned
untouched since the field heuristics rely on its line breaks.
"""

import asyncio
import base64
import logging
import mimetypes
import os
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

import pytesseract
from PIL import Image
from pypdf import PdfReader

from receipt_extraction.errors import TextExtractionFailed, UnsupportedMediaType

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


@dataclass
class RawDocument:
    """Uploaded receipt bytes plus declared media type."""

    content: bytes
    media_type: str
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, media_type: Optional[str] = None) -> "RawDocument":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Receipt not found: {path}")

        if media_type is None:
            media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            content=path.read_bytes(),
            media_type=media_type or "application/octet-stream",
            filename=path.name,
        )

    @property
    def is_pdf(self) -> bool:
        return self.media_type.lower() == PDF_MEDIA_TYPE

    @property
    def is_image(self) -> bool:
        return self.media_type.lower().startswith("image/")

    @property
    def is_supported(self) -> bool:
        return self.is_pdf or self.is_image

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("utf-8")


class TextExtractor:
    """Read text out of receipt images and PDFs. One attempt, no retries."""

    OCR_LANGUAGE = "eng"

    def __init__(self, tesseract_cmd: Optional[str] = None):
        self.extract_count = 0
        tesseract_cmd = tesseract_cmd or os.getenv("TESSERACT_CMD")
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(self, document: RawDocument) -> str:
        """
        Extract raw text from a receipt.

        Raises:
            UnsupportedMediaType: document is neither image nor PDF
            TextExtractionFailed: the OCR engine or PDF library raised
        """
        if document.is_pdf:
            self.extract_count += 1
            return self._extract_pdf_text(document.content)

        if document.is_image:
            self.extract_count += 1
            return self._extract_image_text(document.content)

        raise UnsupportedMediaType(document.media_type)

    async def extract_text_async(self, document: RawDocument) -> str:
        """Same as extract_text, run in a worker thread."""
        return await asyncio.to_thread(self.extract_text, document)

    def _extract_pdf_text(self, content: bytes) -> str:
        try:
            reader = PdfReader(BytesIO(content))
            page_texts = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            raise TextExtractionFailed(f"PDF text extraction failed: {e}") from e

        logger.debug(f"Extracted text from {len(page_texts)} PDF page(s)")
        return "\n".join(page_texts)

    def _extract_image_text(self, content: bytes) -> str:
        try:
            with Image.open(BytesIO(content)) as image:
                text = pytesseract.image_to_string(image, lang=self.OCR_LANGUAGE)
        except Exception as e:
            raise TextExtractionFailed(f"OCR failed: {e}") from e

        logger.debug(f"OCR produced {len(text)} characters")
        return text
