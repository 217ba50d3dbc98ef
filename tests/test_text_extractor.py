"""Tests for TextExtractor and RawDocument."""

from unittest.mock import patch

import pytest

from receipt_extraction.errors import TextExtractionFailed, UnsupportedMediaType
from receipt_extraction.text_extractor import RawDocument, TextExtractor


class TestRawDocument:
    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            RawDocument.from_path("/nonexistent/receipt.jpg")

    def test_from_path_guesses_media_type(self, tmp_path):
        path = tmp_path / "receipt.png"
        path.write_bytes(b"\x89PNG")
        doc = RawDocument.from_path(str(path))
        assert doc.media_type == "image/png"
        assert doc.filename == "receipt.png"
        assert doc.is_image and doc.is_supported

    def test_from_path_unknown_extension(self, tmp_path):
        path = tmp_path / "receipt.unknownext"
        path.write_bytes(b"data")
        doc = RawDocument.from_path(str(path))
        assert doc.media_type == "application/octet-stream"
        assert not doc.is_supported

    def test_explicit_media_type(self, tmp_path):
        path = tmp_path / "scan"
        path.write_bytes(b"%PDF")
        doc = RawDocument.from_path(str(path), media_type="application/pdf")
        assert doc.is_pdf

    def test_media_type_case_insensitive(self):
        assert RawDocument(b"", "Application/PDF").is_pdf
        assert RawDocument(b"", "IMAGE/JPEG").is_image

    def test_to_base64(self):
        assert RawDocument(b"abc", "image/png").to_base64() == "YWJj"


class TestTextExtractor:
    @pytest.fixture
    def extractor(self):
        return TextExtractor()

    def test_unsupported_media_type(self, extractor):
        with pytest.raises(UnsupportedMediaType) as exc_info:
            extractor.extract_text(RawDocument(b"hello", "text/plain"))
        assert exc_info.value.media_type == "text/plain"
        assert extractor.extract_count == 0

    def test_image_goes_through_ocr(self, extractor, sample_png_bytes):
        with patch(
            "receipt_extraction.text_extractor.pytesseract.image_to_string",
            return_value="Starbucks Coffee\nTotal $5.25\n",
        ) as ocr:
            text = extractor.extract_text(RawDocument(sample_png_bytes, "image/png"))

        assert text == "Starbucks Coffee\nTotal $5.25\n"
        assert ocr.call_args.kwargs["lang"] == "eng"
        assert extractor.extract_count == 1

    def test_ocr_error_wrapped(self, extractor, sample_png_bytes):
        with patch(
            "receipt_extraction.text_extractor.pytesseract.image_to_string",
            side_effect=RuntimeError("tesseract is not installed"),
        ):
            with pytest.raises(TextExtractionFailed, match="tesseract"):
                extractor.extract_text(RawDocument(sample_png_bytes, "image/png"))

    def test_corrupt_image(self, extractor):
        with pytest.raises(TextExtractionFailed):
            extractor.extract_text(RawDocument(b"not an image", "image/jpeg"))

    def test_corrupt_pdf(self, extractor):
        with pytest.raises(TextExtractionFailed):
            extractor.extract_text(RawDocument(b"not a pdf", "application/pdf"))

    def test_pdf_text(self, extractor, sample_receipt_pdf):
        doc = RawDocument.from_path(str(sample_receipt_pdf))
        text = extractor.extract_text(doc)

        assert "Blue Door Bistro" in text
        assert "Total $13.60" in text
        # Both pages are included
        assert "Thank you for dining" in text

    @pytest.mark.asyncio
    async def test_extract_text_async(self, extractor, sample_png_bytes):
        with patch(
            "receipt_extraction.text_extractor.pytesseract.image_to_string",
            return_value="Total 1.00",
        ):
            text = await extractor.extract_text_async(RawDocument(sample_png_bytes, "image/png"))
        assert text == "Total 1.00"

    def test_tesseract_cmd_from_env(self, monkeypatch):
        monkeypatch.setenv("TESSERACT_CMD", "/opt/tesseract/bin/tesseract")
        with patch("receipt_extraction.text_extractor.pytesseract.pytesseract") as module:
            TextExtractor()
        assert module.tesseract_cmd == "/opt/tesseract/bin/tesseract"
