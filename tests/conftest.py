"""Shared fixtures for tests."""

from io import BytesIO

import pytest

from receipt_extraction.orchestrator import reset_orchestrator
from receipt_extraction.vlm.vlm_router import reset_vlm_router

SAMPLE_RECEIPT_TEXT = """Starbucks Coffee
123 Main St, Springfield, IL 62704
Date: 2024-03-15
Subtotal 4.50
Total $5.25"""


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_vlm_router()
    reset_orchestrator()
    yield
    reset_vlm_router()
    reset_orchestrator()


@pytest.fixture
def sample_receipt_text():
    """OCR text of a small coffee-shop receipt."""
    return SAMPLE_RECEIPT_TEXT


@pytest.fixture
def sample_png_bytes():
    """A tiny valid PNG; OCR is mocked wherever it is used."""
    from PIL import Image

    buf = BytesIO()
    Image.new("RGB", (40, 20), color="white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_receipt_pdf(tmp_path):
    """
    Generate a minimal but realistic receipt PDF for testing.

    Requires reportlab; skipped otherwise.
    """
    pytest.importorskip("reportlab", reason="reportlab not installed - install it for PDF tests")
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas

    pdf_path = tmp_path / "test_receipt.pdf"
    c = canvas.Canvas(str(pdf_path), pagesize=letter)
    width, height = letter

    c.setFont("Helvetica-Bold", 14)
    c.drawString(72, height - 72, "Blue Door Bistro")

    c.setFont("Helvetica", 10)
    c.drawString(72, height - 92, "88 Harbor Ave, Portland, OR 97209")
    c.drawString(72, height - 107, "Date: 03/02/2024")
    c.drawString(72, height - 137, "Soup of the day 9.00")
    c.drawString(72, height - 152, "Sparkling water 3.50")
    c.drawString(72, height - 182, "Subtotal 12.50")
    c.drawString(72, height - 197, "Tax 1.10")
    c.drawString(72, height - 212, "Total $13.60")

    c.showPage()
    c.setFont("Helvetica", 8)
    c.drawString(72, height - 72, "Thank you for dining with us.")
    c.save()

    return pdf_path
