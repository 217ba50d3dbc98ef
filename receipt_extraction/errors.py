"""Error taxonomy for receipt extraction."""


class ReceiptExtractionError(Exception):
    """Base class for all extraction errors."""


class UnsupportedMediaType(ReceiptExtractionError):
    """Document is neither an image nor a PDF."""

    def __init__(self, media_type: str):
        super().__init__(f"Unsupported media type for extraction: {media_type!r}")
        self.media_type = media_type


class TextExtractionFailed(ReceiptExtractionError):
    """The OCR engine or PDF library raised while reading the document."""


class MissingCredential(ReceiptExtractionError, ValueError):
    """A cloud provider was selected without a usable API key."""

    def __init__(self, provider: str):
        super().__init__(
            f"API key for {provider} is not configured. "
            "Set it in the settings or choose the builtin method."
        )
        self.provider = provider


class ProviderCallFailed(ReceiptExtractionError):
    """Network error or non-2xx response from a vision provider."""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"{provider} call failed: {detail}")
        self.provider = provider


class ProviderReplyUnparseable(ReceiptExtractionError):
    """Provider answered, but not with a usable JSON object."""

    def __init__(self, detail: str, reply_text: str = ""):
        super().__init__(detail)
        self.reply_text = reply_text
