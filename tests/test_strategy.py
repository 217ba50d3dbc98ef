"""Tests for extraction strategies and strategy selection."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from receipt_extraction.errors import (
    MissingCredential,
    ProviderCallFailed,
    ProviderReplyUnparseable,
    TextExtractionFailed,
    UnsupportedMediaType,
)
from receipt_extraction.schema import ExtractedFields
from receipt_extraction.strategy import (
    BuiltInStrategy,
    CloudProviderStrategy,
    StrategySelector,
    build_strategy,
    is_usable_credential,
)
from receipt_extraction.text_extractor import RawDocument


@pytest.fixture
def document():
    return RawDocument(b"fake image bytes", "image/png", filename="receipt.png")


@pytest.fixture
def builtin(sample_receipt_text):
    text_extractor = MagicMock()
    text_extractor.extract_text_async = AsyncMock(return_value=sample_receipt_text)
    return BuiltInStrategy(text_extractor=text_extractor)


@pytest.fixture
def router():
    router = MagicMock()
    router.request_fields = AsyncMock(
        return_value=ExtractedFields(
            date="2024-03-15", cost="5.25", vendor="Starbucks", category="Dining"
        )
    )
    return router


class TestCredentials:
    @pytest.mark.parametrize("credential", [None, "", "   ", "YOUR_OPENAI_API_KEY", "PASTE_KEY_HERE"])
    def test_unusable(self, credential):
        assert is_usable_credential(credential) is False

    def test_usable(self):
        assert is_usable_credential("sk-abc123") is True


class TestStrategySelector:
    def test_default_is_builtin(self):
        selector = StrategySelector()
        assert selector.method == "builtin"
        assert selector.credential is None

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError):
            StrategySelector(method="azure")

    def test_credential_hidden_from_repr(self):
        selector = StrategySelector(method="gemini", credential="sk-secret-123")
        assert "sk-secret-123" not in repr(selector)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_OCR_METHOD", "Gemini")
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")

        selector = StrategySelector.from_env()
        assert selector.method == "gemini"
        assert selector.credential == "g-key"
        assert selector.model == "gemini-2.0-flash"

    def test_from_env_default(self, monkeypatch):
        monkeypatch.delenv("EXPENSE_OCR_METHOD", raising=False)
        assert StrategySelector.from_env().method == "builtin"

    def test_from_env_explicit_method(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_API_KEY", "c-key")
        monkeypatch.delenv("CLAUDE_MODEL", raising=False)
        selector = StrategySelector.from_env(method="claude")
        assert selector.credential == "c-key"
        assert selector.model is None


class TestBuildStrategy:
    def test_builtin(self, builtin):
        assert build_strategy(StrategySelector(), builtin=builtin) is builtin

    def test_cloud(self, builtin, router):
        strategy = build_strategy(
            StrategySelector(method="openai", model="gpt-4o", credential="sk-1"),
            builtin=builtin,
            router=router,
        )
        assert isinstance(strategy, CloudProviderStrategy)
        assert strategy.name == "openai"
        assert strategy.model == "gpt-4o"
        assert strategy.fallback is builtin


class TestBuiltInStrategy:
    @pytest.mark.asyncio
    async def test_run(self, builtin, document):
        outcome = await builtin.run(document)
        assert outcome.attempted is True
        assert outcome.method == "builtin"
        assert outcome.fields.date == "2024-03-15"
        assert outcome.fields.cost == "5.25"
        assert outcome.fields.category == "Dining"

    @pytest.mark.asyncio
    async def test_text_extraction_failure_propagates(self, document):
        text_extractor = MagicMock()
        text_extractor.extract_text_async = AsyncMock(side_effect=TextExtractionFailed("boom"))
        with pytest.raises(TextExtractionFailed):
            await BuiltInStrategy(text_extractor=text_extractor).run(document)


class TestCloudProviderStrategy:
    @pytest.mark.asyncio
    async def test_success(self, builtin, router, document):
        strategy = CloudProviderStrategy(
            "gemini", credential="g-key", router=router, fallback=builtin
        )
        outcome = await strategy.run(document)

        assert outcome.method == "gemini"
        assert outcome.fields.vendor == "Starbucks"
        router.request_fields.assert_awaited_once_with("gemini", document, None, "g-key")
        builtin.text_extractor.extract_text_async.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ProviderCallFailed("claude", "HTTP 500"),
            ProviderReplyUnparseable("no JSON"),
            TimeoutError("timed out"),
        ],
    )
    async def test_fallback_matches_builtin(self, builtin, router, document, error):
        router.request_fields.side_effect = error
        strategy = CloudProviderStrategy(
            "claude", credential="c-key", router=router, fallback=builtin
        )

        outcome = await strategy.run(document)
        expected = await builtin.run(document)

        assert outcome == expected
        assert outcome.method == "builtin"
        assert strategy.fallback_count == 1
        assert strategy.active_method == "builtin"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, "", "YOUR_API_KEY"])
    async def test_missing_credential_before_any_call(self, builtin, router, document, credential):
        strategy = CloudProviderStrategy(
            "openai", credential=credential, router=router, fallback=builtin
        )
        with pytest.raises(MissingCredential) as exc_info:
            await strategy.run(document)

        assert exc_info.value.provider == "openai"
        router.request_fields.assert_not_awaited()
        builtin.text_extractor.extract_text_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_media_not_sent(self, builtin, router):
        strategy = CloudProviderStrategy(
            "gemini", credential="g-key", router=router, fallback=builtin
        )
        with pytest.raises(UnsupportedMediaType):
            await strategy.run(RawDocument(b"hello", "text/plain"))
        router.request_fields.assert_not_awaited()
