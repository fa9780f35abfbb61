from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from expense_extractor.core.settings import AIConfig
from expense_extractor.extractors.base import Extractor
from expense_extractor.extractors.fallback import FallbackExtractor
from expense_extractor.manager import ExtractionOrchestrator
from expense_extractor.models import ExtractedExpense, ExtractionResult

REF = date(2026, 1, 11)


def _success(source: str, confidence: str = "high") -> ExtractionResult:
    return ExtractionResult(
        success=True,
        data=ExtractedExpense(
            amount=20_000,
            category_id="books",
            category_name="Books",
            description="mua sách",
            date="2026-01-11",
            confidence=confidence,
        ),
        source=source,
    )


@pytest.fixture
def mock_extractors() -> tuple[MagicMock, MagicMock]:
    ai = MagicMock(spec=Extractor)
    ai.source = "llm"
    fallback = MagicMock(spec=Extractor)
    fallback.source = "fallback"
    return ai, fallback


def test_orchestration_priority(mock_extractors: tuple[MagicMock, MagicMock]) -> None:
    ai, fallback = mock_extractors
    orchestrator = ExtractionOrchestrator([ai, fallback])

    # Case 1: AI succeeds, returned untouched
    ai.extract.return_value = _success("llm")
    res = orchestrator.extract("mua sách 20k")
    assert res.source == "llm"
    assert res.data.confidence == "high"
    fallback.extract.assert_not_called()

    # Case 2: AI soft-fails, fallback used
    ai.extract.return_value = ExtractionResult.failure("API key not configured", source="llm")
    fallback.extract.return_value = _success("fallback", confidence="medium")
    res = orchestrator.extract("mua sách 20k")
    assert res.source == "fallback"
    assert res.data.confidence == "medium"
    fallback.extract.assert_called_once_with("mua sách 20k")
    assert ai.extract.call_count == 2


def test_all_fail_returns_last_result(mock_extractors: tuple[MagicMock, MagicMock]) -> None:
    ai, fallback = mock_extractors
    ai.extract.return_value = ExtractionResult.failure("boom", source="llm")
    fallback.extract.return_value = ExtractionResult.failure("amount not found", source="fallback")

    res = ExtractionOrchestrator([ai, fallback]).extract("xin chào")

    assert res.success is False
    assert res.error == "amount not found"


def test_unexpected_exception_falls_through(mock_extractors: tuple[MagicMock, MagicMock]) -> None:
    ai, fallback = mock_extractors
    ai.extract.side_effect = RuntimeError("unexpected")
    fallback.extract.return_value = _success("fallback", confidence="medium")

    res = ExtractionOrchestrator([ai, fallback]).extract("mua sách 20k")

    assert res.success is True
    assert res.source == "fallback"


def test_blank_text_skips_ai(mock_extractors: tuple[MagicMock, MagicMock]) -> None:
    ai, fallback = mock_extractors
    fallback.extract.return_value = ExtractionResult.failure("amount not found", source="fallback")

    res = ExtractionOrchestrator([ai, fallback]).extract("   ")

    assert res.success is False
    ai.extract.assert_not_called()


def test_requires_an_extractor() -> None:
    with pytest.raises(ValueError):
        ExtractionOrchestrator([])


def test_from_config_orders_ai_first() -> None:
    with patch("expense_extractor.extractors.llm.OpenAI"):
        orchestrator = ExtractionOrchestrator.from_config(AIConfig(api_key="gsk-fake"))

    assert [e.source for e in orchestrator.extractors] == ["llm", "fallback"]
    assert isinstance(orchestrator.extractors[-1], FallbackExtractor)


# End to end without an AI backend


@pytest.fixture
def offline() -> ExtractionOrchestrator:
    return ExtractionOrchestrator.from_config(AIConfig(api_key=None), clock=lambda: REF)


def test_offline_known_category(offline: ExtractionOrchestrator) -> None:
    res = offline.extract("mua sách 20k")

    assert res.success is True
    assert res.data.confidence == "medium"
    assert res.data.category_id == "books"
    assert res.data.amount == 20_000


def test_offline_unknown_category(offline: ExtractionOrchestrator) -> None:
    res = offline.extract("abc 15k")

    assert res.success is True
    assert res.data.confidence == "low"
    assert res.data.category_id == "other"
    assert res.needs_manual_category is True
    assert res.data.amount == 15_000


def test_offline_no_amount(offline: ExtractionOrchestrator) -> None:
    res = offline.extract("xin chào bạn")

    assert res.success is False
    assert res.needs_manual_category is True


def test_offline_is_repeatable(offline: ExtractionOrchestrator) -> None:
    first = offline.extract("hôm qua đổ xăng 50k")
    second = offline.extract("hôm qua đổ xăng 50k")

    assert first == second
    assert first.data.date == "2026-01-10"
