from datetime import date

import pytest

from expense_extractor.extractors.fallback import AMOUNT_NOT_FOUND, FallbackExtractor

REF = date(2026, 1, 11)


@pytest.fixture
def extractor() -> FallbackExtractor:
    return FallbackExtractor(clock=lambda: REF)


def test_known_category_is_medium_confidence(extractor: FallbackExtractor) -> None:
    res = extractor.extract("mua sách 20k")

    assert res.success is True
    assert res.needs_manual_category is False
    assert res.source == "fallback"
    assert res.data.amount == 20_000
    assert res.data.category_id == "books"
    assert res.data.category_name == "Books"
    assert res.data.description == "mua sách 20k"
    assert res.data.date == "2026-01-11"
    assert res.data.confidence == "medium"


def test_unknown_category_asks_for_input(extractor: FallbackExtractor) -> None:
    res = extractor.extract("abc 15k")

    assert res.success is True
    assert res.needs_manual_category is True
    assert res.data.amount == 15_000
    assert res.data.category_id == "other"
    assert res.data.category_name == "Other"
    assert res.data.confidence == "low"


def test_missing_amount_is_hard_failure(extractor: FallbackExtractor) -> None:
    res = extractor.extract("xin chào bạn")

    assert res.success is False
    assert res.data is None
    assert res.error == AMOUNT_NOT_FOUND
    assert res.needs_manual_category is True


def test_relative_date(extractor: FallbackExtractor) -> None:
    res = extractor.extract("hôm qua đổ xăng 50k")

    assert res.data.category_id == "fuel"
    assert res.data.date == "2026-01-10"
    assert res.data.amount == 50_000


def test_same_input_same_result(extractor: FallbackExtractor) -> None:
    assert extractor.extract("ngày mai đi chợ 30k") == extractor.extract("ngày mai đi chợ 30k")
