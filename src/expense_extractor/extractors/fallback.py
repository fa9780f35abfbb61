from collections.abc import Callable
from datetime import date

from expense_extractor.domain.amounts import parse_amount
from expense_extractor.domain.categories import DEFAULT_MATCHER, CategoryMatcher
from expense_extractor.domain.dates import parse_date
from expense_extractor.logger import get_logger
from expense_extractor.models import (
    OTHER_CATEGORY_ID,
    OTHER_CATEGORY_NAME,
    ExtractedExpense,
    ExtractionResult,
)

from .base import Extractor

logger = get_logger(__name__)

AMOUNT_NOT_FOUND = "amount not found"


class FallbackExtractor(Extractor):
    """Keyword and pattern based extraction. No network, never raises."""

    source = "fallback"

    def __init__(
        self,
        matcher: CategoryMatcher | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.matcher = matcher or DEFAULT_MATCHER
        self.clock = clock

    def extract(self, text: str) -> ExtractionResult:
        amount = parse_amount(text)
        if amount is None:
            logger.debug(f"No amount found in: '{text[:50]}'")
            return ExtractionResult.failure(AMOUNT_NOT_FOUND, source=self.source)

        expense_date = parse_date(text, today=self.clock())
        description = text.strip()
        category = self.matcher.find_category(text)

        if category is None or category.id == OTHER_CATEGORY_ID:
            return ExtractionResult(
                success=True,
                data=ExtractedExpense(
                    amount=amount,
                    category_id=OTHER_CATEGORY_ID,
                    category_name=OTHER_CATEGORY_NAME,
                    description=description,
                    date=expense_date,
                    confidence="low",
                ),
                needs_manual_category=True,
                source=self.source,
            )

        return ExtractionResult(
            success=True,
            data=ExtractedExpense(
                amount=amount,
                category_id=category.id,
                category_name=category.name,
                description=description,
                date=expense_date,
                confidence="medium",
            ),
            source=self.source,
        )
