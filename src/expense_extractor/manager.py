from collections.abc import Callable
from datetime import date

from expense_extractor.core.settings import AIConfig
from expense_extractor.domain.categories import DEFAULT_MATCHER, CategoryMatcher
from expense_extractor.extractors.base import Extractor
from expense_extractor.extractors.fallback import FallbackExtractor
from expense_extractor.extractors.llm import AIExtractionClient
from expense_extractor.logger import get_logger
from expense_extractor.models import ExtractionResult

logger = get_logger(__name__)


class ExtractionOrchestrator:
    """Runs extraction strategies in order and returns the first success.

    When every strategy fails, the last strategy's result is returned, so
    the deterministic fallback always has the final word.
    """

    def __init__(self, extractors: list[Extractor]):
        if not extractors:
            raise ValueError("At least one extractor is required")
        self.extractors = list(extractors)

    @classmethod
    def from_config(
        cls,
        config: AIConfig,
        matcher: CategoryMatcher | None = None,
        clock: Callable[[], date] = date.today,
    ) -> "ExtractionOrchestrator":
        matcher = matcher or DEFAULT_MATCHER

        # 1. AI extraction (soft-fails without an API key)
        ai = AIExtractionClient(config, matcher=matcher, clock=clock)
        if config.api_key:
            logger.info(f"AI extraction enabled: model={config.model}, base_url={config.base_url}")
        else:
            logger.warning("AI API key not configured. Using keyword extraction only.")

        # 2. Keyword/pattern fallback
        fallback = FallbackExtractor(matcher=matcher, clock=clock)
        return cls([ai, fallback])

    def extract(self, text: str) -> ExtractionResult:
        result: ExtractionResult | None = None
        extractors = self.extractors
        if not text.strip():
            # Nothing worth a network call
            extractors = extractors[-1:]

        for extractor in extractors:
            extractor_name = extractor.__class__.__name__
            logger.debug(f"Trying {extractor_name} for: '{text[:50]}'")

            try:
                result = extractor.extract(text)
            except Exception:
                logger.exception(f"{extractor_name} raised, treating as soft failure")
                result = ExtractionResult.failure(
                    f"{extractor_name} failed unexpectedly", source=extractor.source
                )

            if result.success and result.data is not None:
                logger.debug(
                    f"{extractor_name} returned: {result.data.amount} "
                    f"'{result.data.category_id}' (confidence: {result.data.confidence})"
                )
                return result

            logger.info(f"{extractor_name} failed: {result.error}")

        return result
