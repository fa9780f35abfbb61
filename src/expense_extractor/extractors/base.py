from abc import ABC, abstractmethod

from expense_extractor.models import ExtractionResult


class Extractor(ABC):
    source: str = "unknown"

    @abstractmethod
    def extract(self, text: str) -> ExtractionResult:
        """Turn free-form text into an expense, or a tagged failure."""
        pass
