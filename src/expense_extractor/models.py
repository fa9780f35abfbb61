from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Confidence = Literal["high", "medium", "low"]

OTHER_CATEGORY_ID = "other"
OTHER_CATEGORY_NAME = "Other"


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    keywords: tuple[str, ...] = ()


class ExtractedExpense(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: int = Field(gt=0)  # smallest currency unit, VND has no decimals
    category_id: str
    category_name: str
    description: str
    date: str  # YYYY-MM-DD
    confidence: Confidence


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Optional[ExtractedExpense] = None
    error: Optional[str] = None
    needs_manual_category: bool = False
    source: Optional[str] = None  # "llm", "fallback"

    @model_validator(mode="after")
    def _success_has_data(self) -> "ExtractionResult":
        if self.success and self.data is None:
            raise ValueError("successful extraction requires data")
        return self

    @classmethod
    def failure(cls, error: str, source: str | None = None) -> "ExtractionResult":
        return cls(success=False, error=error, needs_manual_category=True, source=source)


class PendingExpense(BaseModel):
    amount: int
    description: str
    date: str
    category_id: Optional[str] = None


class NewExpense(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: int = Field(gt=0)
    category_id: str
    category_name: str
    description: str
    date: str


class ExpenseRecord(NewExpense):
    id: str
    created_at: str
    updated_at: str
