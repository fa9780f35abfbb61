from pydantic import BaseModel, Field


class ExtractRequest(BaseModel):
    text: str = Field(min_length=1, max_length=1000)


class ConfirmRequest(BaseModel):
    category_id: str | None = None


class CategoryOut(BaseModel):
    id: str
    name: str
