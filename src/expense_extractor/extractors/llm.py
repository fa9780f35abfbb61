import json
import math
import re
from collections.abc import Callable
from datetime import date, timedelta

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from expense_extractor.core.settings import AIConfig
from expense_extractor.domain.categories import DEFAULT_MATCHER, CategoryMatcher
from expense_extractor.domain.dates import is_iso_date, parse_date
from expense_extractor.logger import get_logger
from expense_extractor.models import ExtractedExpense, ExtractionResult

from .base import Extractor

logger = get_logger(__name__)

API_KEY_MISSING = "API key not configured. Please add your API key in the settings."
PARSE_FAILED = "Failed to parse AI response"

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = """You are an expense extraction assistant for Vietnamese users. Extract expense information from Vietnamese or English text including date references.

Categories available: {categories}

Today is {today}.

Rules:
1. Extract the amount in VND (convert k to thousand, e.g., 20k = 20000; triệu = million)
2. Identify the category based on the description, using one of the category ids above
3. Parse date references: "hôm qua"/"qua" = yesterday, "ngày mai"/"mai" = tomorrow, otherwise = today
4. Return date in YYYY-MM-DD format
5. Keep the original description (without the date reference or the amount)
6. Respond ONLY with JSON in this exact format:
{{
  "amount": <number>,
  "categoryId": "<category-id>",
  "categoryName": "<category-name>",
  "description": "<original description>",
  "date": "<YYYY-MM-DD>"
}}

Examples:
Input: "mua sách 20k"
Output: {{"amount": 20000, "categoryId": "books", "categoryName": "Books", "description": "mua sách", "date": "{today}"}}

Input: "hôm qua đổ xăng 50k"
Output: {{"amount": 50000, "categoryId": "fuel", "categoryName": "Fuel", "description": "đổ xăng", "date": "{yesterday}"}}

Input: "ngày mai đi chợ 30k"
Output: {{"amount": 30000, "categoryId": "groceries", "categoryName": "Groceries", "description": "đi chợ", "date": "{tomorrow}"}}"""


class AIResponseError(Exception):
    pass


class AIExpensePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float
    category_id: str = Field(alias="categoryId")
    category_name: str | None = Field(default=None, alias="categoryName")
    description: str | None = None
    date: str | None = None


class AIExtractionClient(Extractor):
    source = "llm"

    def __init__(
        self,
        config: AIConfig,
        matcher: CategoryMatcher | None = None,
        clock: Callable[[], date] = date.today,
        client: OpenAI | None = None,
    ):
        self.config = config
        self.matcher = matcher or DEFAULT_MATCHER
        self.clock = clock
        self.client = client
        if self.client is None and config.api_key:
            # A failed call goes straight to the fallback, no SDK retries
            self.client = OpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=0,
            )

    def build_system_prompt(self, today: date) -> str:
        categories = ", ".join(
            f"{category.id} ({category.name})" for category in self.matcher.registry
        )
        return SYSTEM_PROMPT.format(
            categories=categories,
            today=today.isoformat(),
            yesterday=(today - timedelta(days=1)).isoformat(),
            tomorrow=(today + timedelta(days=1)).isoformat(),
        )

    def extract(self, text: str) -> ExtractionResult:
        if not self.config.api_key or self.client is None:
            return ExtractionResult.failure(API_KEY_MISSING, source=self.source)

        today = self.clock()
        try:
            reply = self._complete(text, today)
            expense = self._parse_reply(reply, text, today)
        except OpenAIError as e:
            logger.warning(f"AI request failed: {e}")
            return ExtractionResult.failure(str(e) or "AI request failed", source=self.source)
        except AIResponseError as e:
            logger.warning(f"{PARSE_FAILED}: {e}")
            return ExtractionResult.failure(PARSE_FAILED, source=self.source)

        return ExtractionResult(success=True, data=expense, source=self.source)

    def _complete(self, text: str, today: date) -> str:
        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": self.build_system_prompt(today)},
                {"role": "user", "content": text},
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        choices = response.choices
        if not choices:
            raise AIResponseError("No response from AI")
        content = choices[0].message.content
        if not content:
            raise AIResponseError("No response from AI")
        return content

    def _parse_reply(self, reply: str, text: str, today: date) -> ExtractedExpense:
        match = JSON_OBJECT.search(reply)
        if not match:
            raise AIResponseError("No JSON found in response")

        try:
            raw = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise AIResponseError(f"Malformed JSON: {e}") from e
        if not isinstance(raw, dict):
            raise AIResponseError("Invalid response format")

        try:
            payload = AIExpensePayload.model_validate(raw)
        except ValidationError as e:
            raise AIResponseError(f"Invalid response format: {e.error_count()} error(s)") from e

        if not math.isfinite(payload.amount) or not payload.category_id:
            raise AIResponseError("Invalid response format")
        amount = int(round(payload.amount))
        if amount <= 0:
            raise AIResponseError("Invalid response format")

        # The model may invent ids; only keep categories we know.
        category = self.matcher.find_category(payload.category_id)
        if category is None:
            raise AIResponseError(f"Invalid category: {payload.category_id}")

        expense_date = payload.date if payload.date and is_iso_date(payload.date) else None
        if expense_date is None:
            expense_date = parse_date(text, today=today)

        description = (payload.description or "").strip() or text.strip()

        return ExtractedExpense(
            amount=amount,
            category_id=category.id,
            category_name=category.name,
            description=description,
            date=expense_date,
            confidence="high",
        )
