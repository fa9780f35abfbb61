import json
import os
import uuid
from datetime import datetime, timezone
from typing import Protocol

from pydantic import ValidationError

from expense_extractor.logger import get_logger
from expense_extractor.models import ExpenseRecord, NewExpense

logger = get_logger(__name__)


class ExpenseStore(Protocol):
    def add(self, expense: NewExpense) -> ExpenseRecord: ...

    def list_by_date_range(self, start: str, end: str) -> list[ExpenseRecord]: ...

    def all(self) -> list[ExpenseRecord]: ...


def _new_expense_id() -> str:
    return f"exp_{uuid.uuid4().hex[:16]}"


class JsonExpenseStore:
    """Expenses kept in a single JSON file, rewritten on every add."""

    def __init__(self, data_path: str = "expenses.json"):
        self.data_path = data_path
        self.records: list[ExpenseRecord] = []
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            self.records = []
            return
        try:
            with open(self.data_path, encoding="utf-8") as f:
                raw = json.load(f)
            self.records = [ExpenseRecord.model_validate(item) for item in raw]
        except (json.JSONDecodeError, ValidationError, TypeError):
            logger.warning(f"Could not read {self.data_path}, starting with no expenses.")
            self.records = []

    def save(self) -> None:
        tmp_path = f"{self.data_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(
                [record.model_dump() for record in self.records],
                f,
                indent=2,
                ensure_ascii=False,
            )
        os.replace(tmp_path, self.data_path)

    def add(self, expense: NewExpense) -> ExpenseRecord:
        now = datetime.now(timezone.utc).isoformat()
        record = ExpenseRecord(
            **expense.model_dump(),
            id=_new_expense_id(),
            created_at=now,
            updated_at=now,
        )
        self.records.append(record)
        try:
            self.save()
        except OSError:
            self.records.pop()
            raise
        logger.info(f"Stored expense {record.id}: {record.amount} '{record.category_id}' on {record.date}")
        return record

    def list_by_date_range(self, start: str, end: str) -> list[ExpenseRecord]:
        # ISO dates compare correctly as strings
        return [record for record in self.records if start <= record.date <= end]

    def all(self) -> list[ExpenseRecord]:
        return list(self.records)
