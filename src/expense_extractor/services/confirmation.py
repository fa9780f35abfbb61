from enum import Enum
from typing import Literal

from pydantic import BaseModel

from expense_extractor.domain.categories import DEFAULT_REGISTRY, CategoryRegistry
from expense_extractor.logger import get_logger
from expense_extractor.models import (
    OTHER_CATEGORY_ID,
    ExpenseRecord,
    ExtractionResult,
    NewExpense,
    PendingExpense,
)
from expense_extractor.services.storage import ExpenseStore

logger = get_logger(__name__)

RETRY_HINT = (
    "Could not extract expense information. "
    "Please try again with format like: 'mua sách 20k' or 'Đi chợ 15k'"
)


class WorkflowState(str, Enum):
    IDLE = "idle"
    PENDING_CONFIRMATION = "pending_confirmation"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class WorkflowOutcome(BaseModel):
    action: Literal["committed", "pending", "cancelled", "failed"]
    state: WorkflowState
    message: str
    record: ExpenseRecord | None = None
    pending: PendingExpense | None = None
    error: str | None = None


def format_vnd(amount: int) -> str:
    return f"{amount:,}".replace(",", ".") + " VND"


class ConfirmationWorkflow:
    """Decides whether an extraction is saved straight away or held for the
    user to pick a category.

    Holds at most one pending expense. A new ambiguous extraction replaces
    an unresolved one; the replaced expense is dropped without saving.
    """

    def __init__(self, store: ExpenseStore, registry: CategoryRegistry = DEFAULT_REGISTRY):
        self.store = store
        self.registry = registry
        self.state = WorkflowState.IDLE
        self.pending: PendingExpense | None = None

    def handle(self, result: ExtractionResult) -> WorkflowOutcome:
        if not result.success or result.data is None:
            return WorkflowOutcome(
                action="failed",
                state=self.state,
                message=RETRY_HINT,
                pending=self.pending,
                error=result.error,
            )

        data = result.data
        if result.needs_manual_category or data.confidence == "low":
            if self.pending is not None:
                logger.warning(
                    f"Replacing unconfirmed expense of {data.amount} with a new one; "
                    f"dropping {self.pending.amount} '{self.pending.description[:50]}'"
                )
            self.pending = PendingExpense(
                amount=data.amount,
                description=data.description,
                date=data.date,
                category_id=None if data.category_id == OTHER_CATEGORY_ID else data.category_id,
            )
            self.state = WorkflowState.PENDING_CONFIRMATION
            return WorkflowOutcome(
                action="pending",
                state=self.state,
                message=(
                    f"I found an expense of {format_vnd(data.amount)}. "
                    "Please confirm the category below."
                ),
                pending=self.pending,
            )

        return self._commit(
            NewExpense(
                amount=data.amount,
                category_id=data.category_id,
                category_name=data.category_name,
                description=data.description,
                date=data.date,
            )
        )

    def select_category(self, category_id: str) -> bool:
        if self.pending is None or category_id not in self.registry:
            return False
        self.pending = self.pending.model_copy(update={"category_id": category_id})
        return True

    def confirm(self, category_id: str | None = None) -> WorkflowOutcome | None:
        """Save the pending expense under the chosen category.

        Returns None, leaving everything as it was, when there is nothing
        pending or no known category has been chosen.
        """
        if self.pending is None:
            return None
        chosen = category_id or self.pending.category_id
        category = self.registry.get(chosen) if chosen else None
        if category is None:
            return None

        return self._commit(
            NewExpense(
                amount=self.pending.amount,
                category_id=category.id,
                category_name=category.name,
                description=self.pending.description,
                date=self.pending.date,
            )
        )

    def cancel(self) -> WorkflowOutcome | None:
        if self.pending is None:
            return None
        logger.info(f"Cancelled expense of {self.pending.amount} '{self.pending.description[:50]}'")
        self.pending = None
        self.state = WorkflowState.CANCELLED
        return WorkflowOutcome(
            action="cancelled",
            state=self.state,
            message="Expense cancelled. Feel free to try again!",
        )

    def _commit(self, expense: NewExpense) -> WorkflowOutcome:
        try:
            record = self.store.add(expense)
        except OSError as e:
            logger.error(f"Failed to save expense: {e}")
            return WorkflowOutcome(
                action="failed",
                state=self.state,
                message=f"Failed to save expense: {e}",
                pending=self.pending,
                error=str(e),
            )

        self.pending = None
        self.state = WorkflowState.COMMITTED
        return WorkflowOutcome(
            action="committed",
            state=self.state,
            message=f'Saved! {format_vnd(record.amount)} - {record.category_name}\n"{record.description}"',
            record=record,
        )
