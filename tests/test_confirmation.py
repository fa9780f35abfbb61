from unittest.mock import MagicMock

import pytest

from expense_extractor.models import ExpenseRecord, ExtractedExpense, ExtractionResult, NewExpense
from expense_extractor.services.confirmation import (
    RETRY_HINT,
    ConfirmationWorkflow,
    WorkflowState,
    format_vnd,
)


def _result(
    amount: int = 15_000,
    category_id: str = "other",
    category_name: str = "Other",
    confidence: str = "low",
    needs_manual_category: bool = True,
    description: str = "abc 15k",
) -> ExtractionResult:
    return ExtractionResult(
        success=True,
        data=ExtractedExpense(
            amount=amount,
            category_id=category_id,
            category_name=category_name,
            description=description,
            date="2026-01-11",
            confidence=confidence,
        ),
        needs_manual_category=needs_manual_category,
    )


def _stored(expense: NewExpense) -> ExpenseRecord:
    return ExpenseRecord(
        **expense.model_dump(),
        id="exp_test",
        created_at="2026-01-11T00:00:00+00:00",
        updated_at="2026-01-11T00:00:00+00:00",
    )


@pytest.fixture
def store() -> MagicMock:
    mock = MagicMock()
    mock.add.side_effect = _stored
    return mock


@pytest.fixture
def workflow(store: MagicMock) -> ConfirmationWorkflow:
    return ConfirmationWorkflow(store=store)


def test_high_confidence_commits_directly(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    outcome = workflow.handle(
        _result(category_id="books", category_name="Books", confidence="high", needs_manual_category=False)
    )

    assert outcome.action == "committed"
    assert workflow.state == WorkflowState.COMMITTED
    assert workflow.pending is None
    assert outcome.record.category_id == "books"
    assert outcome.message.startswith("Saved! 15.000 VND - Books")
    store.add.assert_called_once()


def test_low_confidence_waits_for_category(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    outcome = workflow.handle(_result())

    assert outcome.action == "pending"
    assert workflow.state == WorkflowState.PENDING_CONFIRMATION
    assert workflow.pending.amount == 15_000
    assert workflow.pending.category_id is None
    assert "15.000 VND" in outcome.message
    store.add.assert_not_called()


def test_manual_flag_keeps_prefilled_category(workflow: ConfirmationWorkflow) -> None:
    workflow.handle(_result(category_id="books", category_name="Books", confidence="medium"))

    assert workflow.state == WorkflowState.PENDING_CONFIRMATION
    assert workflow.pending.category_id == "books"


def test_confirm_commits_once(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result())

    outcome = workflow.confirm("groceries")

    assert outcome.action == "committed"
    assert workflow.state == WorkflowState.COMMITTED
    assert workflow.pending is None
    store.add.assert_called_once()
    saved = store.add.call_args.args[0]
    assert saved.category_id == "groceries"
    assert saved.category_name == "Groceries"
    assert saved.amount == 15_000
    assert saved.description == "abc 15k"


def test_confirm_uses_selected_category(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result())

    assert workflow.select_category("fuel") is True
    assert workflow.select_category("not-a-category") is False
    workflow.confirm()

    assert store.add.call_args.args[0].category_id == "fuel"


def test_confirm_without_category_is_noop(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result())

    assert workflow.confirm() is None
    assert workflow.confirm("not-a-category") is None
    assert workflow.state == WorkflowState.PENDING_CONFIRMATION
    assert workflow.pending is not None
    store.add.assert_not_called()


def test_cancel_discards(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result())

    outcome = workflow.cancel()

    assert outcome.action == "cancelled"
    assert workflow.state == WorkflowState.CANCELLED
    assert workflow.pending is None
    store.add.assert_not_called()


def test_nothing_to_confirm_or_cancel(workflow: ConfirmationWorkflow) -> None:
    assert workflow.confirm("books") is None
    assert workflow.cancel() is None
    assert workflow.state == WorkflowState.IDLE


def test_new_ambiguous_result_replaces_pending(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result(amount=15_000, description="abc 15k"))
    workflow.handle(_result(amount=40_000, description="xyz 40k"))

    assert workflow.pending.amount == 40_000
    workflow.confirm("books")

    store.add.assert_called_once()
    assert store.add.call_args.args[0].amount == 40_000


def test_failed_extraction_leaves_pending(workflow: ConfirmationWorkflow) -> None:
    workflow.handle(_result())

    outcome = workflow.handle(ExtractionResult.failure("amount not found"))

    assert outcome.action == "failed"
    assert outcome.message == RETRY_HINT
    assert outcome.error == "amount not found"
    assert workflow.state == WorkflowState.PENDING_CONFIRMATION
    assert workflow.pending.amount == 15_000


def test_store_error_keeps_pending(workflow: ConfirmationWorkflow, store: MagicMock) -> None:
    workflow.handle(_result())
    store.add.side_effect = OSError("disk full")

    outcome = workflow.confirm("books")

    assert outcome.action == "failed"
    assert "disk full" in outcome.message
    assert workflow.state == WorkflowState.PENDING_CONFIRMATION
    assert workflow.pending is not None


def test_format_vnd() -> None:
    assert format_vnd(2_000_000) == "2.000.000 VND"
    assert format_vnd(500) == "500 VND"
