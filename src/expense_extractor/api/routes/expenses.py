import asyncio
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from expense_extractor.api.dependencies import get_orchestrator, get_store, get_workflow
from expense_extractor.api.schemas import ConfirmRequest, ExtractRequest
from expense_extractor.logger import get_logger
from expense_extractor.manager import ExtractionOrchestrator
from expense_extractor.models import ExpenseRecord, ExtractionResult, PendingExpense
from expense_extractor.services.confirmation import ConfirmationWorkflow, WorkflowOutcome
from expense_extractor.services.storage import JsonExpenseStore

logger = get_logger(__name__)

router = APIRouter(prefix="/expenses")


def extract_and_handle(
    orchestrator: ExtractionOrchestrator,
    workflow: ConfirmationWorkflow,
    text: str,
) -> tuple[ExtractionResult, WorkflowOutcome]:
    result = orchestrator.extract(text)
    return result, workflow.handle(result)


@router.post("/messages", response_model=WorkflowOutcome)
async def submit_message(
    req: ExtractRequest,
    orchestrator: Annotated[ExtractionOrchestrator, Depends(get_orchestrator)],
    workflow: Annotated[ConfirmationWorkflow, Depends(get_workflow)],
) -> WorkflowOutcome:
    # Both the AI call and the store write block
    result, outcome = await asyncio.to_thread(extract_and_handle, orchestrator, workflow, req.text)
    logger.info(f"[MESSAGE] {outcome.action}: source={result.source}")
    return outcome


@router.get("/pending", response_model=PendingExpense | None)
async def get_pending(
    workflow: Annotated[ConfirmationWorkflow, Depends(get_workflow)],
) -> PendingExpense | None:
    return workflow.pending


@router.post("/pending/confirm", response_model=WorkflowOutcome)
async def confirm_pending(
    req: ConfirmRequest,
    workflow: Annotated[ConfirmationWorkflow, Depends(get_workflow)],
) -> WorkflowOutcome:
    if workflow.pending is None:
        raise HTTPException(status_code=404, detail="No pending expense")
    outcome = await asyncio.to_thread(workflow.confirm, req.category_id)
    if outcome is None:
        raise HTTPException(status_code=400, detail="Select a valid category first")
    return outcome


@router.post("/pending/cancel", response_model=WorkflowOutcome)
async def cancel_pending(
    workflow: Annotated[ConfirmationWorkflow, Depends(get_workflow)],
) -> WorkflowOutcome:
    outcome = workflow.cancel()
    if outcome is None:
        raise HTTPException(status_code=404, detail="No pending expense")
    return outcome


@router.get("", response_model=list[ExpenseRecord])
async def list_expenses(
    store: Annotated[JsonExpenseStore, Depends(get_store)],
    start: date | None = None,
    end: date | None = None,
) -> list[ExpenseRecord]:
    if start is None and end is None:
        return store.all()
    start_value = start.isoformat() if start else date.min.isoformat()
    end_value = end.isoformat() if end else date.max.isoformat()
    return store.list_by_date_range(start_value, end_value)
