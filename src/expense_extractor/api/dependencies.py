from fastapi import HTTPException, Request

from expense_extractor.domain.categories import CategoryRegistry
from expense_extractor.manager import ExtractionOrchestrator
from expense_extractor.services.confirmation import ConfirmationWorkflow
from expense_extractor.services.storage import JsonExpenseStore


def get_orchestrator(request: Request) -> ExtractionOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if not orchestrator:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return orchestrator


def get_workflow(request: Request) -> ConfirmationWorkflow:
    workflow = getattr(request.app.state, "workflow", None)
    if not workflow:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return workflow


def get_store(request: Request) -> JsonExpenseStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return store


def get_registry(request: Request) -> CategoryRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return registry
