import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from expense_extractor.api.dependencies import get_orchestrator, get_registry
from expense_extractor.api.schemas import CategoryOut, ExtractRequest
from expense_extractor.domain.categories import CategoryRegistry
from expense_extractor.manager import ExtractionOrchestrator
from expense_extractor.models import ExtractionResult

router = APIRouter()


@router.post("/extract", response_model=ExtractionResult)
async def extract_expense(
    req: ExtractRequest,
    orchestrator: Annotated[ExtractionOrchestrator, Depends(get_orchestrator)],
) -> ExtractionResult:
    # The AI call blocks; keep it off the event loop.
    return await asyncio.to_thread(orchestrator.extract, req.text)


@router.get("/categories", response_model=list[CategoryOut])
async def get_categories(
    registry: Annotated[CategoryRegistry, Depends(get_registry)],
) -> list[CategoryOut]:
    return [CategoryOut(id=category.id, name=category.name) for category in registry]
