import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from expense_extractor.api.routes import expenses, extract
from expense_extractor.core import settings
from expense_extractor.domain.categories import DEFAULT_MATCHER
from expense_extractor.logger import get_logger, setup_logging
from expense_extractor.manager import ExtractionOrchestrator
from expense_extractor.services.confirmation import ConfirmationWorkflow
from expense_extractor.services.storage import JsonExpenseStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        config = settings.get_ai_config()
        orchestrator = ExtractionOrchestrator.from_config(config, matcher=DEFAULT_MATCHER)
        store = JsonExpenseStore(data_path=os.path.join(settings.DATA_DIR, "expenses.json"))
        workflow = ConfirmationWorkflow(store=store, registry=DEFAULT_MATCHER.registry)

        app.state.registry = DEFAULT_MATCHER.registry
        app.state.orchestrator = orchestrator
        app.state.store = store
        app.state.workflow = workflow

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Expense Extractor", lifespan=lifespan)

    app.include_router(extract.router)
    app.include_router(expenses.router)

    return app


app = create_app()
