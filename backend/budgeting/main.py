"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from budgeting.config import settings
from budgeting.api.router import api_router
from budgeting.database import init_db
from budgeting.logging_config import configure_logging
from budgeting.services.recurring_processor import build_income_processor, build_expense_processor

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run the recurring processors for the life of the app."""
    if settings.auto_create_tables:
        init_db()

    processors = []
    if settings.scheduler_enabled:
        processors = [build_income_processor(), build_expense_processor()]
        for processor in processors:
            processor.start(run_immediately=settings.scheduler_run_on_startup)
    else:
        logger.info("Recurring processors disabled")
    app.state.recurring_processors = processors

    try:
        yield
    finally:
        for processor in processors:
            processor.stop()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Personal budgeting ledger with recurring incomes and expenses",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/api/v1/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "app_name": settings.app_name,
        "scheduler_running": any(p.is_running for p in getattr(app.state, "recurring_processors", []))
    }
