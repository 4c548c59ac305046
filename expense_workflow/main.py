"""
Expense Workflow: FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI

from expense_workflow.config import get_settings
from expense_workflow.api.health import router as health_router
from expense_workflow.api.expenses import router as expenses_router
from expense_workflow.api.budgets import router as budgets_router
from expense_workflow.api.categories import router as categories_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Expense request approval workflow with audit trail and budgets",
    debug=settings.DEBUG,
)

# Register routers
app.include_router(health_router)
app.include_router(expenses_router)
app.include_router(budgets_router)
app.include_router(categories_router)
