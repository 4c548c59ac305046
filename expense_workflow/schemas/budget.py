"""
Pydantic schemas for budgets and budget utilization.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    name: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    amount: Decimal = Field(decimal_places=2)
    start_date: datetime
    end_date: datetime
    category_id: uuid.UUID | None = None


class BudgetUpdate(BaseModel):
    name: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    amount: Decimal = Field(decimal_places=2)
    start_date: datetime
    end_date: datetime


class BudgetResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    amount: Decimal
    start_date: datetime
    end_date: datetime
    user_id: uuid.UUID | None
    category_id: uuid.UUID | None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class BudgetStatus(BaseModel):
    """Spending against a budget, computed on request and never stored."""
    budget_id: uuid.UUID
    budget_name: str
    description: str | None
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    percentage_used: float
    category_name: str | None
    category_icon: str | None
    start_date: datetime
    end_date: datetime
    days_remaining: int
    is_over_budget: bool
    is_active: bool
