"""
Pydantic schemas for expense request operations.

These define the API contract. Business rules (non-empty title,
positive amount, date window) are enforced by the domain model so
that every caller gets them; the schemas only check shape.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, Field

from expense_workflow.models.enums import ExpenseStatus, UserRole


# --- Request Schemas ---

class ExpenseCreate(BaseModel):
    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=1000)
    amount: Decimal = Field(decimal_places=2)
    expense_date: datetime
    category_id: uuid.UUID | None = None


class ExpenseUpdate(BaseModel):
    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=1000)
    amount: Decimal = Field(decimal_places=2)
    category_id: uuid.UUID | None = None


class ExpenseReject(BaseModel):
    reason: str = Field(default="", max_length=500)


class AttachmentAdd(BaseModel):
    attachment_url: str = Field(max_length=2000)


class CommentCreate(BaseModel):
    text: str


class ExpenseQuery(BaseModel):
    """Filter, sort, and paging options for expense listings."""
    search: str | None = None
    status: ExpenseStatus | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    sort_by: str | None = None
    sort_dir: str | None = None
    page: int = 1
    page_size: int = 12


# --- Response Schemas ---

class ExpenseResponse(BaseModel):
    id: uuid.UUID
    creator_id: uuid.UUID
    creator_name: str | None = None
    creator_role: UserRole
    category_id: uuid.UUID | None
    title: str
    description: str
    amount: Decimal
    expense_date: datetime
    status: ExpenseStatus
    created_at: datetime
    updated_at: datetime | None
    submitted_at: datetime | None
    processed_at: datetime | None
    processed_by: uuid.UUID | None
    rejection_reason: str | None
    attachment_urls: list[str]

    model_config = {"from_attributes": True}


class PagedExpenses(BaseModel):
    items: list[ExpenseResponse]
    total_count: int
    page: int
    page_size: int


class AuditLogResponse(BaseModel):
    id: uuid.UUID = Field(validation_alias=AliasChoices("external_id", "id"))
    expense_request_id: uuid.UUID
    user_id: uuid.UUID
    action: str
    previous_status: ExpenseStatus | None
    new_status: ExpenseStatus | None
    details: str | None
    timestamp: datetime

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: uuid.UUID
    expense_request_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}
