"""
Pydantic schemas for expense categories.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(max_length=100)
    description: str = Field(default="", max_length=500)
    icon: str = Field(default="", max_length=50)
    color: str = Field(default="", max_length=20)


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    icon: str
    color: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
