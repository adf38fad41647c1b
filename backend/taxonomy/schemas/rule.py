"""Engagement rule schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class RuleCreate(BaseModel):
    name: str
    pattern: str
    match_type: str = "contains"  # contains, exact, starts_with
    response: str | None = None
    priority: int = 0
    category_id: UUID | None = None


class RuleResponse(BaseModel):
    id: UUID
    name: str
    pattern: str
    match_type: str
    response: str | None
    priority: int
    is_active: bool
    category_id: UUID | None
    category_name: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
