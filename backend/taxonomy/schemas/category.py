"""Category schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    slug: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    parent_id: UUID | None = None
    sort_order: int = 0
    icon: str | None = None
    color: str | None = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    slug: str | None = Field(default=None, min_length=1, max_length=100)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    parent_id: UUID | None = None  # explicit null moves the category to the root
    sort_order: int | None = None
    icon: str | None = None
    color: str | None = None
    is_active: bool | None = None


class CategoryResponse(BaseModel):
    id: UUID
    slug: str
    name: str
    description: str | None
    parent_id: UUID | None
    depth: int
    path: str
    sort_order: int
    icon: str | None
    color: str | None
    is_active: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    rule_count: int | None = None
    child_count: int | None = None
    parent_name: str | None = None
    parent_slug: str | None = None
    children: list["CategoryResponse"] | None = None

    model_config = {"from_attributes": True}


class CategoryReorder(BaseModel):
    parent_id: UUID | None = None
    ordered_ids: list[UUID]


class CategoryDeleteResult(BaseModel):
    success: bool
    message: str
    affected_rules: int
    affected_children: int

    model_config = {"from_attributes": True}


class TopCategory(BaseModel):
    id: UUID
    slug: str
    name: str
    depth: int
    parent_name: str | None = None
    rule_count: int


class CategoryStats(BaseModel):
    total_categories: int
    root_count: int
    level2_count: int = 0
    level3_count: int = 0
    level4_count: int = 0
    level5_count: int = 0
    inactive_count: int
    deleted_count: int
    max_depth: int | None
    categorized_rules: int
    uncategorized_rules: int
    top_categories: list[TopCategory] = []
