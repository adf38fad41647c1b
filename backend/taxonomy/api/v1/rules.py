"""Engagement rule API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.api.deps import get_db
from taxonomy.schemas.rule import RuleCreate, RuleResponse
from taxonomy.services.rule_service import RuleService

router = APIRouter()


@router.get("", response_model=list[RuleResponse])
async def list_rules(
    category_id: UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List rules, optionally filtered by category."""
    service = RuleService(db)
    return await service.list_rules(category_id)


@router.post("", response_model=RuleResponse, status_code=201)
async def create_rule(
    data: RuleCreate,
    db: AsyncSession = Depends(get_db),
):
    """File a new rule, optionally under a category."""
    service = RuleService(db)
    return await service.create_rule(data)
