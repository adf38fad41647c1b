"""Engagement rule service.

Only the slice of rule management the taxonomy needs: filing rules under a
category and listing them. Matching and evaluation live in the rule engine.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.core.exceptions import NotFoundError
from taxonomy.models.category import Category
from taxonomy.models.rule import Rule
from taxonomy.schemas.rule import RuleCreate

logger = structlog.get_logger()


class RuleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_rules(self, category_id: uuid.UUID | None = None) -> list[dict]:
        """List rules, optionally only those filed under one category."""
        query = select(Rule, Category.name).outerjoin(Category, Rule.category_id == Category.id)
        if category_id is not None:
            query = query.where(Rule.category_id == category_id)
        result = await self.db.execute(
            query.order_by(Rule.priority.desc(), Rule.created_at.desc())
        )
        return [self._to_dict(rule, category_name) for rule, category_name in result.all()]

    async def create_rule(self, data: RuleCreate) -> dict:
        """Create a rule; its category, if any, must be live."""
        category = None
        if data.category_id is not None:
            category = await self.db.get(Category, data.category_id)
            if category is None or category.is_deleted:
                raise NotFoundError("Category")

        rule = Rule(
            name=data.name,
            pattern=data.pattern,
            match_type=data.match_type,
            response=data.response,
            priority=data.priority,
            is_active=True,
            category_id=data.category_id,
        )
        self.db.add(rule)
        await self.db.flush()

        logger.info(
            "rule_created",
            rule_id=str(rule.id),
            category_id=str(rule.category_id) if rule.category_id else None,
        )
        return self._to_dict(rule, category.name if category else None)

    @staticmethod
    def _to_dict(rule: Rule, category_name: str | None) -> dict:
        return {
            "id": rule.id,
            "name": rule.name,
            "pattern": rule.pattern,
            "match_type": rule.match_type,
            "response": rule.response,
            "priority": rule.priority,
            "is_active": rule.is_active,
            "category_id": rule.category_id,
            "category_name": category_name,
            "created_at": rule.created_at,
            "updated_at": rule.updated_at,
        }
