"""Soft deletion of categories under an explicit policy.

DELETION POLICY:
- BLOCK:    refuse while the category has live children or attached rules
- REASSIGN: hand children and rules to the category's parent (default)
- CASCADE:  soft-delete the whole subtree and detach its rules

Rules are never deleted and never left pointing at a deleted category: they
either follow the children to the parent or become uncategorized (NULL).
"""

import uuid
from dataclasses import dataclass
from enum import Enum

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.core.exceptions import DuplicateSlugError
from taxonomy.models.rule import Rule
from taxonomy.services.tree_engine import TreeInvariantEngine

logger = structlog.get_logger()


class DeletePolicy(str, Enum):
    BLOCK = "block"
    REASSIGN = "reassign"
    CASCADE = "cascade"


@dataclass
class DeleteResult:
    success: bool
    message: str
    affected_rules: int = 0
    affected_children: int = 0


class SafeDeleteEngine:
    def __init__(self, db: AsyncSession, engine: TreeInvariantEngine | None = None):
        self.db = db
        self.engine = engine or TreeInvariantEngine(db)
        self.store = self.engine.store

    async def delete(
        self,
        category_id: uuid.UUID,
        policy: DeletePolicy = DeletePolicy.REASSIGN,
        actor_id: uuid.UUID | None = None,
    ) -> DeleteResult:
        """Soft-delete a category and settle its children and rules.

        Refusals come back as ``success=False`` with nothing written; the
        child and rule counts are reported either way.
        """
        policy = DeletePolicy(policy)
        category = await self.store.find_by_id(category_id, lock=True)
        if category is None:
            return DeleteResult(success=False, message="Category not found")

        children = await self.store.find_children(category.id, include_inactive=True)
        child_count = len(children)
        rule_count = await self.store.count_rules([category.id])

        if policy is DeletePolicy.BLOCK and (child_count or rule_count):
            logger.info(
                "category_delete_blocked",
                category_id=str(category.id),
                affected_rules=rule_count,
                affected_children=child_count,
            )
            return DeleteResult(
                success=False,
                message=(
                    f"Cannot delete: {child_count} children and {rule_count} rules exist. "
                    "Move them first."
                ),
                affected_rules=rule_count,
                affected_children=child_count,
            )

        if policy is DeletePolicy.REASSIGN:
            # Validate every child's move before writing anything
            plans = [await self.engine.plan_move(child, category.parent_id) for child in children]
            try:
                for child in children:
                    await self.engine.ensure_slug_available(
                        child.slug, category.parent_id, exclude_id=category.id
                    )
            except DuplicateSlugError as exc:
                return DeleteResult(
                    success=False,
                    message=f"Cannot reassign children: {exc.detail}",
                    affected_rules=rule_count,
                    affected_children=child_count,
                )

            # The target leaves its sibling scope first so a child sharing its slug can move up
            category.mark_deleted(actor_id)
            category.updated_by = actor_id
            await self.db.flush()

            for plan in plans:
                self.engine.apply_move(plan)
                plan.category.updated_by = actor_id
            await self._repoint_rules([category.id], category.parent_id)

        else:
            subtree = [category]
            if policy is DeletePolicy.CASCADE:
                subtree += await self.store.descendants_of(category, lock=True)
            for node in subtree:
                node.mark_deleted(actor_id)
                node.updated_by = actor_id
            await self._repoint_rules([node.id for node in subtree], None)

        await self.db.flush()

        logger.info(
            "category_deleted",
            category_id=str(category.id),
            policy=policy.value,
            affected_rules=rule_count,
            affected_children=child_count,
        )
        return DeleteResult(
            success=True,
            message="Category deleted successfully",
            affected_rules=rule_count,
            affected_children=child_count,
        )

    async def _repoint_rules(
        self, category_ids: list[uuid.UUID], target_id: uuid.UUID | None
    ) -> None:
        await self.db.execute(
            update(Rule)
            .where(Rule.category_id.in_(category_ids))
            .values(category_id=target_id)
        )
