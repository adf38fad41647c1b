"""Depth and materialized-path maintenance for the category tree.

This is the only place that writes `depth` and `path`. Every structural
mutation goes through two steps: a validating `plan_*` call that reads (and,
for moves, locks) everything it needs, then an `apply_*` call that rewrites
rows in memory so the caller can flush the whole change at once.
"""

import uuid
from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.config import settings
from taxonomy.core.exceptions import (
    CyclicMoveError,
    DuplicateSlugError,
    MaxDepthExceededError,
    ParentNotFoundError,
)
from taxonomy.models.category import Category
from taxonomy.services.category_store import CategoryStore

logger = structlog.get_logger()


@dataclass
class Placement:
    parent_id: uuid.UUID | None
    depth: int
    path: str


@dataclass
class MovePlan:
    category: Category
    placement: Placement
    descendants: list[Category] = field(default_factory=list)


class TreeInvariantEngine:
    def __init__(self, db: AsyncSession, max_depth: int | None = None):
        self.db = db
        self.store = CategoryStore(db)
        self.max_depth = settings.category_max_depth if max_depth is None else max_depth

    # ── Placement ──────────────────────────────────────

    async def placement_for(
        self, category_id: uuid.UUID, parent_id: uuid.UUID | None
    ) -> Placement:
        """Compute depth and path for a node hung under `parent_id`."""
        if parent_id is None:
            return Placement(parent_id=None, depth=0, path=f"/{category_id}")

        # Locked so a concurrent move cannot rewrite the parent path under us
        parent = await self.store.find_by_id(parent_id, lock=True)
        if parent is None:
            raise ParentNotFoundError(parent_id)

        depth = parent.depth + 1
        if depth > self.max_depth:
            raise MaxDepthExceededError(self.max_depth)
        return Placement(parent_id=parent.id, depth=depth, path=f"{parent.path}/{category_id}")

    async def ensure_slug_available(
        self,
        slug: str,
        parent_id: uuid.UUID | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        existing = await self.store.find_by_slug(slug, parent_id)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateSlugError(slug)

    # ── Moves ──────────────────────────────────────────

    async def plan_move(self, category: Category, new_parent_id: uuid.UUID | None) -> MovePlan:
        """Validate re-parenting `category` and return what must be rewritten.

        The subtree and the new parent are read with row locks inside the caller's transaction, so
        the cycle and depth checks hold until the move commits.
        """
        descendants = await self.store.descendants_of(category, lock=True)

        if new_parent_id is not None and (
            new_parent_id == category.id or any(d.id == new_parent_id for d in descendants)
        ):
            raise CyclicMoveError()

        placement = await self.placement_for(category.id, new_parent_id)
        if str(category.id) in placement.path.strip("/").split("/")[:-1]:
            raise CyclicMoveError()

        max_relative = max((d.depth - category.depth for d in descendants), default=0)
        if placement.depth + max_relative > self.max_depth:
            raise MaxDepthExceededError(self.max_depth)

        return MovePlan(category=category, placement=placement, descendants=descendants)

    def apply_move(self, plan: MovePlan) -> None:
        """Rewrite the moving node and its whole subtree in memory."""
        category = plan.category
        old_path = category.path
        depth_delta = plan.placement.depth - category.depth

        category.parent_id = plan.placement.parent_id
        category.depth = plan.placement.depth
        category.path = plan.placement.path

        for descendant in plan.descendants:
            descendant.depth += depth_delta
            descendant.path = plan.placement.path + descendant.path[len(old_path):]

        logger.info(
            "category_subtree_rewritten",
            category_id=str(category.id),
            parent_id=str(category.parent_id) if category.parent_id else None,
            depth_delta=depth_delta,
            subtree_size=len(plan.descendants),
        )

    # ── Restore ────────────────────────────────────────

    async def plan_restore(self, category: Category) -> MovePlan:
        """Place a soft-deleted node back in the live tree.

        The node returns under its recorded parent when that parent is still
        live and has room below it; otherwise it comes back as a root.
        """
        parent = None
        if category.parent_id is not None:
            parent = await self.store.find_by_id(category.parent_id, lock=True)

        if parent is not None and parent.depth + 1 <= self.max_depth:
            placement = Placement(
                parent_id=parent.id, depth=parent.depth + 1, path=f"{parent.path}/{category.id}"
            )
        else:
            placement = Placement(parent_id=None, depth=0, path=f"/{category.id}")

        await self.ensure_slug_available(category.slug, placement.parent_id, exclude_id=category.id)
        # No live node ever sits below a deleted one, so there is no subtree to carry
        return MovePlan(category=category, placement=placement)
