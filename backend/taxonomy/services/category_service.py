"""Category management service.

Orchestrates the store, the tree engine and the safe-delete engine. Each
mutation validates everything before writing and only flushes; the session
owner commits (see `taxonomy.core.database.get_db`).
"""

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.config import settings
from taxonomy.core.exceptions import DuplicateSlugError, NotFoundError, ValidationError
from taxonomy.models.category import Category
from taxonomy.schemas.category import CategoryCreate, CategoryUpdate
from taxonomy.services.category_store import CategoryStore
from taxonomy.services.safe_delete import DeletePolicy, DeleteResult, SafeDeleteEngine
from taxonomy.services.tree_engine import TreeInvariantEngine

logger = structlog.get_logger()

# Columns that cannot be set back to NULL through an update
_REQUIRED_FIELDS = {"slug", "name", "sort_order", "is_active"}


class CategoryService:
    def __init__(self, db: AsyncSession, max_depth: int | None = None):
        self.db = db
        self.engine = TreeInvariantEngine(db, max_depth=max_depth)
        self.store = self.engine.store
        self.deleter = SafeDeleteEngine(db, self.engine)

    # ── Reads ──────────────────────────────────────────

    async def get_category(self, category_id: uuid.UUID) -> Category:
        category = await self.store.find_by_id(category_id)
        if not category:
            raise NotFoundError("Category")
        return category

    async def get_category_tree(self, include_inactive: bool = False) -> list[dict]:
        """Return the live forest as nested dicts, children in display order."""
        flat = await self.store.get_full_tree(include_inactive)
        nodes = {node["id"]: node for node in await self.serialize(flat)}

        tree = []
        for category in flat:
            node = nodes[category.id]
            node["children"] = []
            if category.parent_id in nodes:
                nodes[category.parent_id]["children"].append(node)
            else:
                tree.append(node)
        return tree

    async def search(self, term: str, limit: int | None = None) -> list[Category]:
        term = term.strip()
        if not term:
            return []
        return await self.store.search(term, limit or settings.category_search_limit)

    async def get_stats(self, top_limit: int | None = None) -> dict:
        stats = await self.store.get_stats(self.engine.max_depth)
        top = await self.store.get_top_categories(top_limit or settings.category_top_limit)
        parents = {
            p.id: p
            for p in await self.store.find_by_ids(
                [c.parent_id for c, _ in top if c.parent_id is not None]
            )
        }
        stats["top_categories"] = [
            {
                "id": category.id,
                "slug": category.slug,
                "name": category.name,
                "depth": category.depth,
                "parent_name": parents[category.parent_id].name
                if category.parent_id in parents
                else None,
                "rule_count": rule_count,
            }
            for category, rule_count in top
        ]
        return stats

    async def serialize(self, categories: list[Category]) -> list[dict]:
        """Categories as response dicts with rule/child counts and parent info."""
        counts = await self.store.get_counts([c.id for c in categories])
        parent_ids = {c.parent_id for c in categories if c.parent_id is not None}
        parents = {p.id: p for p in await self.store.find_by_ids(list(parent_ids))}

        serialized = []
        for category in categories:
            parent = parents.get(category.parent_id)
            serialized.append({
                "id": category.id,
                "slug": category.slug,
                "name": category.name,
                "description": category.description,
                "parent_id": category.parent_id,
                "depth": category.depth,
                "path": category.path,
                "sort_order": category.sort_order,
                "icon": category.icon,
                "color": category.color,
                "is_active": category.is_active,
                "is_deleted": category.is_deleted,
                "deleted_at": category.deleted_at,
                "created_at": category.created_at,
                "updated_at": category.updated_at,
                "rule_count": counts[category.id]["rule_count"],
                "child_count": counts[category.id]["child_count"],
                "parent_name": parent.name if parent else None,
                "parent_slug": parent.slug if parent else None,
            })
        return serialized

    # ── Mutations ──────────────────────────────────────

    async def create_category(
        self, data: CategoryCreate, actor_id: uuid.UUID | None = None
    ) -> Category:
        """Create a category; depth and path are derived from the parent."""
        category_id = uuid.uuid4()
        placement = await self.engine.placement_for(category_id, data.parent_id)
        await self.engine.ensure_slug_available(data.slug, placement.parent_id)

        category = Category(
            id=category_id,
            slug=data.slug,
            name=data.name,
            description=data.description,
            parent_id=placement.parent_id,
            depth=placement.depth,
            path=placement.path,
            sort_order=data.sort_order,
            icon=data.icon,
            color=data.color or settings.category_default_color,
            is_active=data.is_active,
            is_deleted=False,
            created_by=actor_id,
            updated_by=actor_id,
        )
        self.db.add(category)
        await self._flush_slug(category.slug)

        logger.info(
            "category_created",
            category_id=str(category.id),
            slug=category.slug,
            parent_id=str(category.parent_id) if category.parent_id else None,
            depth=category.depth,
        )
        return category

    async def update_category(
        self,
        category_id: uuid.UUID,
        data: CategoryUpdate,
        actor_id: uuid.UUID | None = None,
    ) -> Category:
        """Update metadata and, when `parent_id` changes, move the subtree."""
        category = await self.store.find_by_id(category_id, lock=True)
        if not category:
            raise NotFoundError("Category")

        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_FIELDS
        }
        parent_id = update_data.pop("parent_id", category.parent_id)

        plan = None
        if parent_id != category.parent_id:
            plan = await self.engine.plan_move(category, parent_id)

        slug = update_data.get("slug", category.slug)
        if plan is not None or slug != category.slug:
            await self.engine.ensure_slug_available(slug, parent_id, exclude_id=category.id)

        for key, value in update_data.items():
            setattr(category, key, value)
        if plan is not None:
            self.engine.apply_move(plan)
        category.updated_by = actor_id
        await self._flush_slug(category.slug)

        logger.info(
            "category_updated",
            category_id=str(category.id),
            updates=sorted(update_data) + (["parent_id"] if plan is not None else []),
        )
        return category

    async def safe_delete(
        self,
        category_id: uuid.UUID,
        policy: DeletePolicy | str | None = None,
        actor_id: uuid.UUID | None = None,
    ) -> DeleteResult:
        try:
            policy = DeletePolicy(policy or settings.category_default_delete_policy)
        except ValueError:
            raise ValidationError(
                "Invalid deletion mode. Use: reassign, cascade, or block"
            ) from None
        return await self.deleter.delete(category_id, policy, actor_id)

    async def restore(
        self, category_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> Category:
        """Bring back one soft-deleted category.

        Only the named node is restored: descendants removed by a cascade stay
        deleted and rules detached at deletion time stay where they went.
        """
        category = await self.store.find_by_id(category_id, include_deleted=True, lock=True)
        if not category or not category.is_deleted:
            raise NotFoundError("Deleted category")

        plan = await self.engine.plan_restore(category)
        category.clear_deleted()
        self.engine.apply_move(plan)
        category.updated_by = actor_id
        await self._flush_slug(category.slug)

        logger.info(
            "category_restored",
            category_id=str(category.id),
            parent_id=str(category.parent_id) if category.parent_id else None,
        )
        return category

    async def reorder(
        self, parent_id: uuid.UUID | None, ordered_ids: list[uuid.UUID]
    ) -> bool:
        """Assign sort_order 0..n-1 following `ordered_ids`."""
        positions = {category_id: index for index, category_id in enumerate(ordered_ids)}
        for category in await self.store.find_by_ids(list(positions)):
            category.sort_order = positions[category.id]
        await self.db.flush()

        logger.info(
            "categories_reordered",
            parent_id=str(parent_id) if parent_id else None,
            count=len(ordered_ids),
        )
        return True

    async def _flush_slug(self, slug: str) -> None:
        """Flush, reporting a lost race on the sibling slug index as a duplicate."""
        try:
            await self.db.flush()
        except IntegrityError as exc:
            if "slug" not in str(exc.orig):
                raise
            raise DuplicateSlugError(slug) from None
