"""Read queries over the category tree.

Every query filters out soft-deleted rows unless asked otherwise. Lookups that
find nothing return ``None`` or an empty list; nothing here raises on absence.
"""

import uuid
from collections import defaultdict

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.models.category import Category
from taxonomy.models.rule import Rule

_live = Category.is_deleted.is_(False)


class CategoryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Point lookups ──────────────────────────────────

    async def find_by_id(
        self,
        category_id: uuid.UUID,
        include_deleted: bool = False,
        lock: bool = False,
    ) -> Category | None:
        query = select(Category).where(Category.id == category_id)
        if not include_deleted:
            query = query.where(_live)
        if lock:
            # Locked reads refresh objects already in the session
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_ids(self, category_ids: list[uuid.UUID]) -> list[Category]:
        if not category_ids:
            return []
        result = await self.db.execute(
            select(Category).where(Category.id.in_(category_ids), _live)
        )
        return list(result.scalars().all())

    async def find_by_slug(
        self, slug: str, parent_id: uuid.UUID | None = None
    ) -> Category | None:
        """Find a live category by slug within one sibling scope."""
        query = select(Category).where(Category.slug == slug, _live)
        if parent_id is None:
            query = query.where(Category.parent_id.is_(None))
        else:
            query = query.where(Category.parent_id == parent_id)
        result = await self.db.execute(query)
        return result.scalars().first()

    # ── Listings ───────────────────────────────────────

    async def find_roots(self, include_inactive: bool = False) -> list[Category]:
        query = select(Category).where(Category.parent_id.is_(None), _live)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        result = await self.db.execute(query.order_by(Category.sort_order, Category.name))
        return list(result.scalars().all())

    async def find_children(
        self, parent_id: uuid.UUID, include_inactive: bool = False
    ) -> list[Category]:
        query = select(Category).where(Category.parent_id == parent_id, _live)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        result = await self.db.execute(query.order_by(Category.sort_order, Category.name))
        return list(result.scalars().all())

    async def get_full_tree(self, include_inactive: bool = False) -> list[Category]:
        """Return the whole forest as a flat list in display order.

        Siblings are ordered by (sort_order, name) and each subtree is
        emitted depth-first right after its root, so parents always precede
        their children. A node hidden by the inactive filter hides its
        subtree too.
        """
        query = select(Category).where(_live)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        # Sibling order comes from the database collation, as in find_children
        result = await self.db.execute(query.order_by(Category.sort_order, Category.name))

        by_parent: dict[uuid.UUID | None, list[Category]] = defaultdict(list)
        for category in result.scalars().all():
            by_parent[category.parent_id].append(category)

        ordered: list[Category] = []

        def walk(parent_id: uuid.UUID | None) -> None:
            for category in by_parent.get(parent_id, []):
                ordered.append(category)
                walk(category.id)

        walk(None)
        return ordered

    # ── Traversal ──────────────────────────────────────

    async def get_ancestors(self, category_id: uuid.UUID) -> list[Category]:
        """Ancestors from the root down to the parent, excluding the node."""
        category = await self.find_by_id(category_id)
        if category is None:
            return []
        chain = [uuid.UUID(part) for part in category.ancestor_ids]
        found = {c.id: c for c in await self.find_by_ids(chain)}
        return [found[ancestor_id] for ancestor_id in chain if ancestor_id in found]

    async def get_descendants(self, category_id: uuid.UUID, lock: bool = False) -> list[Category]:
        category = await self.find_by_id(category_id, lock=lock)
        if category is None:
            return []
        return await self.descendants_of(category, lock=lock)

    async def descendants_of(self, category: Category, lock: bool = False) -> list[Category]:
        """Live subtree below an already-loaded node, matched by path prefix."""
        query = (
            select(Category)
            .where(Category.path.startswith(f"{category.path}/"), _live)
            .order_by(Category.depth, Category.sort_order, Category.name)
        )
        if lock:
            # Locked reads refresh objects already in the session
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def search(self, term: str, limit: int = 20) -> list[Category]:
        """Substring search over name, description and slug.

        Names starting with the term rank first, then shallower categories.
        """
        name_prefix = Category.name.istartswith(term, autoescape=True)
        result = await self.db.execute(
            select(Category)
            .where(
                _live,
                Category.name.icontains(term, autoescape=True)
                | Category.description.icontains(term, autoescape=True)
                | Category.slug.icontains(term, autoescape=True),
            )
            .order_by(
                case((name_prefix, 0), else_=1),
                Category.depth,
                Category.sort_order,
                Category.name,
            )
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Counts ─────────────────────────────────────────

    async def count_children(self, category_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Category).where(Category.parent_id == category_id, _live)
        )
        return result.scalar_one()

    async def count_rules(self, category_ids: list[uuid.UUID]) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Rule).where(Rule.category_id.in_(category_ids))
        )
        return result.scalar_one()

    async def get_counts(self, category_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict]:
        """Return {id: {"rule_count", "child_count"}} for the given categories."""
        counts = {cid: {"rule_count": 0, "child_count": 0} for cid in category_ids}
        if not category_ids:
            return counts

        rules = await self.db.execute(
            select(Rule.category_id, func.count())
            .where(Rule.category_id.in_(category_ids))
            .group_by(Rule.category_id)
        )
        for category_id, count in rules.all():
            counts[category_id]["rule_count"] = count

        children = await self.db.execute(
            select(Category.parent_id, func.count())
            .where(Category.parent_id.in_(category_ids), _live)
            .group_by(Category.parent_id)
        )
        for parent_id, count in children.all():
            counts[parent_id]["child_count"] = count
        return counts

    # ── Statistics ─────────────────────────────────────

    async def get_stats(self, max_depth: int) -> dict:
        def live_where(condition):
            return func.coalesce(func.sum(case((_live & condition, 1), else_=0)), 0)

        columns = [
            func.coalesce(func.sum(case((_live, 1), else_=0)), 0).label("total_categories"),
            live_where(Category.depth == 0).label("root_count"),
        ]
        columns += [
            live_where(Category.depth == depth).label(f"level{depth + 1}_count")
            for depth in range(1, max_depth + 1)
        ]
        columns += [
            live_where(Category.is_active.is_(False)).label("inactive_count"),
            func.coalesce(func.sum(case((Category.is_deleted.is_(True), 1), else_=0)), 0).label(
                "deleted_count"
            ),
            func.max(case((_live, Category.depth))).label("max_depth"),
        ]
        row = (await self.db.execute(select(*columns))).one()

        rules_row = (
            await self.db.execute(
                select(
                    func.count(Rule.category_id).label("categorized_rules"),
                    func.coalesce(func.sum(case((Rule.category_id.is_(None), 1), else_=0)), 0).label(
                        "uncategorized_rules"
                    ),
                )
            )
        ).one()

        return {**row._asdict(), **rules_row._asdict()}

    async def get_top_categories(self, limit: int = 10) -> list[tuple[Category, int]]:
        """Live categories with the most rules attached."""
        rule_count = func.count(Rule.id).label("rule_count")
        result = await self.db.execute(
            select(Category, rule_count)
            .outerjoin(Rule, Rule.category_id == Category.id)
            .where(_live)
            .group_by(Category.id)
            .order_by(rule_count.desc(), Category.name)
            .limit(limit)
        )
        return [(category, count) for category, count in result.all()]
