"""Helpers that check the tree invariants against the whole database."""

from collections import Counter

from sqlalchemy import select

from taxonomy.models import Category, Rule


async def assert_tree_invariants(db, max_depth: int = 4) -> None:
    categories = (await db.execute(select(Category))).scalars().all()
    live = {c.id: c for c in categories if not c.is_deleted}

    for category in live.values():
        assert 0 <= category.depth <= max_depth, category
        if category.parent_id is None:
            assert category.depth == 0
            assert category.path == f"/{category.id}"
        else:
            parent = live.get(category.parent_id)
            assert parent is not None, f"{category} hangs under a deleted or missing parent"
            assert category.depth == parent.depth + 1
            assert category.path == f"{parent.path}/{category.id}"
        assert str(category.id) not in category.ancestor_ids

    scopes = Counter((c.parent_id, c.slug) for c in live.values())
    assert all(count == 1 for count in scopes.values()), scopes

    rule_categories = (await db.execute(select(Rule.category_id))).scalars().all()
    for category_id in rule_categories:
        assert category_id is None or category_id in live


async def snapshot(db) -> tuple:
    """Every column of every category and rule row, for before/after comparison."""
    categories = await db.execute(select(*Category.__table__.c).order_by(Category.id))
    rules = await db.execute(select(*Rule.__table__.c).order_by(Rule.id))
    return tuple(categories.all()), tuple(rules.all())


async def rule_category_id(db, rule):
    result = await db.execute(select(Rule.category_id).where(Rule.id == rule.id))
    return result.scalar_one()
