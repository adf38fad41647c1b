"""Update, restore, reorder and tree building."""

import uuid

import pytest

from taxonomy.core.exceptions import DuplicateSlugError, NotFoundError
from taxonomy.schemas.category import CategoryUpdate
from tests.treekit import assert_tree_invariants, rule_category_id


@pytest.mark.asyncio
async def test_create_applies_defaults(make_category):
    category = await make_category("greeters")
    assert category.color == "#9a9a9a"
    assert category.is_active is True
    assert category.is_deleted is False
    assert category.sort_order == 0
    assert category.created_at is not None


@pytest.mark.asyncio
async def test_update_metadata_without_moving(service, make_category):
    root = await make_category("root")
    node = await make_category("node", root)
    path = node.path
    actor = uuid.uuid4()

    await service.update_category(
        node.id,
        CategoryUpdate(name="Renamed", slug="renamed", color="#112233", is_active=False),
        actor,
    )

    assert (node.name, node.slug, node.color) == ("Renamed", "renamed", "#112233")
    assert node.is_active is False
    assert node.path == path
    assert node.updated_by == actor


@pytest.mark.asyncio
async def test_update_ignores_nulls_for_required_fields(service, make_category):
    node = await make_category("node", name="Node")
    await service.update_category(node.id, CategoryUpdate(name=None, description=None))
    assert node.name == "Node"
    assert node.description is None


@pytest.mark.asyncio
async def test_update_slug_collision(service, make_category):
    await make_category("taken")
    node = await make_category("free")
    with pytest.raises(DuplicateSlugError):
        await service.update_category(node.id, CategoryUpdate(slug="taken"))
    assert node.slug == "free"


@pytest.mark.asyncio
async def test_update_missing_category(service):
    with pytest.raises(NotFoundError):
        await service.update_category(uuid.uuid4(), CategoryUpdate(name="x"))


@pytest.mark.asyncio
async def test_restore_brings_back_only_the_named_node(db, service, make_category, make_rule):
    target = await make_category("target")
    child = await make_category("child", target)
    rule = await make_rule(target)
    await service.safe_delete(target.id, "cascade")

    restored = await service.restore(target.id, uuid.uuid4())

    assert restored.id == target.id
    assert restored.is_deleted is False
    assert restored.deleted_at is None
    assert restored.deleted_by is None
    assert child.is_deleted is True
    assert await rule_category_id(db, rule) is None
    await assert_tree_invariants(db)


@pytest.mark.asyncio
async def test_restore_under_deleted_parent_returns_as_root(db, service, make_category):
    parent = await make_category("parent")
    child = await make_category("child", parent)
    await service.safe_delete(parent.id, "cascade")

    await service.restore(child.id)

    assert child.parent_id is None
    assert (child.depth, child.path) == (0, f"/{child.id}")
    await assert_tree_invariants(db)


@pytest.mark.asyncio
async def test_restore_under_live_parent_keeps_its_place(db, service, make_category):
    parent = await make_category("parent")
    child = await make_category("child", parent)
    await service.safe_delete(child.id, "block")

    await service.restore(child.id)

    assert child.parent_id == parent.id
    assert child.path == f"/{parent.id}/{child.id}"
    await assert_tree_invariants(db)


@pytest.mark.asyncio
async def test_restore_live_or_missing_category(service, make_category):
    node = await make_category("node")
    with pytest.raises(NotFoundError):
        await service.restore(node.id)
    with pytest.raises(NotFoundError):
        await service.restore(uuid.uuid4())


@pytest.mark.asyncio
async def test_restore_when_slug_was_taken(service, make_category):
    first = await make_category("slot")
    await service.safe_delete(first.id, "block")
    await make_category("slot")

    with pytest.raises(DuplicateSlugError):
        await service.restore(first.id)
    assert first.is_deleted is True


@pytest.mark.asyncio
async def test_failed_block_leaves_nothing_to_restore(service, make_category):
    parent = await make_category("parent")
    await make_category("child", parent)

    result = await service.safe_delete(parent.id, "block")

    assert result.success is False
    with pytest.raises(NotFoundError):
        await service.restore(parent.id)


@pytest.mark.asyncio
async def test_reorder_assigns_sequential_positions(service, make_category):
    root = await make_category("root")
    a = await make_category("a", root, sort_order=5)
    b = await make_category("b", root, sort_order=5)
    c = await make_category("c", root, sort_order=5)

    assert await service.reorder(root.id, [c.id, a.id, b.id]) is True

    assert (c.sort_order, a.sort_order, b.sort_order) == (0, 1, 2)
    assert [x.id for x in await service.store.find_children(root.id)] == [c.id, a.id, b.id]


@pytest.mark.asyncio
async def test_category_tree_is_nested(service, make_category, make_rule):
    root = await make_category("root", sort_order=0)
    other = await make_category("other", sort_order=1)
    child = await make_category("child", root)
    await make_category("grandchild", child)
    await make_rule(child)

    tree = await service.get_category_tree()

    assert [node["id"] for node in tree] == [root.id, other.id]
    assert tree[0]["children"][0]["id"] == child.id
    assert tree[0]["children"][0]["rule_count"] == 1
    assert tree[0]["children"][0]["children"][0]["slug"] == "grandchild"
    assert tree[1]["children"] == []
