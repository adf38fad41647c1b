"""Category API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy.api.deps import get_actor_id, get_db
from taxonomy.schemas.category import (
    CategoryCreate,
    CategoryDeleteResult,
    CategoryReorder,
    CategoryResponse,
    CategoryStats,
    CategoryUpdate,
)
from taxonomy.services.category_service import CategoryService
from taxonomy.services.safe_delete import DeletePolicy

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def get_category_tree(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Full category tree, nested."""
    service = CategoryService(db)
    return await service.get_category_tree(include_inactive)


@router.get("/roots", response_model=list[CategoryResponse])
async def list_roots(
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    return await service.serialize(await service.store.find_roots(include_inactive))


@router.get("/search", response_model=list[CategoryResponse])
async def search_categories(
    q: str = "",
    limit: int | None = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Search categories by name, description or slug."""
    service = CategoryService(db)
    return await service.serialize(await service.search(q, limit))


@router.get("/stats", response_model=CategoryStats)
async def get_category_stats(db: AsyncSession = Depends(get_db)):
    service = CategoryService(db)
    return await service.get_stats()


@router.post("/reorder")
async def reorder_categories(
    data: CategoryReorder,
    db: AsyncSession = Depends(get_db),
):
    """Reorder categories within a parent."""
    service = CategoryService(db)
    await service.reorder(data.parent_id, data.ordered_ids)
    return {"success": True, "message": "Categories reordered successfully"}


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    service = CategoryService(db)
    category = await service.get_category(category_id)
    return (await service.serialize([category]))[0]


@router.get("/{category_id}/children", response_model=list[CategoryResponse])
async def list_children(
    category_id: UUID,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Direct children, for lazy-loading the tree."""
    service = CategoryService(db)
    return await service.serialize(await service.store.find_children(category_id, include_inactive))


@router.get("/{category_id}/ancestors", response_model=list[CategoryResponse])
async def list_ancestors(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """Breadcrumb from the root down to the parent."""
    service = CategoryService(db)
    return await service.serialize(await service.store.get_ancestors(category_id))


@router.get("/{category_id}/descendants", response_model=list[CategoryResponse])
async def list_descendants(category_id: UUID, db: AsyncSession = Depends(get_db)):
    service = CategoryService(db)
    return await service.serialize(await service.store.get_descendants(category_id))


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    actor_id: UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    category = await service.create_category(data, actor_id)
    return (await service.serialize([category]))[0]


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    actor_id: UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Update a category; a new parent_id moves its whole subtree."""
    service = CategoryService(db)
    category = await service.update_category(category_id, data, actor_id)
    return (await service.serialize([category]))[0]


@router.delete("/{category_id}", response_model=CategoryDeleteResult)
async def delete_category(
    category_id: UUID,
    mode: DeletePolicy | None = None,
    actor_id: UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a category with the given mode (reassign, cascade or block)."""
    service = CategoryService(db)
    result = await service.safe_delete(category_id, mode, actor_id)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": result.message,
                "affected_rules": result.affected_rules,
                "affected_children": result.affected_children,
            },
        )
    return result


@router.post("/{category_id}/restore", response_model=CategoryResponse)
async def restore_category(
    category_id: UUID,
    actor_id: UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    service = CategoryService(db)
    category = await service.restore(category_id, actor_id)
    return (await service.serialize([category]))[0]
