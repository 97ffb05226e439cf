"""
Menu categories. Listing is public; changes need a staff token.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    ensure_access,
    get_optional_user,
    get_restaurant_or_404,
    require_staff,
    resolve_res_id,
)
from app.database import get_db
from app.models import Category, MenuItem, StaffUser, UserRole
from app.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DataResponse,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])


async def _ensure_name_free(
    db: AsyncSession,
    res_id: str,
    name: str,
    exclude_id: Optional[int] = None,
) -> None:
    query = select(Category.id).where(
        Category.res_id == res_id,
        func.lower(Category.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")


async def _get_category_or_404(db: AsyncSession, user: StaffUser, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    ensure_access(user, category.res_id)
    return category


@router.get("", response_model=DataResponse[List[CategoryResponse]])
async def list_categories(
    res_id: str = Query(..., alias="resID"),
    user: Optional[StaffUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Active categories of a restaurant; staff of that restaurant also see inactive ones."""
    query = select(Category).where(Category.res_id == res_id).order_by(Category.sort_order, Category.name)

    is_staff = user is not None and (user.role == UserRole.ADMIN or user.res_id == res_id)
    if not is_staff:
        query = query.where(Category.is_active.is_(True))

    result = await db.execute(query)
    return {"success": True, "data": result.scalars().all()}


@router.post(
    "",
    response_model=DataResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, payload.res_id)
    await get_restaurant_or_404(db, res_id)
    name = payload.name.strip()
    await _ensure_name_free(db, res_id, name)

    category = Category(
        res_id=res_id,
        name=name,
        description=payload.description,
        sort_order=payload.sort_order,
        is_active=payload.is_active,
    )
    db.add(category)
    await db.commit()

    logger.info(f"Category created: {name} ({res_id})")
    return {"success": True, "message": "Category created", "data": category}


@router.put("/{category_id}", response_model=DataResponse[CategoryResponse])
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    category = await _get_category_or_404(db, user, category_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        await _ensure_name_free(db, category.res_id, changes["name"], exclude_id=category.id)
    for field, value in changes.items():
        if value is not None:
            setattr(category, field, value)
    await db.commit()

    logger.info(f"Category updated: {category.id} ({category.res_id})")
    return {"success": True, "message": "Category updated", "data": category}


@router.delete("/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: int,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    category = await _get_category_or_404(db, user, category_id)

    in_use = (
        await db.execute(select(func.count(MenuItem.id)).where(MenuItem.category_id == category.id))
    ).scalar() or 0
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category has {in_use} menu item(s); move or delete them first",
        )

    await db.delete(category)
    await db.commit()

    logger.info(f"Category deleted: {category_id}")
    return SuccessResponse(message="Category deleted")
