"""
Menu endpoints: the public per-table menu and staff item management.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    ensure_access,
    generate_public_id,
    get_active_table,
    get_restaurant_or_404,
    require_staff,
    resolve_res_id,
)
from app.database import get_db, utcnow
from app.models import Category, MenuItem, StaffUser
from app.schemas import (
    AvailabilityUpdate,
    DataResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    PublicMenu,
    PublicMenuItem,
    PublicQRCode,
    PublicRestaurant,
    SuccessResponse,
)
from app.services.pricing import lowest_available_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu", tags=["Menu"])

UNCATEGORIZED = "Other"


def public_item(item: MenuItem) -> PublicMenuItem:
    return PublicMenuItem(
        menu_id=item.menu_id,
        name=item.name,
        description=item.description,
        price=lowest_available_price(item.price, item.variants),
        base_price=item.price,
        variants=item.variants or [],
        tax_percentage=item.tax_percentage,
        is_vegetarian=item.is_vegetarian,
        is_special_item=item.is_special_item,
        image_url=item.image_url,
        preparation_time=item.preparation_time,
    )


# =============================================================================
# PUBLIC MENU
# =============================================================================

@router.get("/public/{res_id}/{qr_id}", response_model=DataResponse[PublicMenu])
async def public_menu(res_id: str, qr_id: str, db: AsyncSession = Depends(get_db)):
    """
    Menu shown after scanning a table's QR code.

    Available items grouped by category name, categories in sort order.
    Each call counts as one scan of the QR code.
    """
    restaurant, qr_code = await get_active_table(db, res_id, qr_id)

    qr_code.scan_count = (qr_code.scan_count or 0) + 1
    qr_code.last_scanned_at = utcnow()
    await db.commit()

    categories = (
        await db.execute(
            select(Category)
            .where(Category.res_id == res_id, Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.name)
        )
    ).scalars().all()
    items = (
        await db.execute(
            select(MenuItem)
            .where(MenuItem.res_id == res_id, MenuItem.is_available.is_(True))
            .order_by(MenuItem.name)
        )
    ).scalars().all()

    menu: dict[str, List[PublicMenuItem]] = {c.name: [] for c in categories}
    active_ids = {c.id: c.name for c in categories}
    for item in items:
        if item.category_id is None:
            menu.setdefault(UNCATEGORIZED, []).append(public_item(item))
        elif item.category_id in active_ids:
            menu[active_ids[item.category_id]].append(public_item(item))

    logger.info(f"Menu served for {res_id}/{qr_id} (scan #{qr_code.scan_count})")

    return {
        "success": True,
        "data": PublicMenu(
            restaurant=PublicRestaurant.model_validate(restaurant),
            qr_code=PublicQRCode.model_validate(qr_code),
            menu={name: entries for name, entries in menu.items() if entries},
        ),
    }


# =============================================================================
# STAFF MANAGEMENT
# =============================================================================

async def _check_category(db: AsyncSession, category_id: Optional[int], res_id: str) -> None:
    if category_id is None:
        return
    category = await db.get(Category, category_id)
    if category is None or category.res_id != res_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category does not belong to this restaurant",
        )


async def _get_item_or_404(db: AsyncSession, user: StaffUser, menu_id: str) -> MenuItem:
    result = await db.execute(select(MenuItem).where(MenuItem.menu_id == menu_id))
    item = result.scalar_one_or_none()
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")
    ensure_access(user, item.res_id)
    return item


@router.get("", response_model=DataResponse[List[MenuItemResponse]])
async def list_menu_items(
    res_id: Optional[str] = Query(None, alias="resID"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    is_available: Optional[bool] = Query(None, alias="isAvailable"),
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, res_id)
    query = select(MenuItem).where(MenuItem.res_id == res_id).order_by(MenuItem.name)
    if category_id is not None:
        query = query.where(MenuItem.category_id == category_id)
    if is_available is not None:
        query = query.where(MenuItem.is_available.is_(is_available))

    result = await db.execute(query)
    return {"success": True, "data": result.scalars().all()}


@router.post(
    "",
    response_model=DataResponse[MenuItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_menu_item(
    payload: MenuItemCreate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, payload.res_id)
    await get_restaurant_or_404(db, res_id)
    await _check_category(db, payload.category_id, res_id)

    data = payload.model_dump(exclude={"res_id", "variants"})
    item = MenuItem(
        menu_id=generate_public_id("MENU"),
        res_id=res_id,
        variants=[v.model_dump(by_alias=True) for v in payload.variants],
        **data,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item, ["category"])

    logger.info(f"Menu item created: {item.menu_id} - {item.name} ({res_id})")
    return {"success": True, "message": "Menu item created", "data": item}


@router.get("/{menu_id}", response_model=DataResponse[MenuItemResponse])
async def get_menu_item(
    menu_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await _get_item_or_404(db, user, menu_id)}


@router.put("/{menu_id}", response_model=DataResponse[MenuItemResponse])
async def update_menu_item(
    menu_id: str,
    payload: MenuItemUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_item_or_404(db, user, menu_id)
    changes = payload.changes(exclude={"variants"})

    if "category_id" in changes:
        await _check_category(db, changes["category_id"], item.res_id)
    if payload.variants is not None:
        item.variants = [v.model_dump(by_alias=True) for v in payload.variants]
    for field, value in changes.items():
        setattr(item, field, value)

    await db.commit()
    await db.refresh(item, ["category"])

    logger.info(f"Menu item updated: {menu_id}")
    return {"success": True, "message": "Menu item updated", "data": item}


@router.patch("/{menu_id}/availability", response_model=DataResponse[MenuItemResponse])
async def set_availability(
    menu_id: str,
    payload: AvailabilityUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_item_or_404(db, user, menu_id)
    item.is_available = payload.is_available
    await db.commit()

    logger.info(f"Menu item {menu_id} availability -> {payload.is_available}")
    return {"success": True, "data": item}


@router.delete("/{menu_id}", response_model=SuccessResponse)
async def delete_menu_item(
    menu_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_item_or_404(db, user, menu_id)
    await db.delete(item)
    await db.commit()

    logger.info(f"Menu item deleted: {menu_id}")
    return SuccessResponse(message="Menu item deleted")
