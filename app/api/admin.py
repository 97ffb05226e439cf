"""
Admin endpoints: restaurants, restaurant subadmins and platform stats.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import generate_public_id, get_restaurant_or_404, require_admin
from app.core.security import hash_password
from app.database import get_db
from app.models import (
    Banner,
    Category,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    QRCode,
    Restaurant,
    StaffUser,
    UserRole,
)
from app.schemas import (
    AdminStats,
    DataResponse,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
    StaffUserResponse,
    SubadminCreate,
    SubadminUpdate,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.get("/restaurants", response_model=DataResponse[List[RestaurantResponse]])
async def list_restaurants(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: AsyncSession = Depends(get_db),
):
    query = select(Restaurant).order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
    if is_active is not None:
        query = query.where(Restaurant.is_active.is_(is_active))
    result = await db.execute(query)
    return {"success": True, "data": result.scalars().all()}


@router.post(
    "/restaurants",
    response_model=DataResponse[RestaurantResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_restaurant(
    payload: RestaurantCreate,
    db: AsyncSession = Depends(get_db),
):
    restaurant = Restaurant(res_id=generate_public_id("RES"), **payload.model_dump())
    db.add(restaurant)
    await db.commit()

    logger.info(f"Restaurant created: {restaurant.res_id} - {restaurant.name}")
    return {"success": True, "message": "Restaurant created", "data": restaurant}


@router.get("/restaurants/{res_id}", response_model=DataResponse[RestaurantResponse])
async def get_restaurant(res_id: str, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await get_restaurant_or_404(db, res_id)}


@router.put("/restaurants/{res_id}", response_model=DataResponse[RestaurantResponse])
async def update_restaurant(
    res_id: str,
    payload: RestaurantUpdate,
    db: AsyncSession = Depends(get_db),
):
    restaurant = await get_restaurant_or_404(db, res_id)
    for field, value in payload.changes().items():
        setattr(restaurant, field, value)
    await db.commit()

    logger.info(f"Restaurant updated: {res_id}")
    return {"success": True, "message": "Restaurant updated", "data": restaurant}


@router.delete("/restaurants/{res_id}", response_model=SuccessResponse)
async def delete_restaurant(res_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a restaurant together with its menu, QR codes, banners and orders."""
    restaurant = await get_restaurant_or_404(db, res_id)

    order_ids = select(Order.id).where(Order.res_id == res_id)
    await db.execute(delete(OrderItem).where(OrderItem.order_pk.in_(order_ids)))
    for model in (Order, MenuItem, Category, QRCode, Banner):
        await db.execute(delete(model).where(model.res_id == res_id))
    await db.execute(
        update(StaffUser)
        .where(StaffUser.res_id == res_id)
        .values(res_id=None, is_active=False)
    )
    await db.delete(restaurant)
    await db.commit()

    logger.info(f"Restaurant deleted: {res_id}")
    return SuccessResponse(message="Restaurant deleted")


# =============================================================================
# SUBADMINS
# =============================================================================

async def _get_subadmin_or_404(db: AsyncSession, user_id: int) -> StaffUser:
    user = await db.get(StaffUser, user_id)
    if user is None or user.role != UserRole.SUBADMIN:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subadmin not found")
    return user


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> None:
    query = select(StaffUser.id).where(StaffUser.email == email)
    if exclude_id is not None:
        query = query.where(StaffUser.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")


@router.get("/subadmins", response_model=DataResponse[List[StaffUserResponse]])
async def list_subadmins(
    res_id: Optional[str] = Query(None, alias="resID"),
    db: AsyncSession = Depends(get_db),
):
    query = select(StaffUser).where(StaffUser.role == UserRole.SUBADMIN).order_by(StaffUser.id)
    if res_id:
        query = query.where(StaffUser.res_id == res_id)
    result = await db.execute(query)
    return {"success": True, "data": result.scalars().all()}


@router.post(
    "/subadmins",
    response_model=DataResponse[StaffUserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_subadmin(payload: SubadminCreate, db: AsyncSession = Depends(get_db)):
    await get_restaurant_or_404(db, payload.res_id)
    email = payload.email.lower()
    await _ensure_email_free(db, email)

    user = StaffUser(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        role=UserRole.SUBADMIN,
        res_id=payload.res_id,
    )
    db.add(user)
    await db.commit()

    logger.info(f"Subadmin created: {email} for {payload.res_id}")
    return {"success": True, "message": "Subadmin created", "data": user}


@router.put("/subadmins/{user_id}", response_model=DataResponse[StaffUserResponse])
async def update_subadmin(
    user_id: int,
    payload: SubadminUpdate,
    db: AsyncSession = Depends(get_db),
):
    user = await _get_subadmin_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if "email" in changes and changes["email"]:
        changes["email"] = changes["email"].lower()
        await _ensure_email_free(db, changes["email"], exclude_id=user.id)
    if changes.get("res_id"):
        await get_restaurant_or_404(db, changes["res_id"])
    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)

    for field, value in changes.items():
        if value is not None:
            setattr(user, field, value)
    await db.commit()

    logger.info(f"Subadmin updated: {user.email}")
    return {"success": True, "message": "Subadmin updated", "data": user}


@router.delete("/subadmins/{user_id}", response_model=SuccessResponse)
async def delete_subadmin(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await _get_subadmin_or_404(db, user_id)
    await db.delete(user)
    await db.commit()

    logger.info(f"Subadmin deleted: {user.email}")
    return SuccessResponse(message="Subadmin deleted")


# =============================================================================
# STATS
# =============================================================================

@router.get("/stats", response_model=DataResponse[AdminStats])
async def stats(db: AsyncSession = Depends(get_db)):
    restaurants = (await db.execute(select(func.count(Restaurant.id)))).scalar() or 0
    active_restaurants = (
        await db.execute(select(func.count(Restaurant.id)).where(Restaurant.is_active.is_(True)))
    ).scalar() or 0
    subadmins = (
        await db.execute(select(func.count(StaffUser.id)).where(StaffUser.role == UserRole.SUBADMIN))
    ).scalar() or 0
    orders = (await db.execute(select(func.count(Order.id)))).scalar() or 0
    revenue = (
        await db.execute(select(func.sum(Order.total)).where(Order.status != OrderStatus.CANCELLED))
    ).scalar() or 0.0

    return {
        "success": True,
        "data": AdminStats(
            restaurants=restaurants,
            active_restaurants=active_restaurants,
            subadmins=subadmins,
            orders=orders,
            revenue=round(revenue, 2),
        ),
    }
