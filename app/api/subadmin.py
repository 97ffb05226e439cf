"""
Subadmin endpoints, scoped to the subadmin's own restaurant.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_restaurant_or_404, require_subadmin
from app.database import get_db
from app.models import Order, OrderStatus, StaffUser
from app.schemas import (
    DataResponse,
    OrderResponse,
    RestaurantDashboard,
    RestaurantResponse,
    RestaurantUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subadmin", tags=["Subadmin"])


@router.get("/restaurant", response_model=DataResponse[RestaurantResponse])
async def get_own_restaurant(
    user: StaffUser = Depends(require_subadmin),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await get_restaurant_or_404(db, user.res_id)}


@router.put("/restaurant", response_model=DataResponse[RestaurantResponse])
async def update_own_restaurant(
    payload: RestaurantUpdate,
    user: StaffUser = Depends(require_subadmin),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await get_restaurant_or_404(db, user.res_id)
    # activation is an admin decision
    changes = payload.changes(exclude={"is_active"})
    for field, value in changes.items():
        setattr(restaurant, field, value)
    await db.commit()

    logger.info(f"Restaurant {user.res_id} updated by {user.email}")
    return {"success": True, "message": "Restaurant updated", "data": restaurant}


@router.get("/dashboard", response_model=DataResponse[RestaurantDashboard])
async def dashboard(
    user: StaffUser = Depends(require_subadmin),
    db: AsyncSession = Depends(get_db),
):
    """Order counts, today's figures and the latest orders."""
    res_id = user.res_id
    scoped = Order.res_id == res_id
    billable = Order.status != OrderStatus.CANCELLED

    status_rows = await db.execute(
        select(Order.status, func.count(Order.id)).where(scoped).group_by(Order.status)
    )
    by_status = {s.value: 0 for s in OrderStatus}
    for order_status, count in status_rows.all():
        by_status[order_status.value] = count
    total_orders = sum(by_status.values())

    today_start = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    today_result = await db.execute(
        select(func.count(Order.id), func.sum(Order.total)).where(
            scoped, billable, Order.created_at >= today_start
        )
    )
    today_orders, today_revenue = today_result.one()

    avg_result = await db.execute(select(func.avg(Order.total)).where(scoped, billable))
    avg_order_value = avg_result.scalar() or 0.0

    recent_result = await db.execute(
        select(Order).where(scoped).order_by(Order.created_at.desc(), Order.id.desc()).limit(10)
    )

    return {
        "success": True,
        "data": RestaurantDashboard(
            res_id=res_id,
            total_orders=total_orders,
            orders_by_status=by_status,
            today_orders=today_orders or 0,
            today_revenue=round(today_revenue or 0.0, 2),
            avg_order_value=round(avg_order_value, 2),
            recent_orders=[OrderResponse.model_validate(o) for o in recent_result.scalars().all()],
        ),
    }
