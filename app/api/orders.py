"""
Order endpoints.

Guests place and track orders without an account. Prices, taxes and
totals are always recomputed here from the stored menu; whatever
totals a client shows are display-only.
"""

import logging
import uuid
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from kombu.exceptions import OperationalError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import ensure_access, get_active_table, require_staff, resolve_res_id
from app.core.config import get_settings
from app.database import get_db, utcnow
from app.models import MenuItem, Order, OrderItem, OrderStatus, Restaurant, StaffUser
from app.schemas import (
    DataResponse,
    ErrorResponse,
    OrderCreate,
    OrderListResponse,
    OrderPlaced,
    OrderResponse,
    OrderStatusUpdate,
    OrderTracking,
)
from app.services.excel_manager import ExcelManager, order_record
from app.services.notifications import OrderConfirmationMessage
from app.services.pricing import (
    PricedLine,
    calculate_totals,
    effective_tax_percentage,
    is_variant_available,
)
from app.tasks import export_order_to_excel, send_order_notifications

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/orders", tags=["Orders"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def generate_order_id() -> str:
    """Order ids look like ORD-250114-3FA9C2."""
    return f"ORD-{utcnow():%y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Options: {[s.value for s in OrderStatus]}",
        )


def queue_order_tasks(order: Order, restaurant: Restaurant) -> None:
    """Hand the confirmation message and ledger export to Celery."""
    confirmation = OrderConfirmationMessage(
        order_id=order.order_id,
        restaurant_name=restaurant.name,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        table_number=order.table_number,
        items=[
            {"name": i.name, "variant_name": i.variant_name, "quantity": i.quantity}
            for i in order.items
        ],
        total=order.total,
        currency=restaurant.currency,
        estimated_time=order.estimated_time,
    )
    try:
        send_order_notifications.delay(asdict(confirmation))
        export_order_to_excel.delay(order_record(order))
    except OperationalError as e:
        # the order is already stored; staff still see it in the dashboard
        logger.error(f"Could not queue background tasks for {order.order_id}: {e}")


# =============================================================================
# GUEST ENDPOINTS
# =============================================================================

@router.post(
    "",
    response_model=DataResponse[OrderPlaced],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Place an order from a table QR menu",
)
async def place_order(
    payload: OrderCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Validate every line against the restaurant's current menu, price it
    server-side and store the order as pending.
    """
    restaurant, qr_code = await get_active_table(db, payload.res_id, payload.qr_id)

    menu_ids = {line.menu_id for line in payload.items}
    result = await db.execute(
        select(MenuItem).where(MenuItem.res_id == restaurant.res_id, MenuItem.menu_id.in_(menu_ids))
    )
    menu = {item.menu_id: item for item in result.scalars().all()}

    order_items = []
    priced_lines = []
    preparation_times = []

    for line in payload.items:
        item = menu.get(line.menu_id)
        if item is None or not item.is_available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Menu item {line.menu_id} is not available",
            )

        unit_price = item.price
        if line.variant_name:
            variant = item.find_variant(line.variant_name)
            if variant is None or not is_variant_available(variant):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Variant '{line.variant_name}' of {item.name} is not available",
                )
            unit_price = float(variant["price"])
        elif any(is_variant_available(v) for v in item.variants or []):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Please choose a variant for {item.name}",
            )

        tax_percentage = effective_tax_percentage(item.tax_percentage, settings.default_tax_percentage)
        priced_lines.append(PricedLine(unit_price, line.quantity, tax_percentage))
        order_items.append(
            OrderItem(
                menu_id=item.menu_id,
                name=item.name,
                variant_name=line.variant_name,
                unit_price=unit_price,
                quantity=line.quantity,
                tax_percentage=tax_percentage,
                special_instructions=line.special_instructions,
                line_total=round(unit_price * line.quantity, 2),
            )
        )
        if item.preparation_time:
            preparation_times.append(item.preparation_time)

    totals = calculate_totals(priced_lines, settings.default_tax_percentage)

    order = Order(
        order_id=generate_order_id(),
        res_id=restaurant.res_id,
        qr_id=qr_code.qr_id,
        table_number=qr_code.table_number,
        customer_name=payload.customer.name,
        customer_phone=payload.customer.phone,
        customer_email=payload.customer.email,
        special_request=payload.special_request,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        status=OrderStatus.PENDING,
        estimated_time=max(preparation_times, default=settings.default_preparation_minutes),
        items=order_items,
    )
    db.add(order)
    await db.commit()

    logger.info(
        f"Order {order.order_id} placed at {restaurant.res_id} table {order.table_number}: "
        f"{len(order_items)} lines, total {order.total:.2f}"
    )

    queue_order_tasks(order, restaurant)

    return {
        "success": True,
        "message": "Order placed successfully",
        "data": OrderPlaced.model_validate(order),
    }


@router.get("/track/{order_id}", response_model=DataResponse[OrderTracking])
async def track_order(order_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Order).where(Order.order_id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return {"success": True, "data": order}


# =============================================================================
# STAFF ENDPOINTS
# =============================================================================

async def _get_order_or_404(db: AsyncSession, user: StaffUser, order_id: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    ensure_access(user, order.res_id)
    return order


@router.get("", response_model=OrderListResponse)
async def list_orders(
    res_id: Optional[str] = Query(None, alias="resID"),
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Newest first, paginated with skip/limit."""
    res_id = resolve_res_id(user, res_id)

    query = select(Order).where(Order.res_id == res_id)
    count_query = select(func.count(Order.id)).where(Order.res_id == res_id)
    if status_filter:
        order_status = parse_status(status_filter)
        query = query.where(Order.status == order_status)
        count_query = count_query.where(Order.status == order_status)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit)
    )

    return OrderListResponse(
        total=total,
        orders=[OrderResponse.model_validate(o) for o in result.scalars().all()],
    )


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {XLSX_MEDIA_TYPE: {}}}},
    summary="Download orders as an Excel workbook",
)
async def export_orders(
    res_id: Optional[str] = Query(None, alias="resID"),
    status_filter: Optional[str] = Query(None, alias="status"),
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> Response:
    res_id = resolve_res_id(user, res_id)

    query = select(Order).where(Order.res_id == res_id).order_by(Order.created_at, Order.id)
    if status_filter:
        query = query.where(Order.status == parse_status(status_filter))
    orders = (await db.execute(query)).scalars().all()

    workbook = ExcelManager.orders_to_workbook(order_record(o) for o in orders)
    filename = f"orders_{res_id}_{datetime.now():%Y%m%d}.xlsx"

    logger.info(f"Exported {len(orders)} orders for {res_id}")
    return Response(
        content=workbook,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{order_id}", response_model=DataResponse[OrderResponse])
async def get_order(
    order_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await _get_order_or_404(db, user, order_id)}


@router.patch("/{order_id}/status", response_model=DataResponse[OrderResponse])
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    new_status = parse_status(payload.status)
    order = await _get_order_or_404(db, user, order_id)

    previous = order.status
    order.status = new_status
    await db.commit()

    logger.info(f"Order {order_id}: {previous.value} -> {new_status.value} by {user.email}")
    return {"success": True, "message": "Order status updated", "data": order}
