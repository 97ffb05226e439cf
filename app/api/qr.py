"""
QR code management. Each code points a table at the restaurant's
public menu page.
"""

import io
import logging
from typing import List, Optional

import qrcode
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    ensure_access,
    generate_public_id,
    get_restaurant_or_404,
    require_staff,
    resolve_res_id,
)
from app.core.config import get_settings
from app.database import get_db
from app.models import QRCode, StaffUser
from app.schemas import DataResponse, QRCodeCreate, QRCodeResponse, QRCodeUpdate, SuccessResponse

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/qr", tags=["QR Codes"])


def menu_url(res_id: str, qr_id: str) -> str:
    return f"{settings.public_menu_base_url}/menu/{res_id}/{qr_id}"


def qr_response(qr_code: QRCode) -> QRCodeResponse:
    data = QRCodeResponse.model_validate(qr_code)
    data.menu_url = menu_url(qr_code.res_id, qr_code.qr_id)
    return data


def render_png(data: str) -> bytes:
    code = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    code.add_data(data)
    code.make(fit=True)
    image = code.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue()


async def _get_qr_or_404(db: AsyncSession, user: StaffUser, qr_id: str) -> QRCode:
    result = await db.execute(select(QRCode).where(QRCode.qr_id == qr_id))
    qr_code = result.scalar_one_or_none()
    if qr_code is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found")
    ensure_access(user, qr_code.res_id)
    return qr_code


@router.get("", response_model=DataResponse[List[QRCodeResponse]])
async def list_qr_codes(
    res_id: Optional[str] = Query(None, alias="resID"),
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, res_id)
    result = await db.execute(
        select(QRCode).where(QRCode.res_id == res_id).order_by(QRCode.table_number, QRCode.id)
    )
    return {"success": True, "data": [qr_response(q) for q in result.scalars().all()]}


@router.post(
    "",
    response_model=DataResponse[QRCodeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_qr_code(
    payload: QRCodeCreate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, payload.res_id)
    await get_restaurant_or_404(db, res_id)

    qr_code = QRCode(
        qr_id=generate_public_id("QR"),
        res_id=res_id,
        table_number=payload.table_number.strip(),
        label=payload.label,
        is_active=payload.is_active,
        scan_count=0,
    )
    db.add(qr_code)
    await db.commit()

    logger.info(f"QR code created: {qr_code.qr_id} for {res_id} table {qr_code.table_number}")
    return {"success": True, "message": "QR code created", "data": qr_response(qr_code)}


@router.get("/{qr_id}", response_model=DataResponse[QRCodeResponse])
async def get_qr_code(
    qr_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": qr_response(await _get_qr_or_404(db, user, qr_id))}


@router.get(
    "/{qr_id}/image",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_qr_image(
    qr_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """PNG of the code, encoding the table's menu URL."""
    qr_code = await _get_qr_or_404(db, user, qr_id)
    png = render_png(menu_url(qr_code.res_id, qr_code.qr_id))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{qr_id}.png"'},
    )


@router.put("/{qr_id}", response_model=DataResponse[QRCodeResponse])
async def update_qr_code(
    qr_id: str,
    payload: QRCodeUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    qr_code = await _get_qr_or_404(db, user, qr_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(qr_code, field, value)
    await db.commit()

    logger.info(f"QR code updated: {qr_id}")
    return {"success": True, "message": "QR code updated", "data": qr_response(qr_code)}


@router.delete("/{qr_id}", response_model=SuccessResponse)
async def delete_qr_code(
    qr_id: str,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    qr_code = await _get_qr_or_404(db, user, qr_id)
    await db.delete(qr_code)
    await db.commit()

    logger.info(f"QR code deleted: {qr_id}")
    return SuccessResponse(message="QR code deleted")
