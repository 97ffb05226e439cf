"""
Promotional banners shown above the guest menu.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import ensure_access, get_restaurant_or_404, require_staff, resolve_res_id
from app.database import get_db
from app.models import Banner, StaffUser
from app.schemas import BannerCreate, BannerResponse, BannerUpdate, DataResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/banner", tags=["Banners"])


async def _get_banner_or_404(db: AsyncSession, user: StaffUser, banner_id: int) -> Banner:
    banner = await db.get(Banner, banner_id)
    if banner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Banner not found")
    ensure_access(user, banner.res_id)
    return banner


@router.get("/public/{res_id}", response_model=DataResponse[List[BannerResponse]])
async def public_banners(res_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Banner)
        .where(Banner.res_id == res_id, Banner.is_active.is_(True))
        .order_by(Banner.sort_order, Banner.id)
    )
    return {"success": True, "data": result.scalars().all()}


@router.get("", response_model=DataResponse[List[BannerResponse]])
async def list_banners(
    res_id: Optional[str] = Query(None, alias="resID"),
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, res_id)
    result = await db.execute(
        select(Banner).where(Banner.res_id == res_id).order_by(Banner.sort_order, Banner.id)
    )
    return {"success": True, "data": result.scalars().all()}


@router.post("", response_model=DataResponse[BannerResponse], status_code=status.HTTP_201_CREATED)
async def create_banner(
    payload: BannerCreate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    res_id = resolve_res_id(user, payload.res_id)
    await get_restaurant_or_404(db, res_id)

    banner = Banner(res_id=res_id, **payload.model_dump(exclude={"res_id"}))
    db.add(banner)
    await db.commit()

    logger.info(f"Banner created: {banner.id} ({res_id})")
    return {"success": True, "message": "Banner created", "data": banner}


@router.put("/{banner_id}", response_model=DataResponse[BannerResponse])
async def update_banner(
    banner_id: int,
    payload: BannerUpdate,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    banner = await _get_banner_or_404(db, user, banner_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(banner, field, value)
    await db.commit()

    return {"success": True, "message": "Banner updated", "data": banner}


@router.delete("/{banner_id}", response_model=SuccessResponse)
async def delete_banner(
    banner_id: int,
    user: StaffUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    banner = await _get_banner_or_404(db, user, banner_id)
    await db.delete(banner)
    await db.commit()

    logger.info(f"Banner deleted: {banner_id}")
    return SuccessResponse(message="Banner deleted")
