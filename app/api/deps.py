"""
Shared FastAPI dependencies: staff authentication, role guards and
restaurant scoping.
"""

import logging
import uuid
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.database import get_db
from app.models import QRCode, Restaurant, StaffUser, UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def generate_public_id(prefix: str, length: int = 10) -> str:
    """Public identifiers look like RES4F9A0C21BE."""
    return f"{prefix}{uuid.uuid4().hex[:length].upper()}"


# =============================================================================
# AUTHENTICATION
# =============================================================================

async def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> StaffUser:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = await db.get(StaffUser, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> StaffUser:
    return await _user_from_credentials(credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[StaffUser]:
    """Staff user when a valid token is sent, otherwise None."""
    if credentials is None:
        return None
    try:
        return await _user_from_credentials(credentials, db)
    except HTTPException:
        return None


async def require_admin(user: StaffUser = Depends(get_current_user)) -> StaffUser:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


async def require_subadmin(user: StaffUser = Depends(get_current_user)) -> StaffUser:
    if user.role != UserRole.SUBADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Subadmin access required")
    if not user.res_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No restaurant assigned to this account")
    return user


# admins and subadmins alike
require_staff = get_current_user


# =============================================================================
# RESTAURANT SCOPING
# =============================================================================

def resolve_res_id(user: StaffUser, requested: Optional[str]) -> str:
    """
    Restaurant a staff request operates on.

    Subadmins always act on their own restaurant. Admins must name one.
    """
    if user.role == UserRole.SUBADMIN:
        if requested and requested != user.res_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this restaurant")
        if not user.res_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No restaurant assigned to this account")
        return user.res_id

    if not requested:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="resID is required")
    return requested


def ensure_access(user: StaffUser, res_id: str) -> None:
    if user.role == UserRole.SUBADMIN and user.res_id != res_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this restaurant")


async def get_restaurant_or_404(db: AsyncSession, res_id: str) -> Restaurant:
    result = await db.execute(select(Restaurant).where(Restaurant.res_id == res_id))
    restaurant = result.scalar_one_or_none()
    if restaurant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    return restaurant


async def get_active_table(db: AsyncSession, res_id: str, qr_id: str) -> tuple[Restaurant, QRCode]:
    """
    Restaurant and QR code a guest is ordering from.

    Both must be active and the QR code must belong to the restaurant;
    anything else is reported as not found.
    """
    result = await db.execute(
        select(Restaurant).where(Restaurant.res_id == res_id, Restaurant.is_active.is_(True))
    )
    restaurant = result.scalar_one_or_none()
    if restaurant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")

    result = await db.execute(
        select(QRCode).where(
            QRCode.qr_id == qr_id,
            QRCode.res_id == res_id,
            QRCode.is_active.is_(True),
        )
    )
    qr_code = result.scalar_one_or_none()
    if qr_code is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found or inactive")

    return restaurant, qr_code
