"""
Staff authentication: first-admin bootstrap, login and current user.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.security import create_access_token, hash_password, verify_password
from app.database import get_db
from app.models import StaffUser, UserRole
from app.schemas import (
    DataResponse,
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    StaffUserResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def issue_token(user: StaffUser) -> TokenResponse:
    token = create_access_token(str(user.id), user.role.value, res_id=user.res_id)
    return TokenResponse(token=token, user=StaffUserResponse.model_validate(user))


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
    summary="Create the first admin account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Bootstrap the system with its first admin.

    Only allowed while no staff accounts exist; further accounts are
    created by an admin.
    """
    existing = (await db.execute(select(func.count(StaffUser.id)))).scalar() or 0
    if existing:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registration is closed")

    user = StaffUser(
        name=payload.name.strip(),
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=UserRole.ADMIN,
    )
    db.add(user)
    await db.commit()

    logger.info(f"Initial admin registered: {user.email}")
    return issue_token(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    result = await db.execute(select(StaffUser).where(StaffUser.email == payload.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info(f"Failed login for {payload.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is disabled")

    logger.info(f"Staff login: {user.email} ({user.role.value})")
    return issue_token(user)


@router.get("/me", response_model=DataResponse[StaffUserResponse])
async def me(user: StaffUser = Depends(get_current_user)):
    return {"success": True, "data": user}
