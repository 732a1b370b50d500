"""
Authentication endpoints — public.

Logout is stateless: tokens are not tracked server-side, so the client simply
discards its token.  A blacklist would hook in here.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from complaint_tracker.core.db import get_db
from complaint_tracker.schemas.auth import AuthData, LoginRequest, RegisterRequest
from complaint_tracker.schemas.common import ApiResponse
from complaint_tracker.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[AuthData], status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """Register a new student account."""
    data = await accounts.register(db, payload)
    return ApiResponse(message="Registration successful", data=data)


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """Login for every role, by email or student ID."""
    data = await accounts.login(db, payload)
    return ApiResponse(message="Login successful", data=data)


@router.post("/logout", response_model=ApiResponse[None])
async def logout() -> ApiResponse[None]:
    return ApiResponse(message="Logout successful")
