"""
Admin endpoints — dashboard overview, complaint assignment and user management.

All routes require the admin role.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from complaint_tracker.core.db import get_db
from complaint_tracker.core.rbac import require_role
from complaint_tracker.core.security import CurrentUser
from complaint_tracker.models.complaint import ComplaintStatus, Urgency
from complaint_tracker.models.user import Role
from complaint_tracker.schemas.analytics import Overview
from complaint_tracker.schemas.common import ApiResponse
from complaint_tracker.schemas.complaint import AssignRequest, ComplaintListData
from complaint_tracker.schemas.user import UserCreate, UserListData, UserResponse, UserUpdate
from complaint_tracker.services import accounts, analytics, complaints
from complaint_tracker.services.advisor import Advisor, get_advisor

router = APIRouter(prefix="/api/admin", tags=["admin"])

require_admin = require_role("admin")


# ---------------------------------------------------------------------------
# Dashboard + complaints
# ---------------------------------------------------------------------------

@router.get("/overview", response_model=ApiResponse[Overview])
async def get_overview(
    db: AsyncSession = Depends(get_db),
    advisor: Advisor = Depends(get_advisor),
    _admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[Overview]:
    overview = await analytics.admin_overview(db, advisor)
    return ApiResponse(data=overview)


@router.get("/complaints", response_model=ApiResponse[ComplaintListData])
async def list_complaints(
    status: ComplaintStatus | None = None,
    category: str | None = None,
    urgency: Urgency | None = None,
    worker_id: int | None = Query(default=None, alias="workerId"),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[ComplaintListData]:
    """All complaints; filters combine with AND, search matches title or description."""
    rows = await complaints.list_all_complaints(
        db,
        status=status.value if status else None,
        category=category,
        urgency=urgency.value if urgency else None,
        worker_id=worker_id,
        search=search,
    )
    return ApiResponse(data=ComplaintListData(complaints=rows, count=len(rows)))


@router.put("/complaints/{complaint_id}/assign", response_model=ApiResponse[None])
async def assign_complaint(
    complaint_id: int,
    payload: AssignRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[None]:
    await complaints.assign_complaint(db, admin, complaint_id, payload)
    return ApiResponse(message="Complaint assigned successfully")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=ApiResponse[UserListData])
async def list_users(
    role: Role | None = None,
    department: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[UserListData]:
    users = await accounts.list_users(db, role=role.value if role else None, department=department)
    return ApiResponse(data=UserListData(users=users, count=len(users)))


@router.post("/users", response_model=ApiResponse[dict[str, UserResponse]], status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[dict[str, UserResponse]]:
    """Create a user of any role (workers and admins are only created here)."""
    user = await accounts.create_user(db, payload)
    return ApiResponse(message="User created successfully", data={"user": user})


@router.put("/users/{user_id}", response_model=ApiResponse[dict[str, UserResponse]])
async def update_user(
    user_id: int,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[dict[str, UserResponse]]:
    user = await accounts.update_user(db, user_id, payload)
    return ApiResponse(message="User updated successfully", data={"user": user})


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> ApiResponse[None]:
    await accounts.delete_user(db, admin, user_id)
    return ApiResponse(message="User deleted successfully")
