"""
Worker endpoints. Every route requires the worker role and only touches
complaints currently assigned to the caller.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from complaint_tracker.core.config import get_settings
from complaint_tracker.core.db import get_db
from complaint_tracker.core.rbac import require_role
from complaint_tracker.core.security import CurrentUser
from complaint_tracker.models.complaint import ComplaintStatus, Urgency
from complaint_tracker.schemas.analytics import WorkerStats
from complaint_tracker.schemas.common import ApiResponse
from complaint_tracker.schemas.complaint import (
    ComplaintData,
    ComplaintDetailData,
    ComplaintListData,
    HistoryData,
    NoteCreate,
    ReassignRequest,
    StatusUpdate,
)
from complaint_tracker.services import analytics, complaints
from complaint_tracker.services.advisor import Advisor, get_advisor

router = APIRouter(prefix="/api/worker", tags=["worker"])
settings = get_settings()

require_worker = require_role("worker")


@router.get("/complaints", response_model=ApiResponse[ComplaintListData])
async def list_assigned_complaints(
    status: ComplaintStatus | None = None,
    category: str | None = None,
    urgency: Urgency | None = None,
    db: AsyncSession = Depends(get_db),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[ComplaintListData]:
    """Assigned complaints, most urgent first, then oldest first."""
    rows = await complaints.list_worker_complaints(
        db,
        worker,
        status=status.value if status else None,
        category=category,
        urgency=urgency.value if urgency else None,
    )
    return ApiResponse(data=ComplaintListData(complaints=rows, count=len(rows)))


@router.get("/stats", response_model=ApiResponse[WorkerStats])
async def get_stats(
    db: AsyncSession = Depends(get_db),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[WorkerStats]:
    stats = await analytics.worker_stats(db, worker, settings.overdue_after_days)
    return ApiResponse(data=stats)


@router.get("/complaints/{complaint_id}", response_model=ApiResponse[ComplaintDetailData])
async def get_assigned_complaint(
    complaint_id: int,
    db: AsyncSession = Depends(get_db),
    advisor: Advisor = Depends(get_advisor),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[ComplaintDetailData]:
    """Complaint detail with the full history, internal notes included."""
    data = await complaints.get_worker_complaint(db, advisor, worker, complaint_id)
    return ApiResponse(data=data)


@router.put("/complaints/{complaint_id}/status", response_model=ApiResponse[ComplaintData])
async def update_status(
    complaint_id: int,
    payload: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[ComplaintData]:
    complaint = await complaints.update_status(db, worker, complaint_id, payload)
    return ApiResponse(
        message="Complaint status updated successfully", data=ComplaintData(complaint=complaint)
    )


@router.post(
    "/complaints/{complaint_id}/notes",
    response_model=ApiResponse[HistoryData],
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    complaint_id: int,
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[HistoryData]:
    entry = await complaints.add_note(db, worker, complaint_id, payload)
    return ApiResponse(message="Note added successfully", data=HistoryData(history=entry))


@router.put("/complaints/{complaint_id}/reassign", response_model=ApiResponse[None])
async def reassign(
    complaint_id: int,
    payload: ReassignRequest,
    db: AsyncSession = Depends(get_db),
    worker: CurrentUser = Depends(require_worker),
) -> ApiResponse[None]:
    """Hand the complaint to another worker (escalation)."""
    await complaints.reassign_complaint(db, worker, complaint_id, payload)
    return ApiResponse(message="Complaint reassigned successfully")
