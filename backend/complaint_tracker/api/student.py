"""
Student endpoints. Every route requires the student role.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from complaint_tracker.core.db import get_db
from complaint_tracker.core.rbac import require_role
from complaint_tracker.core.security import CurrentUser
from complaint_tracker.models.complaint import ComplaintStatus
from complaint_tracker.schemas.common import ApiResponse
from complaint_tracker.schemas.complaint import (
    ComplaintCreate,
    ComplaintData,
    ComplaintDetailData,
    ComplaintListData,
    FeedbackCreate,
    FeedbackData,
)
from complaint_tracker.services import complaints
from complaint_tracker.services.advisor import Advisor, get_advisor

router = APIRouter(prefix="/api/student", tags=["student"])

require_student = require_role("student")


@router.get("/complaints", response_model=ApiResponse[ComplaintListData])
async def list_my_complaints(
    status: ComplaintStatus | None = None,
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
    student: CurrentUser = Depends(require_student),
) -> ApiResponse[ComplaintListData]:
    rows = await complaints.list_student_complaints(
        db, student, status=status.value if status else None, category=category
    )
    return ApiResponse(data=ComplaintListData(complaints=rows, count=len(rows)))


@router.post(
    "/complaints",
    response_model=ApiResponse[ComplaintData],
    status_code=status.HTTP_201_CREATED,
)
async def create_complaint(
    payload: ComplaintCreate,
    db: AsyncSession = Depends(get_db),
    advisor: Advisor = Depends(get_advisor),
    student: CurrentUser = Depends(require_student),
) -> ApiResponse[ComplaintData]:
    """File a complaint; missing category/urgency are inferred and the complaint is routed."""
    complaint = await complaints.create_complaint(db, advisor, student, payload)
    return ApiResponse(message="Complaint created successfully", data=ComplaintData(complaint=complaint))


@router.get("/complaints/{complaint_id}", response_model=ApiResponse[ComplaintDetailData])
async def get_my_complaint(
    complaint_id: int,
    db: AsyncSession = Depends(get_db),
    advisor: Advisor = Depends(get_advisor),
    student: CurrentUser = Depends(require_student),
) -> ApiResponse[ComplaintDetailData]:
    data = await complaints.get_student_complaint(db, advisor, student, complaint_id)
    return ApiResponse(data=data)


@router.post(
    "/complaints/{complaint_id}/feedback",
    response_model=ApiResponse[FeedbackData],
    status_code=status.HTTP_201_CREATED,
)
async def submit_feedback(
    complaint_id: int,
    payload: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
    student: CurrentUser = Depends(require_student),
) -> ApiResponse[FeedbackData]:
    feedback = await complaints.submit_feedback(db, student, complaint_id, payload)
    return ApiResponse(message="Feedback submitted successfully", data=FeedbackData(feedback=feedback))
