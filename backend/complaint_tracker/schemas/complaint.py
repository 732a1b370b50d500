from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from complaint_tracker.models.complaint import ComplaintStatus, Urgency
from complaint_tracker.schemas.common import CamelModel


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class ComplaintCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=5, max_length=255)
    description: str = Field(min_length=10)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    urgency: Urgency | None = None


class StatusUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    status: ComplaintStatus
    note: str | None = None
    resolution_message: str | None = None


class NoteCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    note: str = Field(min_length=1)
    is_public: bool = False


class ReassignRequest(CamelModel):
    new_worker_id: int | None = None
    reason: str | None = None


class AssignRequest(CamelModel):
    worker_id: int | None = None
    department: str | None = None


class FeedbackCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(ge=1, le=5)
    comments: str | None = None


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

class ComplaintResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    title: str
    description: str
    category: str
    urgency: str
    status: str
    assigned_worker_id: int | None
    assigned_department: str | None
    resolution_message: str | None
    ai_summary: str | None
    created_at: datetime
    updated_at: datetime

    # Joined from users when the query asks for them
    student_name: str | None = None
    student_email: str | None = None
    student_number: str | None = None
    assigned_worker_name: str | None = None
    assigned_worker_email: str | None = None
    worker_department: str | None = None


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    complaint_id: int
    actor_user_id: int | None
    action_type: str
    old_status: str | None
    new_status: str | None
    note: str | None
    is_public: bool
    timestamp: datetime
    actor_name: str | None = None
    actor_role: str | None = None


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    complaint_id: int
    student_id: int
    rating: int
    comments: str | None
    created_at: datetime


# ---------------------------------------------------------------------------
# Envelope payloads
# ---------------------------------------------------------------------------

class ComplaintData(CamelModel):
    complaint: ComplaintResponse


class ComplaintListData(CamelModel):
    complaints: list[ComplaintResponse]
    count: int


class ComplaintDetailData(CamelModel):
    complaint: ComplaintResponse
    history: list[HistoryResponse]
    feedback: FeedbackResponse | None = None


class HistoryData(CamelModel):
    history: HistoryResponse


class FeedbackData(CamelModel):
    feedback: FeedbackResponse
