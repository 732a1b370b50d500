from datetime import datetime
from typing import Any

from pydantic import BaseModel

from complaint_tracker.schemas.common import CamelModel


class WorkerStats(CamelModel):
    by_status: dict[str, int]
    overdue_count: int
    avg_resolution_days: float


class CategoryCount(CamelModel):
    category: str
    count: int


class RecentComplaint(BaseModel):
    id: int
    title: str
    category: str
    status: str
    urgency: str
    created_at: datetime
    student_name: str | None
    worker_name: str | None


class Overview(CamelModel):
    total_complaints: int
    total_students: int
    total_workers: int
    resolution_rate: float
    avg_resolution_days: float
    by_status: dict[str, int]
    by_category: list[CategoryCount]
    by_urgency: dict[str, int]
    recent_complaints: list[RecentComplaint]
    ai_insights: list[str]
    ai_trends: dict[str, Any]
    ai_recommendations: list[str]
