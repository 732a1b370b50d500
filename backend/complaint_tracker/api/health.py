"""
GET /health — liveness check.

No authentication required. Reports DB connectivity but always answers 200
while the process is serving.
"""
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from complaint_tracker.core.db import check_db_connection
from complaint_tracker.schemas.common import ApiResponse

router = APIRouter()


class HealthStatus(BaseModel):
    status: str
    db: str
    timestamp: datetime


@router.get("/health", response_model=ApiResponse[HealthStatus], tags=["health"])
async def health_check() -> ApiResponse[HealthStatus]:
    db_ok = await check_db_connection()
    return ApiResponse(
        message="CRT API is running",
        data=HealthStatus(
            status="ok",
            db="ok" if db_ok else "error",
            timestamp=datetime.now(timezone.utc),
        ),
    )
