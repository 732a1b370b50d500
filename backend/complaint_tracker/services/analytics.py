"""
Read-only dashboard projections (admin overview, worker statistics).
"""
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from complaint_tracker.core.security import CurrentUser
from complaint_tracker.models.base import utcnow
from complaint_tracker.models.complaint import Complaint, ComplaintStatus
from complaint_tracker.models.user import Role, User
from complaint_tracker.schemas.analytics import CategoryCount, Overview, RecentComplaint, WorkerStats
from complaint_tracker.services.advisor import Advisor

RESOLVED_STATUSES = (ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value)
ACTIVE_STATUSES = (ComplaintStatus.OPEN.value, ComplaintStatus.IN_PROGRESS.value)
RECENT_LIMIT = 10
TOP_CATEGORIES = 10


def resolution_rate(resolved: int, total: int) -> float:
    """Percentage of complaints resolved or closed, one decimal."""
    return round(resolved / total * 100, 1) if total else 0.0


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


async def _counts_by(db: AsyncSession, column, *criteria) -> dict[str, int]:
    stmt = select(column, func.count()).group_by(column)
    if criteria:
        stmt = stmt.where(*criteria)
    return {key: count for key, count in (await db.execute(stmt)).all()}


async def _avg_resolution_days(db: AsyncSession, *criteria) -> float:
    # Computed in Python so SQLite and PostgreSQL agree
    result = await db.execute(select(Complaint.created_at, Complaint.updated_at).where(*criteria))
    durations = [
        (updated - created).total_seconds() / 86400 for created, updated in result.all()
    ]
    return round(sum(durations) / len(durations), 1) if durations else 0.0


async def worker_stats(db: AsyncSession, worker: CurrentUser, overdue_after_days: int) -> WorkerStats:
    assigned = Complaint.assigned_worker_id == worker.id
    cutoff = utcnow() - timedelta(days=overdue_after_days)

    overdue = await _count(
        db,
        select(func.count())
        .select_from(Complaint)
        .where(assigned, Complaint.status.in_(ACTIVE_STATUSES), Complaint.created_at < cutoff),
    )

    return WorkerStats(
        by_status=await _counts_by(db, Complaint.status, assigned),
        overdue_count=overdue,
        avg_resolution_days=await _avg_resolution_days(
            db, assigned, Complaint.status == ComplaintStatus.RESOLVED.value
        ),
    )


async def admin_overview(db: AsyncSession, advisor: Advisor) -> Overview:
    total = await _count(db, select(func.count()).select_from(Complaint))
    resolved = await _count(
        db, select(func.count()).select_from(Complaint).where(Complaint.status.in_(RESOLVED_STATUSES))
    )
    students = await _count(
        db, select(func.count()).select_from(User).where(User.role == Role.STUDENT.value)
    )
    workers = await _count(
        db, select(func.count()).select_from(User).where(User.role == Role.WORKER.value)
    )

    category_count = func.count().label("count")
    by_category = await db.execute(
        select(Complaint.category, category_count)
        .group_by(Complaint.category)
        .order_by(category_count.desc(), Complaint.category)
        .limit(TOP_CATEGORIES)
    )

    student = aliased(User, name="student")
    worker = aliased(User, name="worker")
    recent = await db.execute(
        select(
            Complaint.id,
            Complaint.title,
            Complaint.category,
            Complaint.status,
            Complaint.urgency,
            Complaint.created_at,
            student.name.label("student_name"),
            worker.name.label("worker_name"),
        )
        .join(student, Complaint.student_id == student.id)
        .outerjoin(worker, Complaint.assigned_worker_id == worker.id)
        .order_by(Complaint.created_at.desc(), Complaint.id.desc())
        .limit(RECENT_LIMIT)
    )

    everything = await db.execute(
        select(
            Complaint.id,
            Complaint.title,
            Complaint.category,
            Complaint.status,
            Complaint.urgency,
            Complaint.created_at,
            Complaint.updated_at,
        ).order_by(Complaint.id)
    )
    analysis = await advisor.analyze(
        [
            {
                "id": r.id,
                "title": r.title,
                "category": r.category,
                "status": r.status,
                "urgency": r.urgency,
                "created_at": r.created_at.isoformat(),
                "updated_at": r.updated_at.isoformat(),
            }
            for r in everything.all()
        ]
    )

    return Overview(
        total_complaints=total,
        total_students=students,
        total_workers=workers,
        resolution_rate=resolution_rate(resolved, total),
        avg_resolution_days=await _avg_resolution_days(db, Complaint.status.in_(RESOLVED_STATUSES)),
        by_status=await _counts_by(db, Complaint.status),
        by_category=[CategoryCount(category=c, count=n) for c, n in by_category.all()],
        by_urgency=await _counts_by(db, Complaint.urgency),
        recent_complaints=[RecentComplaint.model_validate(r._asdict()) for r in recent.all()],
        ai_insights=analysis.insights,
        ai_trends=analysis.trends,
        ai_recommendations=analysis.recommendations,
    )
