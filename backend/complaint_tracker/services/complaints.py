"""
Complaint lifecycle — creation, status changes, assignment, notes, feedback.

Every state-changing operation appends its history row(s) and commits once,
so a complaint update and its audit trail land together.  History rows are
only ever inserted.

Lookups scoped by ownership (students) or assignment (workers) report a
foreign complaint exactly like a missing one.
"""
import logging
from typing import Any

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from complaint_tracker.core.errors import ForbiddenError, NotFoundError, ValidationError
from complaint_tracker.core.security import CurrentUser
from complaint_tracker.models.base import utcnow
from complaint_tracker.models.complaint import (
    FEEDBACK_STATUSES,
    Complaint,
    ComplaintHistory,
    ComplaintStatus,
    Feedback,
    HistoryAction,
    Urgency,
)
from complaint_tracker.models.user import Role, User
from complaint_tracker.schemas.complaint import (
    AssignRequest,
    ComplaintCreate,
    ComplaintDetailData,
    ComplaintResponse,
    FeedbackCreate,
    FeedbackResponse,
    HistoryResponse,
    NoteCreate,
    ReassignRequest,
    StatusUpdate,
)
from complaint_tracker.services.advisor import Advisor

logger = logging.getLogger(__name__)

Student = aliased(User, name="student")
Worker = aliased(User, name="worker")

# Always shown to the owning student, whatever is_public says
STUDENT_VISIBLE_ACTIONS = frozenset(
    {HistoryAction.CREATED.value, HistoryAction.STATUS_CHANGE.value, HistoryAction.ASSIGNED.value}
)

_URGENCY_RANK = case(
    {"critical": 4, "high": 3, "medium": 2, "low": 1},
    value=Complaint.urgency,
    else_=0,
)

_VALID_URGENCIES = {u.value for u in Urgency}


def is_visible_to_student(entry: Any) -> bool:
    """Whether a history entry may be shown to the student who owns the complaint."""
    return bool(entry.is_public) or entry.action_type in STUDENT_VISIBLE_ACTIONS


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _complaint_select():
    return (
        select(
            Complaint,
            Student.name.label("student_name"),
            Student.email.label("student_email"),
            Student.student_id.label("student_number"),
            Worker.name.label("assigned_worker_name"),
            Worker.email.label("assigned_worker_email"),
            Worker.department.label("worker_department"),
        )
        .join(Student, Complaint.student_id == Student.id)
        .outerjoin(Worker, Complaint.assigned_worker_id == Worker.id)
    )


def _to_response(row) -> ComplaintResponse:
    complaint, *joined = row
    extras = dict(zip(row._fields[1:], joined))
    return ComplaintResponse.model_validate(complaint).model_copy(update=extras)


def _advisor_view(complaint: Complaint) -> dict[str, Any]:
    return ComplaintResponse.model_validate(complaint).model_dump(mode="json")


async def _load_complaint(db: AsyncSession, complaint_id: int) -> ComplaintResponse:
    row = (await db.execute(_complaint_select().where(Complaint.id == complaint_id))).first()
    if row is None:
        raise NotFoundError("Complaint not found")
    return _to_response(row)


async def _load_history(db: AsyncSession, complaint_id: int) -> list[HistoryResponse]:
    result = await db.execute(
        select(
            ComplaintHistory,
            User.name.label("actor_name"),
            User.role.label("actor_role"),
        )
        .outerjoin(User, ComplaintHistory.actor_user_id == User.id)
        .where(ComplaintHistory.complaint_id == complaint_id)
        .order_by(ComplaintHistory.timestamp.asc(), ComplaintHistory.id.asc())
    )
    return [
        HistoryResponse.model_validate(entry).model_copy(
            update={"actor_name": actor_name, "actor_role": actor_role}
        )
        for entry, actor_name, actor_role in result.all()
    ]


async def _worker_roster(db: AsyncSession) -> list[dict[str, Any]]:
    result = await db.execute(
        select(User.id, User.name, User.department)
        .where(User.role == Role.WORKER.value)
        .order_by(User.id)
    )
    return [{"id": r.id, "name": r.name, "department": r.department} for r in result.all()]


async def _require_worker(db: AsyncSession, worker_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == worker_id, User.role == Role.WORKER.value)
    )
    worker = result.scalars().first()
    if worker is None:
        raise ValidationError("Invalid worker ID")
    return worker


async def _get_assigned(db: AsyncSession, complaint_id: int, worker_id: int) -> Complaint:
    result = await db.execute(
        select(Complaint).where(
            Complaint.id == complaint_id, Complaint.assigned_worker_id == worker_id
        )
    )
    complaint = result.scalars().first()
    if complaint is None:
        raise NotFoundError("Complaint not found or not assigned to you")
    return complaint


async def _ensure_summary(
    db: AsyncSession,
    advisor: Advisor,
    complaint: Complaint,
    history: list[HistoryResponse],
) -> None:
    """Compute and persist the summary on first view; never recompute."""
    if complaint.ai_summary is not None:
        return
    complaint.ai_summary = await advisor.summarize(
        _advisor_view(complaint), [h.model_dump(mode="json") for h in history]
    )
    await db.commit()


async def _feedback_for(
    db: AsyncSession, complaint_id: int, student_id: int | None = None
) -> FeedbackResponse | None:
    stmt = select(Feedback).where(Feedback.complaint_id == complaint_id)
    if student_id is not None:
        stmt = stmt.where(Feedback.student_id == student_id)
    feedback = (await db.execute(stmt.order_by(Feedback.id))).scalars().first()
    return FeedbackResponse.model_validate(feedback) if feedback else None


def _history(
    complaint_id: int,
    actor_id: int,
    action: HistoryAction,
    *,
    note: str | None = None,
    old_status: str | None = None,
    new_status: str | None = None,
    is_public: bool = False,
) -> ComplaintHistory:
    return ComplaintHistory(
        complaint_id=complaint_id,
        actor_user_id=actor_id,
        action_type=action.value,
        old_status=old_status,
        new_status=new_status,
        note=note,
        is_public=is_public,
        timestamp=utcnow(),
    )


# ---------------------------------------------------------------------------
# Student operations
# ---------------------------------------------------------------------------

async def create_complaint(
    db: AsyncSession,
    advisor: Advisor,
    student: CurrentUser,
    payload: ComplaintCreate,
) -> ComplaintResponse:
    category = payload.category
    urgency = payload.urgency.value if payload.urgency else None

    if category is None or urgency is None:
        classification = await advisor.classify(payload.description, {"title": payload.title})
        category = category or classification.category
        urgency = urgency or classification.urgency
        if urgency not in _VALID_URGENCIES:
            logger.warning("Advisor returned unknown urgency %r; using medium", urgency)
            urgency = Urgency.MEDIUM.value

    complaint = Complaint(
        student_id=student.id,
        title=payload.title,
        description=payload.description,
        category=category,
        urgency=urgency,
        status=ComplaintStatus.OPEN.value,
        assigned_worker_id=None,
        assigned_department=None,
        resolution_message=None,
        ai_summary=None,
    )
    db.add(complaint)
    await db.flush()

    db.add(
        _history(
            complaint.id,
            student.id,
            HistoryAction.CREATED,
            new_status=ComplaintStatus.OPEN.value,
            note="Complaint created",
        )
    )
    await db.flush()

    routing = await advisor.route(_advisor_view(complaint), await _worker_roster(db))
    if routing.worker_id is not None:
        complaint.assigned_worker_id = routing.worker_id
        complaint.assigned_department = routing.department
        db.add(_history(complaint.id, student.id, HistoryAction.ASSIGNED, note=routing.reason))
    elif routing.department:
        complaint.assigned_department = routing.department

    await db.commit()
    logger.info(
        "Complaint %s created by student %s (category=%s, urgency=%s, worker=%s)",
        complaint.id, student.id, category, urgency, complaint.assigned_worker_id,
    )
    return await _load_complaint(db, complaint.id)


async def list_student_complaints(
    db: AsyncSession,
    student: CurrentUser,
    status: str | None = None,
    category: str | None = None,
) -> list[ComplaintResponse]:
    stmt = _complaint_select().where(Complaint.student_id == student.id)
    if status:
        stmt = stmt.where(Complaint.status == status)
    if category:
        stmt = stmt.where(Complaint.category == category)
    stmt = stmt.order_by(Complaint.created_at.desc(), Complaint.id.desc())
    return [_to_response(row) for row in (await db.execute(stmt)).all()]


async def get_student_complaint(
    db: AsyncSession,
    advisor: Advisor,
    student: CurrentUser,
    complaint_id: int,
) -> ComplaintDetailData:
    row = (
        await db.execute(
            _complaint_select().where(
                Complaint.id == complaint_id, Complaint.student_id == student.id
            )
        )
    ).first()
    if row is None:
        raise NotFoundError("Complaint not found or access denied")

    history = [h for h in await _load_history(db, complaint_id) if is_visible_to_student(h)]
    await _ensure_summary(db, advisor, row[0], history)

    return ComplaintDetailData(
        complaint=_to_response(row),
        history=history,
        feedback=await _feedback_for(db, complaint_id, student.id),
    )


async def submit_feedback(
    db: AsyncSession,
    student: CurrentUser,
    complaint_id: int,
    payload: FeedbackCreate,
) -> FeedbackResponse:
    complaint = await db.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFoundError("Complaint not found")
    if complaint.student_id != student.id:
        raise ForbiddenError("Access denied")
    if complaint.status not in FEEDBACK_STATUSES:
        raise ValidationError("Feedback can only be submitted for resolved or closed complaints")

    result = await db.execute(
        select(Feedback).where(
            Feedback.complaint_id == complaint_id, Feedback.student_id == student.id
        )
    )
    feedback = result.scalars().first()
    if feedback is None:
        feedback = Feedback(complaint_id=complaint_id, student_id=student.id)
        db.add(feedback)
    feedback.rating = payload.rating
    feedback.comments = payload.comments
    feedback.created_at = utcnow()

    db.add(
        _history(
            complaint_id,
            student.id,
            HistoryAction.FEEDBACK_ADDED,
            note=f"Rated {payload.rating}/5",
            is_public=True,
        )
    )
    await db.commit()
    logger.info("Feedback %s/5 on complaint %s by student %s", payload.rating, complaint_id, student.id)
    return FeedbackResponse.model_validate(feedback)


# ---------------------------------------------------------------------------
# Worker operations
# ---------------------------------------------------------------------------

async def list_worker_complaints(
    db: AsyncSession,
    worker: CurrentUser,
    status: str | None = None,
    category: str | None = None,
    urgency: str | None = None,
) -> list[ComplaintResponse]:
    stmt = _complaint_select().where(Complaint.assigned_worker_id == worker.id)
    if status:
        stmt = stmt.where(Complaint.status == status)
    if category:
        stmt = stmt.where(Complaint.category == category)
    if urgency:
        stmt = stmt.where(Complaint.urgency == urgency)
    stmt = stmt.order_by(_URGENCY_RANK.desc(), Complaint.created_at.asc(), Complaint.id.asc())
    return [_to_response(row) for row in (await db.execute(stmt)).all()]


async def get_worker_complaint(
    db: AsyncSession,
    advisor: Advisor,
    worker: CurrentUser,
    complaint_id: int,
) -> ComplaintDetailData:
    row = (
        await db.execute(
            _complaint_select().where(
                Complaint.id == complaint_id, Complaint.assigned_worker_id == worker.id
            )
        )
    ).first()
    if row is None:
        raise NotFoundError("Complaint not found or not assigned to you")

    history = await _load_history(db, complaint_id)
    await _ensure_summary(db, advisor, row[0], history)

    return ComplaintDetailData(
        complaint=_to_response(row),
        history=history,
        feedback=await _feedback_for(db, complaint_id),
    )


async def update_status(
    db: AsyncSession,
    worker: CurrentUser,
    complaint_id: int,
    payload: StatusUpdate,
) -> ComplaintResponse:
    complaint = await _get_assigned(db, complaint_id, worker.id)
    old_status = complaint.status
    new_status = payload.status.value

    complaint.status = new_status
    if payload.resolution_message:
        complaint.resolution_message = payload.resolution_message
    complaint.updated_at = utcnow()

    db.add(
        _history(
            complaint_id,
            worker.id,
            HistoryAction.STATUS_CHANGE,
            old_status=old_status,
            new_status=new_status,
            note=payload.note or f"Status changed to {new_status}",
            is_public=True,
        )
    )
    await db.flush()
    if new_status == ComplaintStatus.RESOLVED.value and payload.resolution_message:
        db.add(
            _history(
                complaint_id,
                worker.id,
                HistoryAction.RESOLVED,
                note=payload.resolution_message,
                is_public=True,
            )
        )

    await db.commit()
    logger.info(
        "Complaint %s status %s -> %s by worker %s", complaint_id, old_status, new_status, worker.id
    )
    return await _load_complaint(db, complaint_id)


async def add_note(
    db: AsyncSession,
    worker: CurrentUser,
    complaint_id: int,
    payload: NoteCreate,
) -> HistoryResponse:
    await _get_assigned(db, complaint_id, worker.id)

    entry = _history(
        complaint_id,
        worker.id,
        HistoryAction.NOTE_ADDED,
        note=payload.note,
        is_public=payload.is_public,
    )
    db.add(entry)
    await db.commit()
    return HistoryResponse.model_validate(entry).model_copy(
        update={"actor_name": worker.name, "actor_role": worker.role}
    )


async def reassign_complaint(
    db: AsyncSession,
    worker: CurrentUser,
    complaint_id: int,
    payload: ReassignRequest,
) -> None:
    if payload.new_worker_id is None:
        raise ValidationError("New worker ID is required")

    complaint = await _get_assigned(db, complaint_id, worker.id)
    new_worker = await _require_worker(db, payload.new_worker_id)

    complaint.assigned_worker_id = new_worker.id
    complaint.updated_at = utcnow()
    db.add(
        _history(
            complaint_id,
            worker.id,
            HistoryAction.REASSIGNED,
            note=payload.reason or f"Reassigned to {new_worker.name}",
            is_public=False,
        )
    )
    await db.commit()
    logger.info("Complaint %s reassigned by worker %s to worker %s", complaint_id, worker.id, new_worker.id)


# ---------------------------------------------------------------------------
# Admin operations
# ---------------------------------------------------------------------------

async def list_all_complaints(
    db: AsyncSession,
    status: str | None = None,
    category: str | None = None,
    urgency: str | None = None,
    worker_id: int | None = None,
    search: str | None = None,
) -> list[ComplaintResponse]:
    stmt = _complaint_select()
    if status:
        stmt = stmt.where(Complaint.status == status)
    if category:
        stmt = stmt.where(Complaint.category == category)
    if urgency:
        stmt = stmt.where(Complaint.urgency == urgency)
    if worker_id is not None:
        stmt = stmt.where(Complaint.assigned_worker_id == worker_id)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Complaint.title.ilike(pattern), Complaint.description.ilike(pattern)))
    stmt = stmt.order_by(Complaint.created_at.desc(), Complaint.id.desc())
    return [_to_response(row) for row in (await db.execute(stmt)).all()]


async def assign_complaint(
    db: AsyncSession,
    admin: CurrentUser,
    complaint_id: int,
    payload: AssignRequest,
) -> None:
    complaint = await db.get(Complaint, complaint_id)
    if complaint is None:
        raise NotFoundError("Complaint not found")

    if payload.worker_id is not None:
        await _require_worker(db, payload.worker_id)

    action = HistoryAction.REASSIGNED if complaint.assigned_worker_id else HistoryAction.ASSIGNED
    complaint.assigned_worker_id = payload.worker_id
    complaint.assigned_department = payload.department or None
    complaint.updated_at = utcnow()
    db.add(
        _history(
            complaint_id,
            admin.id,
            action,
            note=f"Admin {action.value} complaint",
            is_public=False,
        )
    )
    await db.commit()
    logger.info("Complaint %s %s by admin %s (worker=%s)", complaint_id, action.value, admin.id, payload.worker_id)
