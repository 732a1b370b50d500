"""
Account operations: student self-registration, login, and admin user management.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from complaint_tracker.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from complaint_tracker.core.security import CurrentUser, create_access_token, hash_password, verify_password
from complaint_tracker.models.base import utcnow
from complaint_tracker.models.user import Role, User
from complaint_tracker.schemas.auth import AuthData, LoginRequest, RegisterRequest
from complaint_tracker.schemas.user import UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)


async def _find_duplicate(db: AsyncSession, email: str, student_id: str | None) -> User | None:
    criteria = [User.email == email]
    if student_id:
        criteria.append(User.student_id == student_id)
    result = await db.execute(select(User).where(or_(*criteria)).limit(1))
    return result.scalars().first()


async def _insert_user(db: AsyncSession, user: User, conflict_message: str) -> User:
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(conflict_message) from exc
    return user


def _auth_data(user: User) -> AuthData:
    return AuthData(user=UserResponse.model_validate(user), token=create_access_token(user))


async def register(db: AsyncSession, payload: RegisterRequest) -> AuthData:
    """Create a student account and sign them in."""
    email = payload.email.lower()
    message = "User with this email or student ID already exists"
    if await _find_duplicate(db, email, payload.student_id):
        raise ConflictError(message)

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        role=Role.STUDENT.value,
        department=None,
        student_id=payload.student_id or None,
    )
    await _insert_user(db, user, message)
    logger.info("Registered student %s", user.id)
    return _auth_data(user)


async def login(db: AsyncSession, payload: LoginRequest) -> AuthData:
    """Authenticate by email or student ID; one message for every failure."""
    result = await db.execute(
        select(User)
        .where(or_(User.email == payload.identifier.lower(), User.student_id == payload.identifier))
        .order_by(User.id)
        .limit(1)
    )
    user = result.scalars().first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")

    logger.info("User %s logged in (role=%s)", user.id, user.role)
    return _auth_data(user)


# ---------------------------------------------------------------------------
# Admin user management
# ---------------------------------------------------------------------------

async def list_users(
    db: AsyncSession, role: str | None = None, department: str | None = None
) -> list[UserResponse]:
    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role)
    if department:
        stmt = stmt.where(User.department == department)
    result = await db.execute(stmt.order_by(User.created_at.desc(), User.id.desc()))
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


async def create_user(db: AsyncSession, payload: UserCreate) -> UserResponse:
    email = payload.email.lower()
    message = "User with this email or student ID already exists"
    if await _find_duplicate(db, email, payload.student_id):
        raise ConflictError(message)

    user = User(
        name=payload.name,
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        department=payload.department or None,
        student_id=payload.student_id or None,
    )
    await _insert_user(db, user, message)
    logger.info("Created user %s (role=%s)", user.id, user.role)
    return UserResponse.model_validate(user)


async def update_user(db: AsyncSession, user_id: int, payload: UserUpdate) -> UserResponse:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if payload.email is not None and payload.email.lower() != user.email:
        taken = await db.execute(select(User.id).where(User.email == payload.email.lower()))
        if taken.first():
            raise ConflictError("User with this email already exists")
        user.email = payload.email.lower()
    if payload.name is not None:
        user.name = payload.name
    if payload.role is not None:
        user.role = payload.role.value
    if payload.department is not None:
        user.department = payload.department
    user.updated_at = utcnow()

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("User with this email already exists") from exc
    return UserResponse.model_validate(user)


async def delete_user(db: AsyncSession, admin: CurrentUser, user_id: int) -> None:
    if user_id == admin.id:
        raise ValidationError("Cannot delete your own account")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    await db.delete(user)
    await db.commit()
    logger.info("User %s deleted by admin %s", user_id, admin.id)
