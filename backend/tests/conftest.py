"""
Shared pytest fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
live Postgres instance.  Each test gets a fresh database.

Environment overrides are applied before importing complaint_tracker modules
so that Settings() picks up the test database URL and the rule-based advisor.
"""
import os

# Set test environment BEFORE importing any complaint_tracker module
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ADVISOR_MODE", "mock")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from complaint_tracker.core.security import create_access_token, hash_password
from complaint_tracker.models import Base, Complaint, ComplaintHistory, User
from complaint_tracker.models.base import utcnow
from complaint_tracker.services.advisor import RuleBasedAdvisor


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite doesn't enforce FK by default — enable it
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _make_user(
    db: AsyncSession,
    name: str,
    email: str,
    role: str,
    department: str | None = None,
    student_id: str | None = None,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        department=department,
        student_id=student_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def student_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Asha Student", "asha@campus.edu", "student", student_id="STU001")


@pytest_asyncio.fixture
async def other_student(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Ben Student", "ben@campus.edu", "student", student_id="STU002")


@pytest_asyncio.fixture
async def library_worker(db_session: AsyncSession) -> User:
    return await _make_user(
        db_session, "Lena Librarian", "lena@campus.edu", "worker", department="Library Services"
    )


@pytest_asyncio.fixture
async def hostel_worker(db_session: AsyncSession) -> User:
    return await _make_user(
        db_session, "Hari Hostel", "hari@campus.edu", "worker", department="Hostel Management"
    )


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "Ada Admin", "admin@campus.edu", "admin")


@pytest.fixture
def auth_headers():
    """Build an Authorization header carrying a freshly signed token for `user`."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def make_complaint(db_session: AsyncSession):
    """Insert a complaint (plus its "created" history row) directly."""

    async def _make(
        student: User,
        *,
        title: str = "Broken projector in hall",
        description: str = "The projector in lecture hall B does not turn on.",
        category: str = "Infrastructure",
        urgency: str = "medium",
        status: str = "open",
        worker: User | None = None,
        created_at=None,
        updated_at=None,
    ) -> Complaint:
        now = utcnow()
        complaint = Complaint(
            student_id=student.id,
            title=title,
            description=description,
            category=category,
            urgency=urgency,
            status=status,
            assigned_worker_id=worker.id if worker else None,
            assigned_department=worker.department if worker else None,
            resolution_message=None,
            ai_summary=None,
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
        )
        db_session.add(complaint)
        await db_session.flush()
        db_session.add(
            ComplaintHistory(
                complaint_id=complaint.id,
                actor_user_id=student.id,
                action_type="created",
                old_status=None,
                new_status="open",
                note="Complaint created",
                is_public=False,
                timestamp=complaint.created_at,
            )
        )
        await db_session.commit()
        return complaint

    return _make


@pytest.fixture
def advisor():
    return RuleBasedAdvisor()


@pytest_asyncio.fixture
async def client(engine, db_session: AsyncSession, advisor):
    """
    AsyncClient for the FastAPI app with the DB dependency overridden to use
    the test session and the advisor dependency overridden by the `advisor`
    fixture (tests may override that fixture with a spy).
    """
    from complaint_tracker.main import app
    from complaint_tracker.core.db import get_db
    from complaint_tracker.services.advisor import get_advisor

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_advisor] = lambda: advisor

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
