"""Pytest configuration and fixtures."""

from dataclasses import dataclass
from typing import Any, AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.app.core.security import create_access_token
from backend.app.db.base import Base, get_db
from backend.app.db.gateway import ReportGateway
from backend.app.main import app
from backend.app.models import Item, SchoolClass, Student, User
from backend.app.models.user import StudentRole, UserRole, UserStatus
from backend.app.services.aggregation import AggregationService
from backend.app.services.lifecycle import ReportLifecycleService
from backend.app.services.notifications import NotificationChannel, NotificationDispatcher


class RecordingChannel(NotificationChannel):
    """Notification channel that keeps every published event."""

    def __init__(self):
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    async def publish(self, room: str, event: str, data: dict[str, Any]) -> None:
        self.events.append((room, event, data))

    def of_type(self, event: str) -> list[tuple[str, str, dict[str, Any]]]:
        return [e for e in self.events if e[1] == event]


@dataclass
class Seed:
    class_id: str
    other_class_id: str
    admin_id: str
    cs_id: str
    cp_id: str
    reporter_id: str
    outsider_cs_id: str
    item_ids: list[str]


async def make_user(
    db: AsyncSession,
    name: str,
    email: str,
    *,
    role: str = UserRole.STUDENT.value,
    status: str = UserStatus.ACTIVE.value,
    class_id: str | None = None,
    student_role: str | None = None,
) -> User:
    user = User(name=name, email=email, role=role, status=status)
    db.add(user)
    await db.flush()
    if role == UserRole.STUDENT.value:
        db.add(Student(user_id=user.id, class_id=class_id, student_role=student_role))
        await db.flush()
    return user


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory bound to a fresh in-memory database.

    Each test gets a fresh database with all tables created.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway(test_db: AsyncSession) -> ReportGateway:
    return ReportGateway(test_db)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def dispatcher(channel: RecordingChannel) -> NotificationDispatcher:
    return NotificationDispatcher(channel=channel)


@pytest.fixture
async def seed(test_db: AsyncSession) -> Seed:
    """Two classes, an admin, CS/CP/WS students in the first class and a CS in the second."""
    school_class = SchoolClass(name="Computer Science Year 1")
    other_class = SchoolClass(name="Mathematics Year 2")
    test_db.add_all([school_class, other_class])
    test_db.add_all([
        Item(id="i1", name="Projector"),
        Item(id="i2", name="Fire extinguisher"),
        Item(id="i3", name="Windows"),
    ])
    await test_db.flush()

    admin = await make_user(test_db, "Admin", "admin@example.com", role=UserRole.ADMIN.value)
    cs = await make_user(
        test_db, "Alice CS", "cs@example.com", class_id=school_class.id, student_role=StudentRole.CS.value
    )
    cp = await make_user(
        test_db, "Bob CP", "cp@example.com", class_id=school_class.id, student_role=StudentRole.CP.value
    )
    reporter = await make_user(
        test_db, "Carol WS", "ws@example.com", class_id=school_class.id, student_role=StudentRole.WS.value
    )
    outsider = await make_user(
        test_db, "Dan CS", "dan@example.com", class_id=other_class.id, student_role=StudentRole.CS.value
    )
    await test_db.commit()

    return Seed(
        class_id=school_class.id,
        other_class_id=other_class.id,
        admin_id=admin.id,
        cs_id=cs.id,
        cp_id=cp.id,
        reporter_id=reporter.id,
        outsider_cs_id=outsider.id,
        item_ids=["i1", "i2", "i3"],
    )


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def headers(seed: Seed) -> dict[str, dict[str, str]]:
    """Bearer headers keyed by seeded account: admin, cs, cp, reporter, outsider."""
    return {
        "admin": auth_headers(seed.admin_id),
        "cs": auth_headers(seed.cs_id),
        "cp": auth_headers(seed.cp_id),
        "reporter": auth_headers(seed.reporter_id),
        "outsider": auth_headers(seed.outsider_cs_id),
    }


@pytest.fixture(scope="function")
async def test_client_with_db(
    session_factory,
    channel: RecordingChannel,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client with in-memory database.

    Overrides the app's database dependency and swaps the websocket rooms for a
    recording channel.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    original_connections = app.state.connections
    app.state.connections = channel

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.state.connections = original_connections
    app.dependency_overrides.clear()


@pytest.fixture
def lifecycle(gateway: ReportGateway, dispatcher: NotificationDispatcher) -> ReportLifecycleService:
    return ReportLifecycleService(gateway, dispatcher)


@pytest.fixture
def aggregation(gateway: ReportGateway) -> AggregationService:
    return AggregationService(gateway)
