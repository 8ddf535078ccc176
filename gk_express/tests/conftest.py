"""
Centralized Test Configuration.
"""

import pytest
from types import SimpleNamespace
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from gk_express.app.main import app, init_realtime, shutdown_realtime
from gk_express.app.db.session import get_db, Base
from gk_express.app.core.jwt import create_access_token
from gk_express.app.models.enums import UserRole
from gk_express.app.realtime.events import EventQueue
from gk_express.app.services.audit import BestEffortAuditSink
from gk_express.app.services.directory import Directory
from gk_express.app.services.message_store import MessageStore
from gk_express.app.services.parcel_registry import ParcelRegistry

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class FakeConnection:
    """Records the frames pushed to it, or fails every send."""

    def __init__(self, fail: bool = False):
        self.frames = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection closed")
        self.frames.append(data)

    def events(self):
        return [frame["event"] for frame in self.frames]

    def data_for(self, event_name):
        return [frame["data"] for frame in self.frames if frame["event"] == event_name]


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def realtime():
    """Fresh bus, presence tracker and dispatcher for every test."""
    init_realtime(app)
    yield app.state
    shutdown_realtime(app)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
async def offices(db_session):
    """Three offices. Only ids are returned: sessions may be rolled back under the tests."""
    directory = Directory(db_session)
    abidjan = await directory.add_office(name="Abidjan", country="Côte d'Ivoire", country_code="CI")
    paris = await directory.add_office(name="Paris", country="France", country_code="FR")
    dakar = await directory.add_office(name="Dakar", country="Senegal", country_code="SN")
    return SimpleNamespace(abidjan=abidjan.id, paris=paris.id, dakar=dakar.id)


@pytest.fixture
async def users(db_session, offices):
    """An agent in Abidjan, an agent in Paris and a boss without an office."""
    directory = Directory(db_session)
    abidjan_agent = await directory.add_user(
        "agent.abidjan@gk-express.test", "Awa Koné", UserRole.AGENT, offices.abidjan
    )
    paris_agent = await directory.add_user(
        "agent.paris@gk-express.test", "Luc Martin", UserRole.AGENT, offices.paris
    )
    boss = await directory.add_user("boss@gk-express.test", "Grace Kouassi", UserRole.BOSS, None)

    def identity(user, office_id):
        return {
            "sub": user.email,
            "user_id": user.id,
            "role": user.role.value,
            "office_id": office_id,
        }

    return SimpleNamespace(
        abidjan_agent=identity(abidjan_agent, offices.abidjan),
        paris_agent=identity(paris_agent, offices.paris),
        boss=identity(boss, None),
    )


@pytest.fixture
def auth_headers(users):
    """Bearer headers keyed like ``users``."""
    def headers(identity):
        return {"Authorization": f"Bearer {create_access_token(identity)}"}

    return SimpleNamespace(
        abidjan_agent=headers(users.abidjan_agent),
        paris_agent=headers(users.paris_agent),
        boss=headers(users.boss),
    )


@pytest.fixture
def events():
    return EventQueue()


@pytest.fixture
def registry(db_session, events):
    return ParcelRegistry(db_session, Directory(db_session), BestEffortAuditSink(), events)


@pytest.fixture
def store(db_session, events):
    return MessageStore(db_session, Directory(db_session), events)
