"""
Pytest configuration and fixtures for brokerage tests.

Provides:
- Async test database with SQLite
- Test client for API testing
- Factory fixtures for creating test data
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brokerage.config import Settings, get_settings
from brokerage.core.database import Database, get_db
from brokerage.core.datetime_utils import to_naive_utc
from brokerage.main import app
from brokerage.models import Base
from brokerage.models.batch_report_setting import AutoCreatePeriod, BatchReportSetting, BatchStatus
from brokerage.models.inquiry import Inquiry
from brokerage.models.property import Property

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_CLIENT_ID = "client-1"
TEST_EMPLOYEE_ID = "employee-1"
TEST_API_KEY = "test-api-key"


# Override settings for testing
class TestSettings(Settings):
    database_url: str = TEST_DATABASE_URL
    debug: bool = True
    openai_api_key: str = ""
    api_key: str = TEST_API_KEY
    scheduler_enabled: bool = False


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep real credentials from the environment out of tests."""
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("API_KEY", TEST_API_KEY)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def file_database(tmp_path) -> AsyncGenerator[Database, None]:
    """
    File-backed database for code that opens concurrent sessions.

    Each session gets its own connection, unlike the in-memory StaticPool.
    """
    database = Database.from_url(f"sqlite+aiosqlite:///{tmp_path / 'batch.db'}")

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield database

    await database.dispose()


@pytest_asyncio.fixture
async def client(db_engine, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with database override."""

    async def override_get_db():
        yield db_session

    def override_get_settings():
        return TestSettings()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = override_get_settings
    app.state.database = Database(db_engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Client-Id": TEST_CLIENT_ID, "X-Employee-Id": TEST_EMPLOYEE_ID},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    del app.state.database


# ============================================================================
# Factory Fixtures
# ============================================================================


async def _create_property(
    db: AsyncSession,
    property_id: str = None,
    client_id: str = TEST_CLIENT_ID,
    name: str = "Test Residence 101",
) -> Property:
    prop = Property(
        id=property_id or f"prop-{uuid.uuid4().hex[:8]}",
        client_id=client_id,
        name=name,
        address="1-1 Marunouchi, Chiyoda-ku",
    )
    db.add(prop)
    await db.flush()
    return prop


async def _create_inquiry(
    db: AsyncSession,
    property_id: str,
    inquired_at: datetime,
    client_id: str = TEST_CLIENT_ID,
    customer_name: str = "Taro Yamada",
    title: str = "Viewing request",
) -> Inquiry:
    inquiry = Inquiry(
        client_id=client_id,
        property_id=property_id,
        customer_id=f"cust-{uuid.uuid4().hex[:8]}",
        customer_name=customer_name,
        inquired_at=to_naive_utc(inquired_at),
        title=title,
        summary="Asked about parking and viewing on the weekend.",
    )
    db.add(inquiry)
    await db.flush()
    return inquiry


async def _create_setting(
    db: AsyncSession,
    property_id: str,
    next_execution_date: datetime,
    client_id: str = TEST_CLIENT_ID,
    weekday: int = 1,
    auto_create_period: AutoCreatePeriod = AutoCreatePeriod.ONE_WEEK,
    auto_generate: bool = True,
    status: BatchStatus = BatchStatus.ACTIVE,
    deleted_at: datetime = None,
    created_at: datetime = None,
) -> BatchReportSetting:
    setting = BatchReportSetting(
        client_id=client_id,
        employee_id=TEST_EMPLOYEE_ID,
        property_id=property_id,
        property_name="Test Residence 101",
        weekday=weekday,
        start_date=date(2024, 1, 1),
        auto_create_period=auto_create_period,
        auto_generate=auto_generate,
        execution_time="01:00",
        next_execution_date=to_naive_utc(next_execution_date),
        status=status,
        execution_count=0,
        deleted_at=deleted_at,
    )
    if created_at is not None:
        setting.created_at = created_at
    db.add(setting)
    await db.flush()
    return setting


@pytest_asyncio.fixture
async def property_factory(db_session: AsyncSession):
    """Factory for creating test properties."""

    async def _create(**kwargs) -> Property:
        return await _create_property(db_session, **kwargs)

    return _create


@pytest_asyncio.fixture
async def inquiry_factory(db_session: AsyncSession):
    """Factory for creating test inquiries."""

    async def _create(**kwargs) -> Inquiry:
        return await _create_inquiry(db_session, **kwargs)

    return _create


@pytest_asyncio.fixture
async def setting_factory(db_session: AsyncSession):
    """Factory for creating batch settings with a fixed next execution."""

    async def _create(**kwargs) -> BatchReportSetting:
        return await _create_setting(db_session, **kwargs)

    return _create


class _CommittedFactories:
    """Factories that commit each row to a standalone database."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def _commit(self, creator, **kwargs):
        async with self.database.session() as db:
            row = await creator(db, **kwargs)
            await db.commit()
        return row

    async def property(self, **kwargs) -> Property:
        return await self._commit(_create_property, **kwargs)

    async def inquiry(self, **kwargs) -> Inquiry:
        return await self._commit(_create_inquiry, **kwargs)

    async def setting(self, **kwargs) -> BatchReportSetting:
        return await self._commit(_create_setting, **kwargs)


@pytest.fixture
def committed(file_database: Database) -> _CommittedFactories:
    """Factories for the file-backed database (rows are committed)."""
    return _CommittedFactories(file_database)


@pytest.fixture
def mock_summary_response():
    """Mock response for OpenAI structured report output."""
    return {
        "title": "Weekly report: Test Residence 101",
        "summary": "Two customers inquired this week. One viewing is scheduled.",
        "current_status": "active",
    }
