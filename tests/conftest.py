"""Test configuration and fixtures"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from uuid import uuid4

from tableflow.main import app
from tableflow.database import Base, get_db
from tableflow.models.guest import Guest
from tableflow.models.table import DiningTable
from tableflow.models.tenant import Tenant
from tableflow.models.user import User, UserRole
from tableflow.api.auth import get_password_hash
from tableflow.scheduling import ReservationScheduler, SqlReservationStore, TableLocks


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_tenant(test_db):
    """Create a test tenant"""
    tenant = Tenant(
        id=uuid4(),
        name="Test Restaurant",
        timezone="America/New_York",
        is_active=True,
    )
    test_db.add(tenant)
    await test_db.commit()

    return tenant


@pytest.fixture
async def other_tenant(test_db):
    """A second restaurant sharing the database"""
    tenant = Tenant(
        id=uuid4(),
        name="Other Restaurant",
        timezone="Europe/London",
        is_active=True,
    )
    test_db.add(tenant)
    await test_db.commit()

    return tenant


@pytest.fixture
async def table_a(test_db, test_tenant):
    """Four-top that seats two to four"""
    table = DiningTable(
        id=uuid4(),
        tenant_id=test_tenant.id,
        name="A",
        section="main",
        min_capacity=2,
        max_capacity=4,
        is_active=True,
    )
    test_db.add(table)
    await test_db.commit()

    return table


@pytest.fixture
async def test_tables(test_db, test_tenant, table_a):
    """Table A plus a two-top, a six-top and an inactive table"""
    tables = [
        table_a,
        DiningTable(
            id=uuid4(),
            tenant_id=test_tenant.id,
            name="B",
            section="bar",
            min_capacity=1,
            max_capacity=2,
            is_active=True,
        ),
        DiningTable(
            id=uuid4(),
            tenant_id=test_tenant.id,
            name="C",
            section="main",
            min_capacity=4,
            max_capacity=6,
            is_active=True,
        ),
        DiningTable(
            id=uuid4(),
            tenant_id=test_tenant.id,
            name="D",
            section="patio",
            min_capacity=2,
            max_capacity=4,
            is_active=False,
        ),
    ]
    for table in tables[1:]:
        test_db.add(table)
    await test_db.commit()

    return tables


@pytest.fixture
async def test_guest(test_db, test_tenant):
    """Create a returning guest profile"""
    guest = Guest(
        id=uuid4(),
        tenant_id=test_tenant.id,
        first_name="Jane",
        last_name="Doe",
        email="jane@example.com",
        total_visits=0,
    )
    test_db.add(guest)
    await test_db.commit()

    return guest


@pytest.fixture
async def test_user(test_db, test_tenant):
    """Create a test user"""
    user = User(
        id=uuid4(),
        tenant_id=test_tenant.id,
        email="test@example.com",
        hashed_password=get_password_hash("testpass123"),
        full_name="Test User",
        role=UserRole.RESTAURANT_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
async def test_admin_user(test_db):
    """Create a super admin user"""
    user = User(
        id=uuid4(),
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.SUPER_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()

    return user


@pytest.fixture
def scheduler(test_db):
    """Scheduler over the test session"""
    return ReservationScheduler(SqlReservationStore(test_db), locks=TableLocks())


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    from tableflow.api.auth import create_access_token

    token = create_access_token(test_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    from tableflow.api.auth import create_access_token

    token = create_access_token(test_admin_user)
    client.headers["Authorization"] = f"Bearer {token}"

    return client
