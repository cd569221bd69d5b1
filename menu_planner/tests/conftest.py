"""
Test fixtures - in-memory SQLite database + authenticated HTTP clients
"""
import os

# Cheap hashing and a fixed secret for tests; must be set before settings load
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from menu_planner.database import Base, get_db
from menu_planner.main import app
from menu_planner.api.auth import get_password_hash, create_access_token
from menu_planner.models import User, UserRole, StaffDirectoryEntry, Menu, MenuItem
from menu_planner.services.login_throttle import login_throttle

STAFF_PASSWORD = "Staffpass1!"
ADMIN_PASSWORD = "Adminpass1!"


@pytest.fixture(autouse=True)
def reset_login_throttle():
    login_throttle.clear()
    yield
    login_throttle.clear()


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Baseline data: an admin, a staff user, the directory, an active menu with items"""
    admin = User(
        username="admin",
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
    )
    staff = User(
        username="ama mensah",
        password_hash=get_password_hash(STAFF_PASSWORD),
        role=UserRole.STAFF,
    )
    directory = [
        StaffDirectoryEntry(full_name="Ama Mensah"),
        StaffDirectoryEntry(full_name="  Kofi Boateng "),
        StaffDirectoryEntry(full_name="Efua Owusu"),
    ]
    # Monday of a week comfortably in the future, deadline before it starts
    today = date.today()
    week_start = today - timedelta(days=today.weekday()) + timedelta(days=7)
    menu = Menu(
        week_start=week_start,
        deadline=datetime.now(timezone.utc) + timedelta(days=3),
        is_active=True,
    )

    db_session.add_all([admin, staff, menu, *directory])
    await db_session.commit()

    # Main course then dessert, per day
    items = []
    for day in ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]:
        items.append(MenuItem(menu_id=menu.id, name=f"{day} Jollof", day=day))
        items.append(MenuItem(menu_id=menu.id, name=f"{day} Fruit Salad", day=day))
        items.append(MenuItem(menu_id=menu.id, name=f"{day} Banku", day=day))
        items.append(MenuItem(menu_id=menu.id, name=f"{day} Ice Cream", day=day))
    for item in items:
        db_session.add(item)
        await db_session.flush()
    await db_session.commit()

    for obj in (admin, staff, menu):
        await db_session.refresh(obj)

    by_day = {}
    for item in items:
        by_day.setdefault(item.day, []).append(item)

    return {"admin": admin, "staff": staff, "menu": menu, "items": by_day}


def _make_client(db_session, token=None):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    client = AsyncClient(transport=transport, base_url="http://test", follow_redirects=True)
    if token:
        client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """httpx AsyncClient authenticated as the staff user"""
    async with _make_client(db_session, create_access_token(seed_data["staff"])) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def admin_client(db_session, seed_data):
    """httpx AsyncClient authenticated as the admin"""
    async with _make_client(db_session, create_access_token(seed_data["admin"])) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(db_session):
    """Unauthenticated httpx AsyncClient"""
    async with _make_client(db_session) as ac:
        yield ac
    app.dependency_overrides.clear()
