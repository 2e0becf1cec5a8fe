"""Shared fixtures: a throwaway SQLite database, an in-process client and users."""

import os
import tempfile
import uuid

_TEST_DIR = tempfile.mkdtemp(prefix="dialer-tests-")

# Must be set before the app modules read their settings
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TEST_DIR, "log")
os.environ["MASTER_OTP"] = ""
os.environ["AI_DIALER_URL"] = "http://dialer.test"

import pytest
import pytest_asyncio
from fastapi_users.password import PasswordHelper
from httpx import ASGITransport, AsyncClient

from main import app
from app.core.database import Base, SessionLocal, engine
from app.models import AdminSettings, Campaign, CampaignContact, CampaignEmployee, Contact, Employee, User, UserRole, UserStatus
from app.schemas.permissions import no_permissions
from app.services import verification
from app.services.email_queue import email_queue
from app.utils.auth import get_jwt_strategy

PASSWORD = "password123"

password_helper = PasswordHelper()


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Fresh tables for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def clear_in_memory_state():
    """The OTP store, pending signups and email queue are process-wide."""
    verification.otp_store._entries.clear()
    verification.pending_users._entries.clear()
    email_queue.queue.clear()
    yield
    email_queue.queue.clear()


@pytest_asyncio.fixture
async def client():
    """In-process client; unhandled errors come back as 500 responses."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session():
    async with SessionLocal() as session:
        yield session


async def create_user(session, email: str, role: UserRole = UserRole.ADMIN, **fields) -> User:
    user = User(
        email=email,
        username=fields.pop("username", email),
        name=fields.pop("name", email.split("@")[0]),
        hashed_password=password_helper.hash(PASSWORD),
        role=role,
        status=fields.pop("status", UserStatus.ACTIVE),
        is_active=fields.pop("is_active", True),
        is_verified=True,
        **fields,
    )
    session.add(user)
    if role in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        await session.flush()
        session.add(AdminSettings(admin_id=user.id))
    await session.commit()
    return user


async def auth_headers(user: User) -> dict:
    token = await get_jwt_strategy().write_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin(db_session):
    return await create_user(db_session, "admin@example.com")


@pytest_asyncio.fixture
async def admin_headers(admin):
    return await auth_headers(admin)


@pytest_asyncio.fixture
async def other_admin(db_session):
    return await create_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def other_admin_headers(other_admin):
    return await auth_headers(other_admin)


@pytest_asyncio.fixture
async def super_admin(db_session):
    return await create_user(db_session, "root@example.com", role=UserRole.SUPER_ADMIN)


@pytest_asyncio.fixture
async def make_employee(db_session, admin):
    """Factory: an employee of ``admin`` with a permission document and assignments."""
    async def factory(permissions: dict = None, campaigns: list = (), email: str = None):
        user = await create_user(
            db_session,
            email or f"employee-{uuid.uuid4().hex[:8]}@example.com",
            role=UserRole.EMPLOYEE,
        )
        employee = Employee(
            user_id=user.id,
            admin_id=admin.id,
            permissions=permissions if permissions is not None else no_permissions().to_json(),
        )
        db_session.add(employee)
        await db_session.flush()
        for campaign in campaigns:
            db_session.add(CampaignEmployee(campaign_id=campaign.id, employee_id=employee.id))
        await db_session.commit()
        return employee, await auth_headers(user)
    return factory


@pytest_asyncio.fixture
async def campaign(db_session, admin):
    campaign = Campaign(
        name="Spring outreach",
        admin_id=admin.id,
        system_message="You are a friendly scheduling assistant.",
        initial_message="Hi, do you have a minute?",
    )
    db_session.add(campaign)
    await db_session.commit()
    return campaign


@pytest_asyncio.fixture
async def contact(db_session, admin):
    contact = Contact(name="Ada Lovelace", phone="+15550001111", email="ada@example.com", tags=["vip"], admin_id=admin.id)
    db_session.add(contact)
    await db_session.commit()
    return contact


@pytest_asyncio.fixture
async def member(db_session, campaign, contact):
    membership = CampaignContact(campaign_id=campaign.id, contact_id=contact.id)
    db_session.add(membership)
    await db_session.commit()
    return membership


@pytest_asyncio.fixture
async def make_user(db_session):
    """Factory: a user plus bearer headers for it."""
    async def factory(email: str, role: UserRole = UserRole.ADMIN, **fields):
        user = await create_user(db_session, email, role=role, **fields)
        return user, await auth_headers(user)
    return factory
