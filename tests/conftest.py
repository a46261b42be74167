"""Shared test fixtures — async SQLite in-memory DB, test client and seeders."""

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

# Must be set before app settings are first read
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import app.models  # noqa: E402, F401
from app.core.database import get_session  # noqa: E402
from app.core.permissions import UserRole  # noqa: E402
from app.core.plans import Plan  # noqa: E402
from app.core.security import issue_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models.base import utcnow  # noqa: E402
from app.models.organization import (  # noqa: E402
    Organization,
    OrganizationCreate,
    SubscriptionStatus,
)
from app.models.user import User, UserCreate  # noqa: E402
from app.services.registry import OrganizationRegistry  # noqa: E402
from app.services.users import UserDirectory  # noqa: E402

TEST_PASSWORD = "password1234"  # noqa: S105


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Seeders ───────────────────────────────────────────────────

@pytest.fixture
def make_org(session):
    """Create an organization; status and expiry can be forced afterwards."""

    async def _make(
        organization_id: str,
        plan: Plan = Plan.PREMIUM,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        expires_at: datetime | None = None,
        domain: str | None = None,
    ) -> Organization:
        registry = OrganizationRegistry(session)
        org = await registry.create(OrganizationCreate(
            name=organization_id.replace("_", " ").title(),
            organization_id=organization_id,
            plan=plan,
            domain=domain,
            expires_at=expires_at or utcnow() + timedelta(days=30),
        ))
        if status != SubscriptionStatus.ACTIVE:
            org.subscription_status = status
            session.add(org)
            await session.commit()
            await session.refresh(org)
        return org

    return _make


@pytest.fixture
def make_user(session):
    async def _make(
        email: str,
        role: UserRole = UserRole.SCHOOL_ADMIN,
        organization_id: str | None = None,
        permissions: list[str] | None = None,
        is_active: bool = True,
    ) -> User:
        return await UserDirectory(session).create(UserCreate(
            email=email,
            password=TEST_PASSWORD,
            name=email.split("@")[0],
            role=role,
            organization_id=organization_id,
            permissions=permissions,
            is_active=is_active,
        ))

    return _make


@pytest.fixture
def headers_for():
    """Bearer headers for a user, minted directly without a login round trip."""

    def _headers(user: User) -> dict[str, str]:
        token = issue_token(
            subject=str(user.id),
            email=user.email,
            role=user.role,
            organization_id=user.organization_id,
            permissions=user.permissions,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
