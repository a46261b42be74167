"""Super-admin surface — organizations, users and platform overview.

Every route here is super-admin only. Organization routes carry the target
organization in the path, which the access pipeline resolves as the tenant.
"""

import math
import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel
from sqlmodel import Field

from app.api.deps import Session, SuperAdmin
from app.core.exceptions import RecordNotFound
from app.core.permissions import UserRole
from app.models.base import utcnow
from app.models.organization import (
    OrganizationCreate,
    OrganizationRead,
    OrganizationUpdate,
    SubscriptionUpdate,
)
from app.models.user import User, UserCreate, UserRead, UserUpdate
from app.services.registry import OrganizationRegistry
from app.services.users import UserDirectory

router = APIRouter(prefix="/super-admin", tags=["super-admin"])


# ── Schemas ───────────────────────────────────────────────────

class PlanStat(BaseModel):
    plan: str
    count: int
    active: int


class RoleStat(BaseModel):
    role: str
    count: int
    active: int


class OrganizationList(BaseModel):
    data: list[OrganizationRead]
    stats: list[PlanStat]
    total: int


class OrganizationDetail(BaseModel):
    data: OrganizationRead
    users: list[UserRead]
    user_stats: list[RoleStat]


class OrganizationBootstrapRequest(OrganizationCreate):
    """The organization plus its first school admin, created together."""
    admin_email: str = Field(max_length=320)
    admin_password: str = Field(min_length=8, max_length=128)
    admin_name: str = Field(default="Admin", max_length=255)


class OrganizationBootstrapResponse(BaseModel):
    organization: OrganizationRead
    admin_user: UserRead


class CascadeResponse(BaseModel):
    organization_id: str
    users_deleted: int
    records_deleted: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UserList(BaseModel):
    data: list[UserRead]
    pagination: Pagination
    stats: list[RoleStat]


class DashboardOverview(BaseModel):
    total_organizations: int
    active_organizations: int
    total_users: int
    organizations_by_plan: list[PlanStat]
    users_by_role: list[RoleStat]


class Dashboard(BaseModel):
    overview: DashboardOverview
    recent_users: list[UserRead]
    recent_organizations: list[OrganizationRead]


class HealthReport(BaseModel):
    status: str
    expired_subscriptions: int
    timestamp: datetime


# ── Organizations ─────────────────────────────────────────────

@router.get("/organizations", response_model=OrganizationList)
async def list_organizations(_: SuperAdmin, session: Session) -> OrganizationList:
    registry = OrganizationRegistry(session)
    organizations = await registry.list_all()
    return OrganizationList(
        data=[OrganizationRead.from_organization(o) for o in organizations],
        stats=[PlanStat(**s) for s in await registry.plan_stats()],
        total=len(organizations),
    )


@router.get("/organizations/{organization_id}", response_model=OrganizationDetail)
async def get_organization(
    organization_id: str, _: SuperAdmin, session: Session,
) -> OrganizationDetail:
    org = await OrganizationRegistry(session).find_by_id(organization_id)
    directory = UserDirectory(session)
    users = await directory.find({"organization_id": organization_id})
    return OrganizationDetail(
        data=OrganizationRead.from_organization(org),
        users=[UserRead.model_validate(u) for u in users],
        user_stats=[RoleStat(**s) for s in await directory.role_stats(organization_id)],
    )


@router.post(
    "/organizations",
    response_model=OrganizationBootstrapResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an organization and its first school admin",
)
async def create_organization(
    body: OrganizationBootstrapRequest, _: SuperAdmin, session: Session,
) -> OrganizationBootstrapResponse:
    """Both rows are committed together or not at all."""
    try:
        org = await OrganizationRegistry(session).create(
            OrganizationCreate(**body.model_dump(include=set(OrganizationCreate.model_fields))),
            commit=False,
        )
        admin = await UserDirectory(session).create(UserCreate(
            email=body.admin_email,
            password=body.admin_password,
            name=body.admin_name,
            role=UserRole.SCHOOL_ADMIN,
            organization_id=org.organization_id,
        ))
    except Exception:
        await session.rollback()
        raise
    await session.refresh(org)

    return OrganizationBootstrapResponse(
        organization=OrganizationRead.from_organization(org),
        admin_user=UserRead.model_validate(admin),
    )


@router.put("/organizations/{organization_id}", response_model=OrganizationRead)
async def update_organization(
    organization_id: str, body: OrganizationUpdate, _: SuperAdmin, session: Session,
) -> OrganizationRead:
    org = await OrganizationRegistry(session).update(organization_id, body)
    return OrganizationRead.from_organization(org)


@router.put("/organizations/{organization_id}/subscription", response_model=OrganizationRead)
async def update_subscription(
    organization_id: str, body: SubscriptionUpdate, _: SuperAdmin, session: Session,
) -> OrganizationRead:
    org = await OrganizationRegistry(session).update_subscription(organization_id, body)
    return OrganizationRead.from_organization(org)


@router.delete("/organizations/{organization_id}", response_model=CascadeResponse)
async def delete_organization(
    organization_id: str, _: SuperAdmin, session: Session,
) -> CascadeResponse:
    """Delete the organization with all of its users and content."""
    result = await OrganizationRegistry(session).delete(organization_id)
    return CascadeResponse(
        organization_id=result.organization_id,
        users_deleted=result.users_deleted,
        records_deleted=result.records_deleted,
    )


# ── Users ─────────────────────────────────────────────────────

@router.get("/users", response_model=UserList)
async def list_users(
    _: SuperAdmin,
    session: Session,
    organization_id: str | None = None,
    role: UserRole | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> UserList:
    predicate: dict = {}
    if organization_id:
        predicate["organization_id"] = organization_id
    if role:
        predicate["role"] = role

    directory = UserDirectory(session)
    users = await directory.find(predicate, offset=(page - 1) * limit, limit=limit)
    total = await directory.count(predicate)
    return UserList(
        data=[UserRead.model_validate(u) for u in users],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        stats=[RoleStat(**s) for s in await directory.role_stats()],
    )


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, _: SuperAdmin, session: Session) -> UserRead:
    if body.organization_id and body.role != UserRole.SUPER_ADMIN:
        await OrganizationRegistry(session).find_by_id(body.organization_id)
    user = await UserDirectory(session).create(body)
    return UserRead.model_validate(user)


@router.put("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID, body: UserUpdate, _: SuperAdmin, session: Session,
) -> UserRead:
    directory = UserDirectory(session)
    user = await _get_user_or_404(user_id, directory)
    if body.organization_id:
        await OrganizationRegistry(session).find_by_id(body.organization_id)
    user = await directory.update(user, body)
    return UserRead.model_validate(user)


@router.put("/users/{user_id}/toggle-status", response_model=UserRead)
async def toggle_user_status(
    user_id: uuid.UUID, _: SuperAdmin, session: Session,
) -> UserRead:
    directory = UserDirectory(session)
    user = await directory.toggle_status(await _get_user_or_404(user_id, directory))
    return UserRead.model_validate(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: uuid.UUID, _: SuperAdmin, session: Session) -> None:
    directory = UserDirectory(session)
    await directory.delete(await _get_user_or_404(user_id, directory))


# ── Overview ──────────────────────────────────────────────────

@router.get("/dashboard", response_model=Dashboard)
async def dashboard(_: SuperAdmin, session: Session) -> Dashboard:
    registry = OrganizationRegistry(session)
    directory = UserDirectory(session)

    organizations = await registry.list_all()
    role_stats = await directory.role_stats()
    return Dashboard(
        overview=DashboardOverview(
            total_organizations=len(organizations),
            active_organizations=sum(1 for o in organizations if registry.is_usable(o)),
            total_users=sum(s["count"] for s in role_stats),
            organizations_by_plan=[PlanStat(**s) for s in await registry.plan_stats()],
            users_by_role=[RoleStat(**s) for s in role_stats],
        ),
        recent_users=[UserRead.model_validate(u) for u in await directory.recent(10)],
        recent_organizations=[OrganizationRead.from_organization(o) for o in organizations[:5]],
    )


@router.get("/health", response_model=HealthReport)
async def health(_: SuperAdmin, session: Session) -> HealthReport:
    return HealthReport(
        status="healthy",
        expired_subscriptions=await OrganizationRegistry(session).count_expired(),
        timestamp=utcnow(),
    )


# ── Internal helper ───────────────────────────────────────────

async def _get_user_or_404(user_id: uuid.UUID, directory: UserDirectory) -> User:
    user = await directory.find_one({"id": user_id})
    if user is None:
        raise RecordNotFound("User not found")
    return user
