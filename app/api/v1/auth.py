"""Authentication endpoints — login + current user."""

import uuid

from fastapi import APIRouter
from pydantic import BaseModel, model_validator

from app.api.deps import Authenticated, Session
from app.core.config import get_settings
from app.core.exceptions import AuthzError, RecordNotFound, Unauthenticated
from app.core.security import issue_token
from app.models.organization import Organization, OrganizationRead
from app.models.user import UserRead
from app.services.users import UserDirectory

router = APIRouter(prefix="/auth", tags=["auth"])

settings = get_settings()


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str | None = None
    username: str | None = None
    password: str

    @model_validator(mode="after")
    def _identifier_present(self) -> "LoginRequest":
        if not (self.email or self.username):
            raise ValueError("email or username is required")
        return self


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
    organization: OrganizationRead | None = None


class MeResponse(BaseModel):
    user: UserRead
    organization: OrganizationRead | None = None


# ── Routes ───────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session) -> LoginResponse:
    """Authenticate with email (or username) + password, receive a token."""
    identifier = body.email or body.username or ""
    user = await UserDirectory(session).authenticate(identifier, body.password)
    if user is None:
        raise Unauthenticated("Invalid credentials")

    if not user.is_active:
        raise AuthzError("Account is disabled")

    token = issue_token(
        subject=str(user.id),
        email=user.email,
        role=user.role,
        organization_id=user.organization_id,
        permissions=user.permissions,
    )

    org = (
        await session.get(Organization, user.organization_id)
        if user.organization_id else None
    )
    return LoginResponse(
        access_token=token,
        expires_in=settings.jwt_expire_minutes * 60,
        user=UserRead.model_validate(user),
        organization=OrganizationRead.from_organization(org) if org else None,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(decision: Authenticated, session: Session) -> MeResponse:
    """Return the current user and, unless super admin, their organization."""
    principal = decision.principal
    user = await UserDirectory(session).find_one({"id": uuid.UUID(principal.subject_id)})
    if user is None:
        raise RecordNotFound("User not found")

    org = (
        await session.get(Organization, user.organization_id)
        if user.organization_id else None
    )
    return MeResponse(
        user=UserRead.model_validate(user),
        organization=OrganizationRead.from_organization(org) if org else None,
    )
