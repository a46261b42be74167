"""Organization model — one school, the tenant isolation boundary."""

import re
from datetime import datetime
from enum import StrEnum

from pydantic import field_validator
from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from app.core.plans import DEFAULT_PLAN, Plan
from app.models.base import TimestampMixin

ORGANIZATION_ID_PATTERN = r"^[a-z0-9][a-z0-9_\-]*$"


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class Organization(TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    # Stable, URL-safe, e.g. "new_holy_cross_school_482913"
    organization_id: str = Field(primary_key=True, max_length=64)
    name: str = Field(max_length=255, nullable=False)
    domain: str | None = Field(default=None, max_length=255, unique=True, index=True)

    # Display / contact metadata, opaque to the access core
    settings: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Embedded subscription
    plan: Plan = Field(default=DEFAULT_PLAN)
    subscription_status: SubscriptionStatus = Field(
        default=SubscriptionStatus.ACTIVE, index=True,
    )
    expires_at: datetime = Field(nullable=False)
    features: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


# ── Pydantic schemas ─────────────────────────────────────────

class OrganizationCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    organization_id: str | None = Field(default=None, max_length=64)
    domain: str | None = Field(default=None, max_length=255)
    plan: Plan = DEFAULT_PLAN
    expires_at: datetime | None = None
    theme: str = "blue"
    logo: str | None = None
    contact: dict = Field(default_factory=dict)
    address: dict = Field(default_factory=dict)
    settings: dict = Field(default_factory=dict)

    @field_validator("organization_id")
    @classmethod
    def _url_safe(cls, value: str | None) -> str | None:
        if value is not None and not re.fullmatch(ORGANIZATION_ID_PATTERN, value):
            raise ValueError("organization_id must be lowercase letters, digits, '_' or '-'")
        return value


class OrganizationUpdate(SQLModel):
    """Profile fields only. Plan and features change via SubscriptionUpdate."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    domain: str | None = Field(default=None, max_length=255)
    settings: dict | None = None


class SubscriptionUpdate(SQLModel):
    plan: Plan = DEFAULT_PLAN
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    expires_at: datetime | None = None
    # Explicit override; omitted means "derive from plan"
    features: list[str] | None = None


class SubscriptionRead(SQLModel):
    plan: Plan
    status: SubscriptionStatus
    expires_at: datetime
    features: list[str]


class OrganizationRead(SQLModel):
    organization_id: str
    name: str
    domain: str | None
    settings: dict
    subscription: SubscriptionRead
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_organization(cls, org: Organization) -> "OrganizationRead":
        return cls(
            organization_id=org.organization_id,
            name=org.name,
            domain=org.domain,
            settings=org.settings,
            subscription=SubscriptionRead(
                plan=org.plan,
                status=org.subscription_status,
                expires_at=org.expires_at,
                features=org.features,
            ),
            created_at=org.created_at,
            updated_at=org.updated_at,
        )
