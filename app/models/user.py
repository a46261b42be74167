"""User model — an operator account, bound to one organization unless super admin."""

import uuid
from datetime import datetime

from pydantic import field_validator
from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from app.core.permissions import UserRole
from app.models.base import TimestampMixin, new_uuid


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Null only for super admins
    organization_id: str | None = Field(
        default=None, foreign_key="organizations.organization_id", nullable=True, index=True,
    )
    username: str = Field(max_length=320, unique=True, nullable=False, index=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    name: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    role: UserRole = Field(default=UserRole.STAFF, index=True)
    permissions: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    is_active: bool = Field(default=True)
    last_login: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class UserCreate(SQLModel):
    """Super-admin user creation; any role, any organization."""
    email: str = Field(max_length=320)
    username: str | None = Field(default=None, max_length=320)
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    role: UserRole = UserRole.STAFF
    organization_id: str | None = None
    permissions: list[str] | None = None
    is_active: bool = True


class UserUpdate(SQLModel):
    email: str | None = Field(default=None, max_length=320)
    username: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, min_length=8, max_length=128)
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    role: UserRole | None = None
    organization_id: str | None = None
    permissions: list[str] | None = None
    is_active: bool | None = None


class SchoolUserCreate(SQLModel):
    """Created by a school admin inside their own organization."""
    email: str = Field(max_length=320)
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    role: UserRole = UserRole.STAFF

    @field_validator("role")
    @classmethod
    def _school_roles_only(cls, value: UserRole) -> UserRole:
        if value == UserRole.SUPER_ADMIN:
            raise ValueError("school users cannot be super admins")
        return value


class UserRead(SQLModel):
    id: uuid.UUID
    organization_id: str | None
    username: str
    email: str
    name: str
    phone: str
    role: UserRole
    permissions: list[str]
    is_active: bool
    last_login: datetime | None
    created_at: datetime
