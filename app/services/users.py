"""User directory — the credential store and user bookkeeping."""

import logging
import uuid
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import ConflictError, MissingTenantContext
from app.core.permissions import UserRole, default_permissions
from app.core.security import dummy_verify_password, hash_password, verify_password
from app.models.base import utcnow
from app.models.user import User, UserCreate, UserUpdate
from app.services.store import predicate_clauses

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def authenticate(self, identifier: str, secret: str) -> User | None:
        """Return the user for a valid email/username + password, else None.

        Unknown identifiers still pay for one hash verification so both
        failure modes take the same time.
        """
        result = await self._session.execute(
            select(User).where(or_(User.email == identifier, User.username == identifier))
        )
        user = result.scalars().first()
        if user is None:
            dummy_verify_password()
            return None
        if not verify_password(secret, user.password_hash):
            return None

        user.last_login = utcnow()
        self._session.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        return user

    # ── Queries ───────────────────────────────────────────────

    async def find(
        self,
        predicate: dict[str, Any],
        offset: int = 0,
        limit: int | None = None,
    ) -> list[User]:
        stmt = (
            select(User)
            .where(*predicate_clauses(User, predicate))
            .order_by(User.email.asc())  # type: ignore[union-attr]
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def find_one(self, predicate: dict[str, Any]) -> User | None:
        result = await self._session.execute(
            select(User).where(*predicate_clauses(User, predicate))
        )
        return result.scalars().first()

    async def count(self, predicate: dict[str, Any]) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(User).where(*predicate_clauses(User, predicate))
        )
        return result.scalar_one()

    async def role_stats(self, organization_id: str | None = None) -> list[dict]:
        """User count and active count per role."""
        predicate = {"organization_id": organization_id} if organization_id else {}
        stats: dict[str, dict] = {}
        for user in await self.find(predicate):
            entry = stats.setdefault(user.role, {"role": user.role, "count": 0, "active": 0})
            entry["count"] += 1
            if user.is_active:
                entry["active"] += 1
        return sorted(stats.values(), key=lambda s: s["role"])

    async def recent(self, limit: int = 10) -> list[User]:
        result = await self._session.execute(
            select(User).order_by(User.created_at.desc()).limit(limit)  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    # ── Mutations ─────────────────────────────────────────────

    async def create(self, body: UserCreate, *, commit: bool = True) -> User:
        """Create a user. Permissions default from the role table."""
        username = body.username or body.email
        await self._ensure_unique(body.email, username)

        if body.role == UserRole.SUPER_ADMIN:
            organization_id = None
        elif not body.organization_id:
            raise MissingTenantContext("organization_id is required for this role")
        else:
            organization_id = body.organization_id

        user = User(
            organization_id=organization_id,
            username=username,
            email=body.email,
            password_hash=hash_password(body.password),
            name=body.name,
            phone=body.phone,
            role=body.role,
            permissions=(
                list(body.permissions) if body.permissions is not None
                else default_permissions(body.role)
            ),
            is_active=body.is_active,
        )
        self._session.add(user)
        if commit:
            await self._session.commit()
            await self._session.refresh(user)
        else:
            await self._session.flush()

        logger.info("Created %s user %s in %s", user.role, user.email, organization_id or "*")
        return user

    async def update(self, user: User, body: UserUpdate) -> User:
        data = body.model_dump(exclude_unset=True)

        email = data.get("email") or user.email
        username = data.get("username") or user.username
        if email != user.email or username != user.username:
            await self._ensure_unique(
                email if email != user.email else None,
                username if username != user.username else None,
                exclude_id=user.id,
            )

        role = data.pop("role", None) or user.role
        organization_id = (
            None if role == UserRole.SUPER_ADMIN
            else data.pop("organization_id", None) or user.organization_id
        )
        data.pop("organization_id", None)
        if role != UserRole.SUPER_ADMIN and not organization_id:
            raise MissingTenantContext("organization_id is required for this role")

        password = data.pop("password", None)
        if password:
            user.password_hash = hash_password(password)

        permissions = data.pop("permissions", None)
        if role != user.role and permissions is None:
            permissions = default_permissions(role)
        if permissions is not None:
            user.permissions = list(permissions)
        user.role = role
        user.organization_id = organization_id

        for field, value in data.items():
            if value is not None:
                setattr(user, field, value)

        user.updated_at = utcnow()
        self._session.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        return user

    async def toggle_status(self, user: User) -> User:
        user.is_active = not user.is_active
        user.updated_at = utcnow()
        self._session.add(user)
        await self._session.commit()
        await self._session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self._session.delete(user)
        await self._session.commit()

    # ── Internal helpers ──────────────────────────────────────

    async def _ensure_unique(
        self, email: str | None, username: str | None, exclude_id: uuid.UUID | None = None,
    ) -> None:
        clauses = []
        if email:
            clauses.extend([User.email == email, User.username == email])
        if username:
            clauses.extend([User.username == username, User.email == username])
        if not clauses:
            return
        stmt = select(User.id).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        result = await self._session.execute(stmt)
        if result.first() is not None:
            raise ConflictError("Email or username already exists")
