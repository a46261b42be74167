"""Organization registry — tenant lookups, subscription checks and lifecycle.

Subscription state is read from the database on every call. Expiry is time
dependent, so nothing here is cached between requests.
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.exceptions import ConflictError, OrganizationNotFound
from app.core.plans import features_for_plan
from app.models.base import as_naive_utc, utcnow
from app.models.content import ContentRecord
from app.models.organization import (
    Organization,
    OrganizationCreate,
    OrganizationUpdate,
    SubscriptionStatus,
    SubscriptionUpdate,
)
from app.models.user import User

logger = logging.getLogger(__name__)

settings = get_settings()

# Generated ids that collide are retried with a random suffix this many times
ID_ATTEMPTS = 5


def generate_organization_id(name: str, suffix: str | None = None) -> str:
    """URL-friendly id from a display name, e.g. ``new_holy_cross_school_482913``.

    The suffix defaults to the last six digits of the current time in ms.
    """
    base = re.sub(r"[^a-z0-9\s]", "", name.lower()).strip()
    base = re.sub(r"\s+", "_", base)[:50] or "org"
    suffix = suffix or str(time.time_ns() // 1_000_000)[-6:]
    return f"{base}_{suffix}"


@dataclass(frozen=True)
class CascadeResult:
    organization_id: str
    users_deleted: int
    records_deleted: int


class OrganizationRegistry:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── Lookups ───────────────────────────────────────────────

    async def find_by_id(self, organization_id: str) -> Organization:
        org = await self._session.get(
            Organization, organization_id, populate_existing=True,
        )
        if org is None:
            raise OrganizationNotFound()
        return org

    async def find_by_domain(self, domain: str) -> Organization | None:
        result = await self._session.execute(
            select(Organization).where(Organization.domain == domain.lower())
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Organization]:
        result = await self._session.execute(
            select(Organization).order_by(Organization.created_at.desc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    # ── Subscription predicates ───────────────────────────────

    @staticmethod
    def is_usable(org: Organization, now: datetime | None = None) -> bool:
        """Active and not past its expiry."""
        current = as_naive_utc(now) if now is not None else utcnow()
        return (
            org.subscription_status == SubscriptionStatus.ACTIVE
            and current <= org.expires_at
        )

    @staticmethod
    def has_feature(org: Organization, feature: str) -> bool:
        return feature in (org.features or [])

    # ── Mutations ─────────────────────────────────────────────

    async def create(self, body: OrganizationCreate, *, commit: bool = True) -> Organization:
        """Create an organization with an active, plan-derived subscription.

        With ``commit=False`` the row is only flushed so the caller can add
        dependents (the first admin user) in the same transaction.
        """
        if body.organization_id:
            organization_id = body.organization_id
            if await self._session.get(Organization, organization_id) is not None:
                raise ConflictError(f"Organization '{organization_id}' already exists")
        else:
            organization_id = await self._unused_organization_id(body.name)

        domain = body.domain.lower() if body.domain else None
        if domain:
            await self._ensure_domain_free(domain)

        expires_at = (
            as_naive_utc(body.expires_at) if body.expires_at is not None
            else utcnow() + timedelta(days=settings.default_subscription_days)
        )
        org = Organization(
            organization_id=organization_id,
            name=body.name,
            domain=domain,
            settings={
                "theme": body.theme,
                "logo": body.logo,
                "contact": body.contact,
                "address": body.address,
                **body.settings,
            },
            plan=body.plan,
            subscription_status=SubscriptionStatus.ACTIVE,
            expires_at=expires_at,
            features=features_for_plan(body.plan),
        )
        self._session.add(org)
        if commit:
            await self._session.commit()
            await self._session.refresh(org)
        else:
            await self._session.flush()

        logger.info("Created organization %s on plan %s", organization_id, body.plan)
        return org

    async def update(self, organization_id: str, body: OrganizationUpdate) -> Organization:
        org = await self.find_by_id(organization_id)
        data = body.model_dump(exclude_unset=True)

        if "domain" in data:
            domain = data.pop("domain")
            domain = domain.lower() if domain else None
            if domain and domain != org.domain:
                await self._ensure_domain_free(domain)
            org.domain = domain
        if data.get("settings") is not None:
            org.settings = {**org.settings, **data["settings"]}
        if data.get("name"):
            org.name = data["name"]

        org.updated_at = utcnow()
        self._session.add(org)
        await self._session.commit()
        await self._session.refresh(org)
        return org

    async def update_subscription(
        self, organization_id: str, body: SubscriptionUpdate,
    ) -> Organization:
        """Replace the subscription. Features follow the plan unless overridden."""
        org = await self.find_by_id(organization_id)
        org.plan = body.plan
        org.subscription_status = body.status
        org.expires_at = (
            as_naive_utc(body.expires_at) if body.expires_at is not None
            else utcnow() + timedelta(days=settings.default_subscription_days)
        )
        org.features = (
            list(body.features) if body.features is not None
            else features_for_plan(body.plan)
        )
        org.updated_at = utcnow()
        self._session.add(org)
        await self._session.commit()
        await self._session.refresh(org)

        logger.info(
            "Subscription for %s set to %s/%s until %s",
            organization_id, org.plan, org.subscription_status, org.expires_at,
        )
        return org

    async def delete(self, organization_id: str) -> CascadeResult:
        """Delete users and content of the organization, then the organization.

        All of it is one transaction: if any dependent cleanup fails nothing
        is removed, the organization included.
        """
        org = await self.find_by_id(organization_id)
        try:
            users_deleted = await self._purge_users(organization_id)
            records_deleted = await self._purge_content(organization_id)
            await self._session.delete(org)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            logger.exception("Cascade delete of organization %s rolled back", organization_id)
            raise

        logger.info(
            "Deleted organization %s (%d users, %d records)",
            organization_id, users_deleted, records_deleted,
        )
        return CascadeResult(
            organization_id=organization_id,
            users_deleted=users_deleted,
            records_deleted=records_deleted,
        )

    # ── Reporting ─────────────────────────────────────────────

    async def plan_stats(self, now: datetime | None = None) -> list[dict]:
        """Organization count and usable count per plan."""
        stats: dict[str, dict] = {}
        for org in await self.list_all():
            entry = stats.setdefault(org.plan, {"plan": org.plan, "count": 0, "active": 0})
            entry["count"] += 1
            if self.is_usable(org, now):
                entry["active"] += 1
        return sorted(stats.values(), key=lambda s: s["plan"])

    async def count_expired(self, now: datetime | None = None) -> int:
        current = as_naive_utc(now) if now is not None else utcnow()
        return sum(1 for org in await self.list_all() if org.expires_at < current)

    # ── Internal helpers ──────────────────────────────────────

    async def _ensure_domain_free(self, domain: str) -> None:
        if await self.find_by_domain(domain) is not None:
            raise ConflictError(f"Domain '{domain}' is already taken")

    async def _unused_organization_id(self, name: str) -> str:
        candidate = generate_organization_id(name)
        for _ in range(ID_ATTEMPTS):
            if await self._session.get(Organization, candidate) is None:
                return candidate
            candidate = generate_organization_id(name, f"{secrets.randbelow(1_000_000):06d}")
        raise ConflictError(f"Could not generate a free id for '{name}'")

    async def _purge_users(self, organization_id: str) -> int:
        result = await self._session.execute(
            delete(User).where(User.organization_id == organization_id)  # type: ignore[arg-type]
        )
        return result.rowcount or 0

    async def _purge_content(self, organization_id: str) -> int:
        result = await self._session.execute(
            delete(ContentRecord).where(ContentRecord.organization_id == organization_id)  # type: ignore[arg-type]
        )
        return result.rowcount or 0
