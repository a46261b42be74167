"""Authorization pipeline — admit or deny one request.

The decision is an ordered list of stages run in sequence. The first stage
that raises ends the request; a stage may also admit early (pre-flight,
super admin). Every input is re-derived per request: the verified token,
the request signals and the organization row as currently committed.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from app.core.exceptions import (
    AppError,
    CrossTenantForbidden,
    FeatureNotEntitled,
    MissingPermission,
    OrganizationInactive,
    SuperAdminRequired,
    Unauthenticated,
)
from app.core.security import verify_token
from app.models.base import utcnow
from app.models.organization import Organization
from app.services.principal import Principal
from app.services.registry import OrganizationRegistry
from app.services.tenancy import RequestSignals, TenantContext, resolve_tenant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessRule:
    """What a route demands of the caller."""

    protected: bool = True
    permission: str | None = None
    feature: str | None = None
    requires_org_validity: bool = True
    super_admin_only: bool = False


@dataclass(frozen=True)
class Decision:
    """An admitted request, ready to be turned into a scope filter."""

    principal: Principal | None
    resolved_organization_id: str | None
    is_super_admin_bypass: bool = False
    organization: Organization | None = None
    preflight: bool = False

    @property
    def is_super_admin(self) -> bool:
        return self.principal is not None and self.principal.is_super_admin


@dataclass
class _State:
    signals: RequestSignals
    rule: AccessRule
    principal: Principal | None = None
    tenant: TenantContext = field(default_factory=lambda: TenantContext(None))
    organization: Organization | None = None
    admitted: bool = False
    preflight: bool = False


Stage = Callable[[_State], Awaitable[None]]


class AccessPipeline:
    def __init__(
        self,
        registry: OrganizationRegistry,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.registry = registry
        self._clock = clock
        self.stages: tuple[Stage, ...] = (
            self._preflight,
            self._authenticate,
            self._resolve_tenant,
            self._super_admin,
            self._tenant_isolation,
            self._permission,
            self._feature,
            self._organization_validity,
        )

    async def evaluate(self, signals: RequestSignals, rule: AccessRule) -> Decision:
        state = _State(signals=signals, rule=rule)
        try:
            for stage in self.stages:
                await stage(state)
                if state.admitted:
                    break
        except AppError as exc:
            logger.info(
                "Access denied (%s) for %s on tenant %s",
                type(exc).__name__,
                state.principal.email if state.principal else "anonymous",
                state.tenant.resolved_organization_id,
            )
            raise

        return Decision(
            principal=state.principal,
            resolved_organization_id=state.tenant.resolved_organization_id,
            is_super_admin_bypass=state.tenant.is_super_admin_bypass,
            organization=state.organization,
            preflight=state.preflight,
        )

    # ── Stages, in order ──────────────────────────────────────

    async def _preflight(self, state: _State) -> None:
        if state.signals.method.upper() == "OPTIONS":
            state.preflight = True
            state.admitted = True

    async def _authenticate(self, state: _State) -> None:
        if not state.rule.protected:
            return
        if not state.signals.bearer_token:
            raise Unauthenticated()
        state.principal = Principal.from_claims(verify_token(state.signals.bearer_token))

    async def _resolve_tenant(self, state: _State) -> None:
        state.tenant = resolve_tenant(state.signals, state.principal)

    async def _super_admin(self, state: _State) -> None:
        principal = state.principal
        if principal is None:
            return
        if not principal.is_super_admin:
            if state.rule.super_admin_only:
                raise SuperAdminRequired()
            return
        if state.rule.requires_org_validity and state.tenant.resolved_organization_id:
            await self._require_usable(state)
        state.admitted = True

    async def _tenant_isolation(self, state: _State) -> None:
        principal = state.principal
        if principal is None:
            return
        if state.tenant.resolved_organization_id != principal.organization_id:
            raise CrossTenantForbidden()

    async def _permission(self, state: _State) -> None:
        required = state.rule.permission
        if state.principal is None or required is None:
            return
        if not state.principal.has_permission(required):
            raise MissingPermission(required)

    async def _feature(self, state: _State) -> None:
        required = state.rule.feature
        if required is None:
            return
        org = await self._organization(state)
        if not self.registry.has_feature(org, required):
            raise FeatureNotEntitled(required)

    async def _organization_validity(self, state: _State) -> None:
        if state.rule.requires_org_validity:
            await self._require_usable(state)

    # ── Helpers ───────────────────────────────────────────────

    async def _organization(self, state: _State) -> Organization:
        if state.organization is None:
            # Raises OrganizationNotFound
            state.organization = await self.registry.find_by_id(
                state.tenant.resolved_organization_id  # type: ignore[arg-type]
            )
        return state.organization

    async def _require_usable(self, state: _State) -> None:
        org = await self._organization(state)
        if not self.registry.is_usable(org, self._clock()):
            raise OrganizationInactive()
