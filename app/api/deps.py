"""FastAPI dependencies for authentication, tenant resolution and access."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.services.access import AccessPipeline, AccessRule, Decision
from app.services.registry import OrganizationRegistry
from app.services.tenancy import RequestSignals

settings = get_settings()

# Missing or non-bearer credentials are reported by the pipeline, not here
bearer_scheme = HTTPBearer(auto_error=False)

Session = Annotated[AsyncSession, Depends(get_session)]


def request_signals(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> RequestSignals:
    return RequestSignals(
        method=request.method,
        bearer_token=credentials.credentials if credentials else None,
        path_organization_id=request.path_params.get("organization_id"),
        header_organization_id=request.headers.get(settings.tenant_header),
        host=request.headers.get("host"),
    )


def require_access(rule: AccessRule) -> Callable[..., Awaitable[Decision]]:
    """Dependency factory: run the access pipeline for ``rule``."""

    async def _evaluate(
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
        session: Session,
    ) -> Decision:
        pipeline = AccessPipeline(OrganizationRegistry(session))
        return await pipeline.evaluate(request_signals(request, credentials), rule)

    return _evaluate


# Typed shorthand for use in route signatures
Authenticated = Annotated[
    Decision, Depends(require_access(AccessRule(requires_org_validity=False)))
]
SuperAdmin = Annotated[
    Decision,
    Depends(require_access(AccessRule(requires_org_validity=False, super_admin_only=True))),
]
