"""Current organization — view and self-service settings."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import Session, require_access
from app.core.exceptions import FeatureNotEntitled
from app.core.permissions import MANAGE_SETTINGS
from app.models.organization import OrganizationRead, OrganizationUpdate
from app.services.access import AccessRule, Decision
from app.services.registry import OrganizationRegistry
from app.services.scope import require_tenant

router = APIRouter(prefix="/organization", tags=["organization"])

# Viewable even while the subscription is lapsed
ViewAccess = Annotated[Decision, Depends(require_access(AccessRule(requires_org_validity=False)))]
SettingsAccess = Annotated[Decision, Depends(require_access(AccessRule(permission=MANAGE_SETTINGS)))]

CUSTOM_DOMAIN_FEATURE = "custom_domain"


@router.get("", response_model=OrganizationRead)
async def get_organization(decision: ViewAccess, session: Session) -> OrganizationRead:
    organization_id = require_tenant(decision)
    org = await OrganizationRegistry(session).find_by_id(organization_id)
    return OrganizationRead.from_organization(org)


@router.put("", response_model=OrganizationRead)
async def update_organization(
    body: OrganizationUpdate,
    decision: SettingsAccess,
    session: Session,
) -> OrganizationRead:
    """Update name, settings or (with the custom_domain feature) the domain."""
    registry = OrganizationRegistry(session)
    organization_id = require_tenant(decision)
    org = await registry.find_by_id(organization_id)

    if (
        "domain" in body.model_fields_set
        and not decision.is_super_admin
        and not registry.has_feature(org, CUSTOM_DOMAIN_FEATURE)
    ):
        raise FeatureNotEntitled(CUSTOM_DOMAIN_FEATURE)

    org = await registry.update(organization_id, body)
    return OrganizationRead.from_organization(org)
