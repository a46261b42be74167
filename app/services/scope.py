"""Scope filters — turn an admitted Decision into store inputs.

Non-super-admin writes are always keyed on record id *and* tenant, so a
record owned by another tenant matches nothing and reads exactly like a
record that does not exist.
"""

import uuid
from typing import Any

from app.core.exceptions import MissingTenantContext
from app.services.access import Decision

TENANT_FIELD = "organization_id"
ID_FIELD = "id"

# Never accepted from an update payload
IMMUTABLE_FIELDS = frozenset({TENANT_FIELD, ID_FIELD, "_id"})


def require_tenant(decision: Decision) -> str:
    if decision.resolved_organization_id is None:
        raise MissingTenantContext()
    return decision.resolved_organization_id


def _cross_tenant(decision: Decision) -> bool:
    """Super admin with no tenant signal: every tenant is in scope."""
    return decision.is_super_admin_bypass and decision.resolved_organization_id is None


def read_filter(decision: Decision, base: dict[str, Any] | None = None) -> dict[str, Any]:
    predicate = dict(base or {})
    if _cross_tenant(decision):
        return predicate
    predicate[TENANT_FIELD] = require_tenant(decision)
    return predicate


def shape_create(decision: Decision, record: dict[str, Any]) -> dict[str, Any]:
    """Stamp the owning tenant onto a record about to be inserted.

    Anyone but a super admin gets the resolved tenant, whatever the payload
    claims. A super admin's own ``organization_id`` is kept as sent.
    """
    shaped = {k: v for k, v in record.items() if k not in (ID_FIELD, "_id")}
    if decision.is_super_admin and shaped.get(TENANT_FIELD):
        return shaped
    shaped[TENANT_FIELD] = require_tenant(decision)
    return shaped


def mutation_filter(decision: Decision, record_id: uuid.UUID | str) -> dict[str, Any]:
    """Predicate for update/delete of a single record."""
    predicate: dict[str, Any] = {ID_FIELD: record_id}
    if decision.is_super_admin and decision.resolved_organization_id is None:
        return predicate
    predicate[TENANT_FIELD] = require_tenant(decision)
    return predicate


def strip_update(patch: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}
