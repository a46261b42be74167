"""Tenant resolution — which organization a request targets.

Signals are checked in a fixed order and the first one present wins:

1. the ``organization_id`` route parameter,
2. the tenant header (``X-Organization-Id`` by default),
3. the subdomain of the ``Host`` header, unless it is a reserved label,
4. the principal's own organization (never for a super admin).

A super admin with none of 1-3 operates across all tenants.
"""

import ipaddress
from dataclasses import dataclass

from app.core.config import get_settings
from app.core.exceptions import MissingTenantContext
from app.services.principal import Principal

settings = get_settings()


@dataclass(frozen=True)
class RequestSignals:
    """The parts of an inbound request the access core looks at."""

    method: str = "GET"
    bearer_token: str | None = None
    path_organization_id: str | None = None
    header_organization_id: str | None = None
    host: str | None = None


@dataclass(frozen=True)
class TenantContext:
    resolved_organization_id: str | None
    is_super_admin_bypass: bool = False


def subdomain_from_host(host: str | None, reserved: frozenset[str]) -> str | None:
    """Return the leftmost host label when it can name a tenant.

    Only hosts with a parent domain qualify (``school.example.com`` or
    ``school.localhost``); bare names and IP addresses never do.
    """
    if not host:
        return None
    hostname = host.strip().lower()
    if hostname.startswith("["):
        return None
    hostname = hostname.split(":", 1)[0].rstrip(".")
    try:
        ipaddress.ip_address(hostname)
        return None
    except ValueError:
        pass

    labels = hostname.split(".")
    if len(labels) < 3 and not (len(labels) == 2 and labels[-1] == "localhost"):
        return None
    candidate = labels[0]
    if not candidate or candidate in reserved:
        return None
    return candidate


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_tenant(
    signals: RequestSignals,
    principal: Principal | None,
    reserved_subdomains: frozenset[str] | None = None,
) -> TenantContext:
    """Resolve the target tenant or raise MissingTenantContext."""
    reserved = (
        reserved_subdomains if reserved_subdomains is not None
        else settings.reserved_subdomain_set
    )
    explicit = (
        _clean(signals.path_organization_id)
        or _clean(signals.header_organization_id)
        or subdomain_from_host(signals.host, reserved)
    )
    if explicit:
        return TenantContext(resolved_organization_id=explicit)

    if principal is not None:
        if principal.is_super_admin:
            return TenantContext(resolved_organization_id=None, is_super_admin_bypass=True)
        if principal.organization_id:
            return TenantContext(resolved_organization_id=principal.organization_id)

    raise MissingTenantContext()
