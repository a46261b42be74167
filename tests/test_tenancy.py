"""Tenant resolution precedence and subdomain parsing."""

import pytest

from app.core.exceptions import MissingTenantContext
from app.core.permissions import UserRole
from app.services.principal import Principal
from app.services.tenancy import RequestSignals, resolve_tenant, subdomain_from_host

RESERVED = frozenset({"api", "admin", "www", "localhost"})


def _principal(role: UserRole = UserRole.SCHOOL_ADMIN, org: str | None = "home") -> Principal:
    return Principal(
        subject_id="u-1",
        email="someone@school.test",
        role=role,
        organization_id=org,
        permissions=frozenset(),
    )


SUPER = _principal(UserRole.SUPER_ADMIN, None)


def test_path_beats_header_and_subdomain():
    signals = RequestSignals(
        path_organization_id="from_path",
        header_organization_id="from_header",
        host="fromhost.schools.test",
    )
    assert resolve_tenant(signals, _principal(), RESERVED).resolved_organization_id == "from_path"


def test_header_beats_subdomain():
    signals = RequestSignals(header_organization_id="from_header", host="fromhost.schools.test")
    assert resolve_tenant(signals, _principal(), RESERVED).resolved_organization_id == "from_header"


def test_subdomain_beats_principal_org():
    signals = RequestSignals(host="greenfield.schools.test")
    ctx = resolve_tenant(signals, _principal(), RESERVED)
    assert ctx.resolved_organization_id == "greenfield"
    assert ctx.is_super_admin_bypass is False


@pytest.mark.parametrize("label", ["api", "admin", "www"])
def test_reserved_subdomain_falls_back_to_principal(label):
    signals = RequestSignals(host=f"{label}.schools.test")
    assert resolve_tenant(signals, _principal(), RESERVED).resolved_organization_id == "home"


def test_blank_header_is_ignored():
    signals = RequestSignals(header_organization_id="   ")
    assert resolve_tenant(signals, _principal(), RESERVED).resolved_organization_id == "home"


def test_super_admin_without_signal_bypasses():
    ctx = resolve_tenant(RequestSignals(), SUPER, RESERVED)
    assert ctx.resolved_organization_id is None
    assert ctx.is_super_admin_bypass is True


def test_super_admin_with_header_is_scoped():
    ctx = resolve_tenant(RequestSignals(header_organization_id="riverside"), SUPER, RESERVED)
    assert ctx.resolved_organization_id == "riverside"
    assert ctx.is_super_admin_bypass is False


def test_anonymous_without_signal_is_rejected():
    with pytest.raises(MissingTenantContext):
        resolve_tenant(RequestSignals(host="test"), None, RESERVED)


def test_anonymous_with_subdomain_resolves():
    ctx = resolve_tenant(RequestSignals(host="greenfield.schools.test"), None, RESERVED)
    assert ctx.resolved_organization_id == "greenfield"


def test_settings_reserved_labels_are_default():
    assert resolve_tenant(
        RequestSignals(host="www.schools.test"), _principal(),
    ).resolved_organization_id == "home"


@pytest.mark.parametrize(
    ("host", "expected"),
    [
        ("greenfield.schools.test", "greenfield"),
        ("Greenfield.Schools.Test:8443", "greenfield"),
        ("greenfield.localhost:3000", "greenfield"),
        ("localhost:8000", None),
        ("schools.test", None),
        ("test", None),
        ("127.0.0.1:8000", None),
        ("[::1]:8000", None),
        ("api.schools.test", None),
        (None, None),
        ("", None),
    ],
)
def test_subdomain_from_host(host, expected):
    assert subdomain_from_host(host, RESERVED) == expected
