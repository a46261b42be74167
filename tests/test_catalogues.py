"""Plan features and role permissions are plain lookup tables."""

from app.core.permissions import (
    MANAGE_ORGANIZATIONS,
    MANAGE_SCHOOL_USERS,
    MANAGE_STUDENTS,
    VIEW_STUDENTS,
    UserRole,
    default_permissions,
)
from app.core.plans import PLAN_FEATURES, Plan, features_for_plan


def test_premium_features():
    assert features_for_plan("premium") == [
        "students", "contacts", "gallery", "events", "news", "faculty", "admissions",
    ]


def test_basic_has_no_events():
    assert "events" not in features_for_plan(Plan.BASIC)
    assert "basic_gallery" in features_for_plan(Plan.BASIC)


def test_enterprise_extends_premium():
    premium = set(PLAN_FEATURES[Plan.PREMIUM])
    enterprise = set(features_for_plan(Plan.ENTERPRISE))
    assert premium < enterprise
    assert {"custom_domain", "api_access", "advanced_analytics"} <= enterprise


def test_unknown_plan_falls_back_to_basic():
    assert features_for_plan("platinum") == list(PLAN_FEATURES[Plan.BASIC])


def test_features_are_fresh_lists():
    features = features_for_plan(Plan.PREMIUM)
    features.append("api_access")
    assert "api_access" not in features_for_plan(Plan.PREMIUM)


def test_role_defaults():
    assert MANAGE_ORGANIZATIONS in default_permissions(UserRole.SUPER_ADMIN)
    assert MANAGE_SCHOOL_USERS in default_permissions(UserRole.SCHOOL_ADMIN)
    assert MANAGE_STUDENTS not in default_permissions(UserRole.STAFF)
    assert VIEW_STUDENTS in default_permissions(UserRole.STAFF)


def test_unknown_role_gets_staff_permissions():
    assert default_permissions("janitor") == default_permissions(UserRole.STAFF)
