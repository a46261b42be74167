"""Roles and their default permission tags.

Role → permission set is plain data. Adding a role means adding a row here.
The table is consulted when a user is created (or their role changes), never
at request time: the token carries the permission snapshot.
"""

from enum import StrEnum


class UserRole(StrEnum):
    SUPER_ADMIN = "super_admin"
    SCHOOL_ADMIN = "school_admin"
    STAFF = "staff"


# Super admin
MANAGE_ORGANIZATIONS = "manage_organizations"
MANAGE_ALL_USERS = "manage_all_users"
VIEW_ANALYTICS = "view_analytics"
MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
SYSTEM_CONFIG = "system_config"

# School level
MANAGE_STUDENTS = "manage_students"
VIEW_STUDENTS = "view_students"
MANAGE_CONTENT = "manage_content"
MANAGE_SCHOOL_USERS = "manage_school_users"
MANAGE_ADMISSIONS = "manage_admissions"
VIEW_SCHOOL_ANALYTICS = "view_school_analytics"
MANAGE_SETTINGS = "manage_settings"

ROLE_PERMISSIONS: dict[UserRole, tuple[str, ...]] = {
    UserRole.SUPER_ADMIN: (
        MANAGE_ORGANIZATIONS,
        MANAGE_ALL_USERS,
        VIEW_ANALYTICS,
        MANAGE_SUBSCRIPTIONS,
        SYSTEM_CONFIG,
    ),
    UserRole.SCHOOL_ADMIN: (
        MANAGE_STUDENTS,
        MANAGE_CONTENT,
        MANAGE_SCHOOL_USERS,
        MANAGE_ADMISSIONS,
        VIEW_SCHOOL_ANALYTICS,
        MANAGE_SETTINGS,
    ),
    UserRole.STAFF: (
        VIEW_STUDENTS,
        MANAGE_CONTENT,
        VIEW_ANALYTICS,
    ),
}


def default_permissions(role: str) -> list[str]:
    """Permission tags a new user of ``role`` starts with (staff if unknown)."""
    try:
        key = UserRole(role)
    except ValueError:
        key = UserRole.STAFF
    return list(ROLE_PERMISSIONS[key])
