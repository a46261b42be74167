"""Typed errors raised by the access core and the stores it drives.

Every error is terminal for the request. ``app.main`` renders them as
``{"detail": ...}`` with the status code carried by the class.
"""

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


# ── Authentication ────────────────────────────────────────────

class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication token required"


class TokenError(Unauthenticated):
    detail = "Invalid or expired token"


class TokenMalformed(TokenError):
    detail = "Malformed token"


class TokenSignatureInvalid(TokenError):
    detail = "Invalid token signature"


class TokenExpired(TokenError):
    detail = "Token has expired"


# ── Tenant resolution ────────────────────────────────────────

class TenantError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class MissingTenantContext(TenantError):
    detail = "Organization context required"


# ── Authorization ─────────────────────────────────────────────

class AuthzError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Access denied"


class CrossTenantForbidden(AuthzError):
    detail = "Access denied to this organization"


class SuperAdminRequired(AuthzError):
    detail = "Super admin access required"


class MissingPermission(AuthzError):
    def __init__(self, permission: str) -> None:
        self.permission = permission
        super().__init__(f"Permission '{permission}' required")


class FeatureNotEntitled(AuthzError):
    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' not available in your subscription plan")


# ── Organizations ─────────────────────────────────────────────

class OrgError(AppError):
    pass


class OrganizationNotFound(OrgError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Organization not found"


class OrganizationInactive(OrgError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Organization subscription is not active"


# ── Records ───────────────────────────────────────────────────

class RecordNotFound(AppError):
    """Raised alike for a missing record and for one owned by another tenant."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Record not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Resource already exists"
