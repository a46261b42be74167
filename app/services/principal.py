"""The authenticated actor, rebuilt from token claims on every request."""

from dataclasses import dataclass

from app.core.permissions import UserRole
from app.core.security import TokenClaims


@dataclass(frozen=True)
class Principal:
    subject_id: str
    email: str
    role: UserRole
    organization_id: str | None
    permissions: frozenset[str]

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(
            subject_id=claims.sub,
            email=claims.email,
            role=claims.role,
            organization_id=claims.org,
            permissions=frozenset(claims.perms),
        )
