"""Import all models so SQLModel.metadata picks them up."""

from app.models.content import ContentRecord, ContentRecordRead
from app.models.organization import (
    Organization,
    OrganizationCreate,
    OrganizationRead,
    OrganizationUpdate,
    SubscriptionRead,
    SubscriptionStatus,
    SubscriptionUpdate,
)
from app.models.user import SchoolUserCreate, User, UserCreate, UserRead, UserUpdate

__all__ = [
    "ContentRecord",
    "ContentRecordRead",
    "Organization",
    "OrganizationCreate",
    "OrganizationRead",
    "OrganizationUpdate",
    "SchoolUserCreate",
    "SubscriptionRead",
    "SubscriptionStatus",
    "SubscriptionUpdate",
    "User",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
