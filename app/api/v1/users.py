"""School users — tenant-scoped, restricted to manage_school_users."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import Session, require_access
from app.core.exceptions import RecordNotFound
from app.core.permissions import MANAGE_SCHOOL_USERS
from app.models.user import SchoolUserCreate, User, UserCreate, UserRead
from app.services.access import AccessRule, Decision
from app.services.scope import mutation_filter, read_filter, shape_create
from app.services.users import UserDirectory

router = APIRouter(prefix="/users", tags=["users"])

ManageUsers = Annotated[
    Decision, Depends(require_access(AccessRule(permission=MANAGE_SCHOOL_USERS)))
]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: SchoolUserCreate,
    decision: ManageUsers,
    session: Session,
) -> UserRead:
    """Create a school admin or staff member in the caller's organization."""
    scoped = shape_create(decision, {})
    user = await UserDirectory(session).create(
        UserCreate(**body.model_dump(), organization_id=scoped["organization_id"])
    )
    return UserRead.model_validate(user)


@router.get("", response_model=list[UserRead])
async def list_users(
    decision: ManageUsers,
    session: Session,
) -> list[UserRead]:
    users = await UserDirectory(session).find(read_filter(decision))
    return [UserRead.model_validate(u) for u in users]


@router.put("/{user_id}/toggle-status", response_model=UserRead)
async def toggle_user_status(
    user_id: uuid.UUID,
    decision: ManageUsers,
    session: Session,
) -> UserRead:
    directory = UserDirectory(session)
    user = await _get_or_404(user_id, decision, directory)
    user = await directory.toggle_status(user)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: uuid.UUID,
    decision: ManageUsers,
    session: Session,
) -> None:
    directory = UserDirectory(session)
    user = await _get_or_404(user_id, decision, directory)
    await directory.delete(user)


# ── Internal helper ───────────────────────────────────────────

async def _get_or_404(
    user_id: uuid.UUID, decision: Decision, directory: UserDirectory,
) -> User:
    user = await directory.find_one(mutation_filter(decision, user_id))
    if user is None:
        raise RecordNotFound("User not found")
    return user
