"""Content CRUD for every tenant-scoped collection.

One router per collection, mounted both at ``/{collection}`` and under
``/orgs/{organization_id}/{collection}``. All store calls go through the
scope filters, so a record of another tenant is indistinguishable from a
missing one.
"""

import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from app.api.deps import Session, require_access
from app.core.collections import COLLECTIONS, CollectionSpec
from app.core.exceptions import RecordNotFound
from app.models.content import ContentRecordRead
from app.services.access import AccessRule, Decision
from app.services.registry import OrganizationRegistry
from app.services.scope import mutation_filter, read_filter, shape_create, strip_update
from app.services.store import ContentStore

Payload = Annotated[dict[str, Any], Body()]


def build_collection_router(spec: CollectionSpec) -> APIRouter:
    router = APIRouter(prefix=f"/{spec.name}", tags=["content"])

    ReadAccess = Annotated[
        Decision,
        Depends(require_access(AccessRule(permission=spec.read_permission, feature=spec.feature))),
    ]
    WriteAccess = Annotated[
        Decision,
        Depends(require_access(AccessRule(permission=spec.write_permission, feature=spec.feature))),
    ]
    not_found = f"{spec.label} not found"

    @router.get("", response_model=list[ContentRecordRead], summary=f"List {spec.name}")
    async def list_records(decision: ReadAccess, session: Session) -> list[ContentRecordRead]:
        records = await ContentStore(session, spec.name).find(read_filter(decision))
        return [ContentRecordRead.model_validate(r) for r in records]

    @router.get("/{record_id}", response_model=ContentRecordRead)
    async def get_record(
        record_id: uuid.UUID, decision: ReadAccess, session: Session,
    ) -> ContentRecordRead:
        record = await ContentStore(session, spec.name).find_one(
            read_filter(decision, {"id": record_id})
        )
        if record is None:
            raise RecordNotFound(not_found)
        return ContentRecordRead.model_validate(record)

    @router.post("", response_model=ContentRecordRead, status_code=status.HTTP_201_CREATED)
    async def create_record(
        body: Payload, decision: WriteAccess, session: Session,
    ) -> ContentRecordRead:
        record = shape_create(decision, body)
        if decision.is_super_admin:
            # Client-chosen tenant must exist
            await OrganizationRegistry(session).find_by_id(record["organization_id"])
        created = await ContentStore(session, spec.name).insert_one(record)
        return ContentRecordRead.model_validate(created)

    @router.put("/{record_id}", response_model=ContentRecordRead)
    async def update_record(
        record_id: uuid.UUID, body: Payload, decision: WriteAccess, session: Session,
    ) -> ContentRecordRead:
        updated = await ContentStore(session, spec.name).update_one(
            mutation_filter(decision, record_id), strip_update(body),
        )
        if updated is None:
            raise RecordNotFound(not_found)
        return ContentRecordRead.model_validate(updated)

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_record(
        record_id: uuid.UUID, decision: WriteAccess, session: Session,
    ) -> None:
        deleted = await ContentStore(session, spec.name).delete_one(
            mutation_filter(decision, record_id)
        )
        if deleted == 0:
            raise RecordNotFound(not_found)

    return router


collection_routers = [build_collection_router(spec) for spec in COLLECTIONS]
