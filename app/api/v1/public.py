"""Public site forms — anonymous submissions into a school's collections.

The school is taken from the request itself (subdomain or tenant header);
no token is needed, but the school must exist, be active and hold the
feature that backs the form.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel

from app.api.deps import Session, require_access
from app.models.base import utcnow
from app.services.access import AccessRule, Decision
from app.services.scope import shape_create
from app.services.store import ContentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])

Payload = Annotated[dict[str, Any], Body()]
AdmissionAccess = Annotated[
    Decision, Depends(require_access(AccessRule(protected=False, feature="admissions")))
]
ContactAccess = Annotated[
    Decision, Depends(require_access(AccessRule(protected=False, feature="contacts")))
]


class SubmissionResponse(BaseModel):
    id: str
    message: str


async def _submit(
    decision: Decision, session: Session, collection: str, body: dict[str, Any], source: str,
) -> SubmissionResponse:
    record = shape_create(
        decision,
        {**body, "source": source, "submitted_at": utcnow().isoformat()},
    )
    created = await ContentStore(session, collection).insert_one(record)
    logger.info("Public %s submission stored for %s", source, created.organization_id)
    return SubmissionResponse(id=str(created.id), message="Submission received")


@router.post("/admissions", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_admission(
    body: Payload, decision: AdmissionAccess, session: Session,
) -> SubmissionResponse:
    return await _submit(decision, session, "students", body, source="admission")


@router.post("/contacts", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_contact(
    body: Payload, decision: ContactAccess, session: Session,
) -> SubmissionResponse:
    return await _submit(decision, session, "contacts", body, source="contact_form")
