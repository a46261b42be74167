"""Content record — one document of a tenant-scoped collection."""

import uuid
from datetime import datetime

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class ContentRecord(TimestampMixin, SQLModel, table=True):
    __tablename__ = "content_records"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    organization_id: str = Field(
        foreign_key="organizations.organization_id", nullable=False, index=True,
    )
    # e.g. "students", "news_events"
    collection: str = Field(max_length=50, nullable=False, index=True)
    data: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))


class ContentRecordRead(SQLModel):
    id: uuid.UUID
    organization_id: str
    collection: str
    data: dict
    created_at: datetime
    updated_at: datetime
