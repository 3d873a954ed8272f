# src/quorum/schemas/attachment.py
"""Attachment metadata Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AttachmentCreate(BaseModel):
    """Metadata of a file already written to the storage engine."""

    uuid: str = Field(..., min_length=1)
    location_type: str = Field(..., description="Storage engine, e.g. filesystem or s3")
    location_uri: str
    extension: str
    mime_type: str
    path: str | None = None


class AttachmentResponse(BaseModel):
    id: int
    uuid: str
    location_type: str
    location_uri: str
    extension: str
    mime_type: str
    path: str | None = None
    creator: str | None = None
    created: datetime
    post_id: int | None = None
    answer_id: int | None = None
    collection_id: int | None = None

    model_config = ConfigDict(from_attributes=True)
