# src/quorum/schemas/collection.py
"""Collection-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from quorum.models import AccessLevel


class CollectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    images: list[int] | None = None
    header_image: str | None = None
    read_access: AccessLevel = AccessLevel.PRIVATE
    edit_access: AccessLevel = AccessLevel.PRIVATE


class CollectionUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    images: list[int] | None = None
    header_image: str | None = None
    read_access: AccessLevel | None = None
    edit_access: AccessLevel | None = None


class CollectionPostRequest(BaseModel):
    post_id: int


class CollectionResponse(BaseModel):
    """Schema for collection information returned by the API."""

    id: int
    owner: str
    title: str
    description: str | None = None
    header_image: str | None = None
    read_access: str
    edit_access: str
    created: datetime
    updated: datetime | None = None
    post_ids: list[int] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CollectionsResponse(BaseModel):
    collections: list[CollectionResponse]
    total: int
