# src/quorum/schemas/tag.py
"""Tag and entity Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class TagResponse(BaseModel):
    id: int
    tag: str
    description: str | None = None
    posts_count: int
    follower_count: int

    model_config = ConfigDict(from_attributes=True)


class TagUpdate(BaseModel):
    description: str | None = None


class EntityResponse(BaseModel):
    id: int
    entity_ref: str
    posts_count: int
    follower_count: int

    model_config = ConfigDict(from_attributes=True)


class FollowResult(BaseModel):
    changed: bool
