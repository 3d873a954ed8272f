# src/quorum/api/v1/endpoints/tags.py
"""Tag and entity endpoints, including follows."""

from fastapi import APIRouter, HTTPException, status

from quorum.api.v1.dependencies import CurrentIdentityDep, StoreDep
from quorum.schemas.tag import EntityResponse, FollowResult, TagResponse, TagUpdate

router = APIRouter(tags=["tags"])


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(store: StoreDep, no_description: bool = False) -> list[TagResponse]:
    return [TagResponse.model_validate(tag) for tag in store.get_tags(no_description=no_description)]


@router.get("/tags/followed", response_model=list[str])
async def followed_tags(store: StoreDep, identity: CurrentIdentityDep) -> list[str]:
    return store.get_user_tags(identity.user_ref)


@router.get("/tags/{tag}", response_model=TagResponse)
async def get_tag(tag: str, store: StoreDep) -> TagResponse:
    found = store.get_tag(tag)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return TagResponse.model_validate(found)


@router.put("/tags/{tag}", response_model=TagResponse)
async def update_tag(
    tag: str,
    payload: TagUpdate,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> TagResponse:
    found = store.update_tag(tag, payload.description)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return TagResponse.model_validate(found)


@router.put("/tags/{tag}/follow", response_model=FollowResult)
async def follow_tag(tag: str, store: StoreDep, identity: CurrentIdentityDep) -> FollowResult:
    return FollowResult(changed=store.follow_tag(identity.user_ref, tag))


@router.delete("/tags/{tag}/follow", response_model=FollowResult)
async def unfollow_tag(tag: str, store: StoreDep, identity: CurrentIdentityDep) -> FollowResult:
    return FollowResult(changed=store.unfollow_tag(identity.user_ref, tag))


@router.get("/entities", response_model=list[EntityResponse])
async def list_entities(store: StoreDep) -> list[EntityResponse]:
    return [EntityResponse.model_validate(entity) for entity in store.get_entities()]


@router.get("/entities/followed", response_model=list[str])
async def followed_entities(store: StoreDep, identity: CurrentIdentityDep) -> list[str]:
    return store.get_user_entities(identity.user_ref)


# Entity references contain slashes, so they travel as a query parameter.
@router.get("/entity", response_model=EntityResponse)
async def get_entity(ref: str, store: StoreDep) -> EntityResponse:
    found = store.get_entity(ref)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entity not found")
    return EntityResponse.model_validate(found)


@router.put("/entity/follow", response_model=FollowResult)
async def follow_entity(ref: str, store: StoreDep, identity: CurrentIdentityDep) -> FollowResult:
    return FollowResult(changed=store.follow_entity(identity.user_ref, ref))


@router.delete("/entity/follow", response_model=FollowResult)
async def unfollow_entity(ref: str, store: StoreDep, identity: CurrentIdentityDep) -> FollowResult:
    return FollowResult(changed=store.unfollow_entity(identity.user_ref, ref))
