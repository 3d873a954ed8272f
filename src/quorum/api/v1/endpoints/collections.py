# src/quorum/api/v1/endpoints/collections.py
"""Collection endpoints."""

from fastapi import APIRouter, HTTPException, Query, status

from quorum.api.v1.dependencies import (
    CurrentIdentityDep,
    IdentityDep,
    PolicyDep,
    StoreDep,
    authorize,
    viewer_of,
)
from quorum.permissions import Action, ResourceType
from quorum.repositories.options import CollectionOptions
from quorum.schemas.collection import (
    CollectionCreate,
    CollectionPostRequest,
    CollectionResponse,
    CollectionsResponse,
    CollectionUpdate,
)

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("/", response_model=CollectionsResponse)
async def list_collections(
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    owner: str | None = None,
    search_query: str | None = None,
    order_by: str | None = Query(None, pattern="^(created|owner|title)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
) -> CollectionsResponse:
    criteria = authorize(policy, Action.READ, ResourceType.COLLECTION, identity)
    result = store.get_collections(
        viewer_of(identity),
        CollectionOptions(
            limit=limit,
            offset=offset,
            owner=owner,
            search_query=search_query,
            order_by=order_by,
            order=order,
        ),
        criteria,
    )
    return CollectionsResponse(
        collections=[CollectionResponse.model_validate(c) for c in result.collections],
        total=result.total,
    )


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
) -> CollectionResponse:
    criteria = authorize(
        policy, Action.READ, ResourceType.COLLECTION, identity, collection_id=collection_id
    )
    collection = store.get_collection(viewer_of(identity), collection_id, criteria)
    if collection is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    return CollectionResponse.model_validate(collection)


@router.post("/", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> CollectionResponse:
    authorize(policy, Action.CREATE, ResourceType.COLLECTION, identity)
    collection = store.create_collection(
        user_ref=identity.user_ref,
        title=payload.title,
        description=payload.description,
        images=payload.images,
        header_image=payload.header_image,
        read_access=payload.read_access.value,
        edit_access=payload.edit_access.value,
    )
    return CollectionResponse.model_validate(collection)


@router.put("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: int,
    payload: CollectionUpdate,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> CollectionResponse:
    criteria = authorize(
        policy, Action.UPDATE, ResourceType.COLLECTION, identity, collection_id=collection_id
    )
    collection = store.update_collection(
        user_ref=identity.user_ref,
        collection_id=collection_id,
        title=payload.title,
        description=payload.description,
        images=payload.images,
        header_image=payload.header_image,
        read_access=payload.read_access.value if payload.read_access else None,
        edit_access=payload.edit_access.value if payload.edit_access else None,
        criteria=criteria,
    )
    return CollectionResponse.model_validate(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> None:
    criteria = authorize(
        policy, Action.DELETE, ResourceType.COLLECTION, identity, collection_id=collection_id
    )
    store.delete_collection(identity.user_ref, collection_id, criteria)


@router.post("/{collection_id}/posts", response_model=CollectionResponse)
async def add_post_to_collection(
    collection_id: int,
    payload: CollectionPostRequest,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> CollectionResponse:
    criteria = authorize(
        policy, Action.UPDATE, ResourceType.COLLECTION, identity, collection_id=collection_id
    )
    collection = store.add_post_to_collection(
        identity.user_ref, collection_id, payload.post_id, criteria
    )
    return CollectionResponse.model_validate(collection)


@router.delete("/{collection_id}/posts/{post_id}", response_model=CollectionResponse)
async def remove_post_from_collection(
    collection_id: int,
    post_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> CollectionResponse:
    criteria = authorize(
        policy, Action.UPDATE, ResourceType.COLLECTION, identity, collection_id=collection_id
    )
    collection = store.remove_post_from_collection(
        identity.user_ref, collection_id, post_id, criteria
    )
    return CollectionResponse.model_validate(collection)
