# src/quorum/api/v1/endpoints/posts.py
"""Post endpoints: listing, CRUD, comments, votes and favorites."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status

from quorum.api.v1.dependencies import (
    CurrentIdentityDep,
    IdentityDep,
    NotifierDep,
    PolicyDep,
    StoreDep,
    authorize,
    viewer_of,
)
from quorum.models import Post
from quorum.permissions import Action, DecisionPolicy, Identity, ResourceType
from quorum.repositories.options import PostOptions
from quorum.repositories.store import ContentStore
from quorum.schemas.comment import CommentCreate
from quorum.schemas.post import (
    PostCreate,
    PostListParams,
    PostResponse,
    PostsResponse,
    PostUpdate,
)
from quorum.schemas.vote import VoteCreate, VoteResult
from quorum.services.notifications import snapshot_post

router = APIRouter(prefix="/posts", tags=["posts"])


def _visible_post_or_404(
    store: ContentStore,
    policy: DecisionPolicy,
    identity: Identity | None,
    post_id: int,
    *,
    record_view: bool,
) -> Post:
    criteria = authorize(policy, Action.READ, ResourceType.POST, identity, post_id=post_id)
    if criteria is not None and not store.matches_criteria(ResourceType.POST, post_id, criteria):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    post = store.get_post(viewer_of(identity), post_id, record_view=record_view)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("/", response_model=PostsResponse)
async def list_posts(
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
    params: Annotated[PostListParams, Query()],
) -> PostsResponse:
    """List posts matching the filters, restricted to what the caller may read."""
    criteria = authorize(policy, Action.READ, ResourceType.POST, identity)
    viewer = viewer_of(identity)
    options = PostOptions(**params.model_dump())
    result = store.get_posts(viewer, options, criteria)
    return PostsResponse(
        posts=[
            PostResponse.from_post(post, viewer, include_answers=options.include_answers)
            for post in result.posts
        ],
        total=result.total,
    )


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
    record_view: bool = Query(True, description="Count this read as a view"),
) -> PostResponse:
    post = _visible_post_or_404(store, policy, identity, post_id, record_view=record_view)
    return PostResponse.from_post(post, viewer_of(identity), include_answers=True)


@router.get("/by-answer/{answer_id}", response_model=PostResponse)
async def get_post_by_answer(
    answer_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
) -> PostResponse:
    answer = store.get_answer(viewer_of(identity), answer_id)
    if answer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Answer not found")
    post = _visible_post_or_404(store, policy, identity, answer.post_id, record_view=True)
    return PostResponse.from_post(post, viewer_of(identity), include_answers=True)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    store: StoreDep,
    policy: PolicyDep,
    notifier: NotifierDep,
    identity: CurrentIdentityDep,
    background_tasks: BackgroundTasks,
) -> PostResponse:
    """Create a post and notify entity and tag followers."""
    authorize(policy, Action.CREATE, ResourceType.POST, identity, type=payload.type)
    post = store.create_post(
        user_ref=identity.user_ref,
        title=payload.title,
        content=payload.content,
        type=payload.type,
        tags=payload.tags,
        entities=payload.entities,
        images=payload.images,
        anonymous=payload.anonymous,
        url=payload.url,
        header_image=payload.header_image,
    )
    background_tasks.add_task(
        notifier.notify_post_created, identity.user_ref, snapshot_post(store, post)
    )
    return PostResponse.from_post(post, identity.user_ref)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> PostResponse:
    criteria = authorize(policy, Action.UPDATE, ResourceType.POST, identity, post_id=post_id)
    post = store.update_post(
        user_ref=identity.user_ref,
        post_id=post_id,
        title=payload.title,
        content=payload.content,
        tags=payload.tags,
        entities=payload.entities,
        images=payload.images,
        url=payload.url,
        header_image=payload.header_image,
        criteria=criteria,
    )
    return PostResponse.from_post(post, identity.user_ref)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> None:
    criteria = authorize(policy, Action.DELETE, ResourceType.POST, identity, post_id=post_id)
    store.delete_post(identity.user_ref, post_id, criteria)


@router.post("/{post_id}/comments", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def comment_post(
    post_id: int,
    payload: CommentCreate,
    store: StoreDep,
    policy: PolicyDep,
    notifier: NotifierDep,
    identity: CurrentIdentityDep,
    background_tasks: BackgroundTasks,
) -> PostResponse:
    """Comment on a post; the author, entities, commenters and followers are notified."""
    authorize(policy, Action.CREATE, ResourceType.COMMENT, identity, post_id=post_id)
    store.comment_post(identity.user_ref, post_id, payload.content)
    post = store.get_post(identity.user_ref, post_id, record_view=False)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    background_tasks.add_task(
        notifier.notify_post_commented,
        identity.user_ref,
        snapshot_post(store, post),
        payload.content,
    )
    return PostResponse.from_post(post, identity.user_ref)


@router.delete("/{post_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_comment(
    post_id: int,
    comment_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> None:
    criteria = authorize(
        policy, Action.DELETE, ResourceType.COMMENT, identity, comment_id=comment_id
    )
    store.delete_post_comment(identity.user_ref, post_id, comment_id, criteria)


@router.post("/{post_id}/votes", response_model=VoteResult)
async def vote_post(
    post_id: int,
    payload: VoteCreate,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> VoteResult:
    changed = store.vote_post(identity.user_ref, post_id, payload.score)
    post = store.get_post(identity.user_ref, post_id, record_view=False)
    return VoteResult(changed=changed, score=post.score if post else 0)


@router.delete("/{post_id}/votes", response_model=VoteResult)
async def remove_post_vote(
    post_id: int,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> VoteResult:
    changed = store.remove_post_vote(identity.user_ref, post_id)
    post = store.get_post(identity.user_ref, post_id, record_view=False)
    return VoteResult(changed=changed, score=post.score if post else 0)


@router.post("/{post_id}/favorite", response_model=PostResponse)
async def favorite_post(
    post_id: int,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> PostResponse:
    store.favorite_post(identity.user_ref, post_id)
    post = store.get_post(identity.user_ref, post_id, record_view=False)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return PostResponse.from_post(post, identity.user_ref)


@router.delete("/{post_id}/favorite", response_model=PostResponse)
async def unfavorite_post(
    post_id: int,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> PostResponse:
    store.unfavorite_post(identity.user_ref, post_id)
    post = store.get_post(identity.user_ref, post_id, record_view=False)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return PostResponse.from_post(post, identity.user_ref)
