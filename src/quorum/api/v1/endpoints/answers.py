# src/quorum/api/v1/endpoints/answers.py
"""Answer endpoints: answering, comments, votes and accepted answers."""

from datetime import date

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
from quorum.models import Answer, Post
from quorum.permissions import Action, ResourceType
from quorum.repositories.options import AnswersOptions
from quorum.repositories.store import ContentStore
from quorum.schemas.answer import AnswerCreate, AnswerResponse, AnswersResponse, AnswerUpdate
from quorum.schemas.comment import CommentCreate
from quorum.schemas.vote import VoteCreate, VoteResult
from quorum.services.notifications import snapshot_answer, snapshot_post

router = APIRouter(tags=["answers"])


def _post_or_404(store: ContentStore, user_ref: str, post_id: int) -> Post:
    post = store.get_post(user_ref, post_id, record_view=False)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _answer_or_404(store: ContentStore, user_ref: str, post_id: int, answer_id: int) -> Answer:
    answer = store.get_answer(user_ref, answer_id)
    if answer is None or answer.post_id != post_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Answer not found")
    return answer


@router.get("/answers", response_model=AnswersResponse)
async def list_answers(
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    author: str | None = None,
    post_id: int | None = None,
    no_correct_answer: bool = False,
    no_votes: bool = False,
    order_by: str | None = None,
    order: str = Query("desc", pattern="^(asc|desc)$"),
    entity: str | None = None,
    search_query: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> AnswersResponse:
    criteria = authorize(policy, Action.READ, ResourceType.ANSWER, identity)
    viewer = viewer_of(identity)
    options = AnswersOptions(
        limit=limit,
        offset=offset,
        author=author,
        post_id=post_id,
        no_correct_answer=no_correct_answer,
        no_votes=no_votes,
        order_by=order_by,
        order=order,
        entity=entity,
        search_query=search_query,
        from_date=from_date,
        to_date=to_date,
    )
    result = store.get_answers(viewer, options, criteria)
    return AnswersResponse(
        answers=[AnswerResponse.from_answer(answer, viewer) for answer in result.answers],
        total=result.total,
    )


@router.get("/posts/{post_id}/answers/{answer_id}", response_model=AnswerResponse)
async def get_answer(
    post_id: int,
    answer_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: IdentityDep,
) -> AnswerResponse:
    criteria = authorize(policy, Action.READ, ResourceType.ANSWER, identity, answer_id=answer_id)
    viewer = viewer_of(identity)
    answer = _answer_or_404(store, viewer, post_id, answer_id)
    if criteria is not None and not store.matches_criteria(ResourceType.ANSWER, answer_id, criteria):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Answer not found")
    return AnswerResponse.from_answer(answer, viewer)


@router.post(
    "/posts/{post_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def answer_post(
    post_id: int,
    payload: AnswerCreate,
    store: StoreDep,
    policy: PolicyDep,
    notifier: NotifierDep,
    identity: CurrentIdentityDep,
    background_tasks: BackgroundTasks,
) -> AnswerResponse:
    """Answer a question; its author, entities and followers are notified."""
    authorize(policy, Action.CREATE, ResourceType.ANSWER, identity, post_id=post_id)
    answer = store.answer_post(
        user_ref=identity.user_ref,
        post_id=post_id,
        content=payload.content,
        images=payload.images,
        anonymous=payload.anonymous,
    )
    post = _post_or_404(store, identity.user_ref, post_id)
    background_tasks.add_task(
        notifier.notify_answer_created,
        identity.user_ref,
        snapshot_post(store, post),
        snapshot_answer(answer),
    )
    return AnswerResponse.from_answer(answer, identity.user_ref)


@router.put("/posts/{post_id}/answers/{answer_id}", response_model=AnswerResponse)
async def update_answer(
    post_id: int,
    answer_id: int,
    payload: AnswerUpdate,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> AnswerResponse:
    criteria = authorize(policy, Action.UPDATE, ResourceType.ANSWER, identity, answer_id=answer_id)
    answer = store.update_answer(
        user_ref=identity.user_ref,
        post_id=post_id,
        answer_id=answer_id,
        content=payload.content,
        images=payload.images,
        criteria=criteria,
    )
    return AnswerResponse.from_answer(answer, identity.user_ref)


@router.delete("/posts/{post_id}/answers/{answer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_answer(
    post_id: int,
    answer_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> None:
    criteria = authorize(policy, Action.DELETE, ResourceType.ANSWER, identity, answer_id=answer_id)
    _answer_or_404(store, identity.user_ref, post_id, answer_id)
    store.delete_answer(identity.user_ref, answer_id, criteria)


@router.post(
    "/posts/{post_id}/answers/{answer_id}/comments",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def comment_answer(
    post_id: int,
    answer_id: int,
    payload: CommentCreate,
    store: StoreDep,
    policy: PolicyDep,
    notifier: NotifierDep,
    identity: CurrentIdentityDep,
    background_tasks: BackgroundTasks,
) -> AnswerResponse:
    authorize(policy, Action.CREATE, ResourceType.COMMENT, identity, answer_id=answer_id)
    answer = _answer_or_404(store, identity.user_ref, post_id, answer_id)
    store.comment_answer(identity.user_ref, answer_id, payload.content)
    post = _post_or_404(store, identity.user_ref, post_id)
    background_tasks.add_task(
        notifier.notify_answer_commented,
        identity.user_ref,
        snapshot_post(store, post),
        snapshot_answer(answer),
        payload.content,
    )
    return AnswerResponse.from_answer(answer, identity.user_ref)


@router.delete(
    "/posts/{post_id}/answers/{answer_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_answer_comment(
    post_id: int,
    answer_id: int,
    comment_id: int,
    store: StoreDep,
    policy: PolicyDep,
    identity: CurrentIdentityDep,
) -> None:
    criteria = authorize(
        policy, Action.DELETE, ResourceType.COMMENT, identity, comment_id=comment_id
    )
    _answer_or_404(store, identity.user_ref, post_id, answer_id)
    store.delete_answer_comment(identity.user_ref, answer_id, comment_id, criteria)


@router.post("/posts/{post_id}/answers/{answer_id}/votes", response_model=VoteResult)
async def vote_answer(
    post_id: int,
    answer_id: int,
    payload: VoteCreate,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> VoteResult:
    answer = _answer_or_404(store, identity.user_ref, post_id, answer_id)
    changed = store.vote_answer(identity.user_ref, answer_id, payload.score)
    return VoteResult(changed=changed, score=answer.score)


@router.delete("/posts/{post_id}/answers/{answer_id}/votes", response_model=VoteResult)
async def remove_answer_vote(
    post_id: int,
    answer_id: int,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> VoteResult:
    answer = _answer_or_404(store, identity.user_ref, post_id, answer_id)
    changed = store.remove_answer_vote(identity.user_ref, answer_id)
    return VoteResult(changed=changed, score=answer.score)


@router.post("/posts/{post_id}/answers/{answer_id}/correct", response_model=AnswerResponse)
async def mark_answer_correct(
    post_id: int,
    answer_id: int,
    store: StoreDep,
    notifier: NotifierDep,
    identity: CurrentIdentityDep,
    background_tasks: BackgroundTasks,
) -> AnswerResponse:
    """Accept an answer. Only the question's author may do this."""
    post = _post_or_404(store, identity.user_ref, post_id)
    if post.author != identity.user_ref:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the question author can accept answers",
        )
    if not store.mark_answer_correct(identity.user_ref, post_id, answer_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Question already has a correct answer",
        )
    answer = _answer_or_404(store, identity.user_ref, post_id, answer_id)
    background_tasks.add_task(
        notifier.on_correct_answer,
        identity.user_ref,
        snapshot_post(store, post),
        snapshot_answer(answer),
    )
    return AnswerResponse.from_answer(answer, identity.user_ref)


@router.delete("/posts/{post_id}/answers/{answer_id}/correct", response_model=AnswerResponse)
async def mark_answer_incorrect(
    post_id: int,
    answer_id: int,
    store: StoreDep,
    identity: CurrentIdentityDep,
) -> AnswerResponse:
    post = _post_or_404(store, identity.user_ref, post_id)
    if post.author != identity.user_ref:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the question author can unmark answers",
        )
    store.mark_answer_incorrect(identity.user_ref, post_id, answer_id)
    answer = _answer_or_404(store, identity.user_ref, post_id, answer_id)
    return AnswerResponse.from_answer(answer, identity.user_ref)
