# mypy: ignore-errors
# tests/test_answer_store.py
"""Tests for answers, accepted answers and answer listings."""

from __future__ import annotations

import pytest

from quorum.core.exceptions import (
    ForbiddenError,
    InvariantViolationError,
    ResourceNotFoundError,
)
from quorum.permissions import any_of
from quorum.permissions.resources import ResourceType
from quorum.permissions.rules import has_entities, is_author
from quorum.repositories.options import AnswersOptions

ALICE = "user:default/alice"
BOB = "user:default/bob"
CAROL = "user:default/carol"


@pytest.fixture()
def question(make_post):
    return make_post(entities=["component:default/x"], tags=["deploy"])


def test_answers_only_attach_to_questions(make_post, store) -> None:
    """Articles and links cannot be answered; unknown posts are not found."""
    article = make_post(type="article")
    with pytest.raises(InvariantViolationError):
        store.answer_post(user_ref=BOB, post_id=article.id, content="An answer")
    with pytest.raises(ResourceNotFoundError):
        store.answer_post(user_ref=BOB, post_id=article.id + 1000, content="An answer")


def test_second_correct_answer_is_rejected(question, store) -> None:
    """A question keeps its first accepted answer until it is unmarked."""
    first = store.answer_post(user_ref=BOB, post_id=question.id, content="First")
    second = store.answer_post(user_ref=CAROL, post_id=question.id, content="Second")

    assert store.mark_answer_correct(ALICE, question.id, first.id) is True
    assert store.mark_answer_correct(ALICE, question.id, second.id) is False
    assert store.mark_answer_correct(ALICE, question.id, first.id) is False
    assert question.correct_answer_id == first.id
    assert second.correct is False

    assert store.mark_answer_incorrect(ALICE, question.id, second.id) is False
    assert store.mark_answer_incorrect(ALICE, question.id, first.id) is True
    assert store.mark_answer_correct(ALICE, question.id, second.id) is True
    assert question.correct_answer_id == second.id


def test_correct_answer_must_belong_to_the_post(question, make_post, store) -> None:
    """Marking an answer of another question violates an invariant."""
    other = make_post(title="Another question")
    foreign = store.answer_post(user_ref=BOB, post_id=other.id, content="Elsewhere")

    with pytest.raises(InvariantViolationError):
        store.mark_answer_correct(ALICE, question.id, foreign.id)
    with pytest.raises(ResourceNotFoundError):
        store.mark_answer_correct(ALICE, question.id, foreign.id + 1000)


def test_answer_votes_and_own_answer(question, store) -> None:
    """Answer scores follow votes; authors cannot vote on themselves."""
    answer = store.answer_post(user_ref=BOB, post_id=question.id, content="Helm chart")

    assert store.vote_answer(ALICE, answer.id, 1) is True
    assert store.vote_answer(CAROL, answer.id, 1) is True
    assert store.vote_answer(CAROL, answer.id, 1) is False
    assert answer.score == 2
    assert store.remove_answer_vote(CAROL, answer.id) is True
    assert answer.score == 1
    with pytest.raises(InvariantViolationError):
        store.vote_answer(BOB, answer.id, 1)


def test_update_answer_ownership_and_post_match(question, make_post, store) -> None:
    """Answers are edited by their author or through matching criteria."""
    answer = store.answer_post(user_ref=BOB, post_id=question.id, content="Draft")
    other = make_post(title="Unrelated")

    with pytest.raises(ForbiddenError):
        store.update_answer(user_ref=CAROL, post_id=question.id, answer_id=answer.id, content="Mine")
    with pytest.raises(InvariantViolationError):
        store.update_answer(user_ref=BOB, post_id=other.id, answer_id=answer.id, content="Moved")

    curated = any_of(
        is_author(ResourceType.ANSWER, CAROL),
        has_entities(ResourceType.ANSWER, ["component:default/x"]),
    )
    updated = store.update_answer(
        user_ref=CAROL,
        post_id=question.id,
        answer_id=answer.id,
        content="Curated wording",
        criteria=curated,
    )
    assert updated.content == "Curated wording"
    assert updated.updated_by == CAROL


def test_delete_answer_removes_comments(question, store) -> None:
    """Deleting an answer removes it and its comments."""
    answer = store.answer_post(user_ref=BOB, post_id=question.id, content="Short-lived")
    comment = store.comment_answer(CAROL, answer.id, "Not quite")

    with pytest.raises(ForbiddenError):
        store.delete_answer_comment(BOB, answer.id, comment.id)
    with pytest.raises(ForbiddenError):
        store.delete_answer(CAROL, answer.id)

    store.delete_answer(BOB, answer.id)
    assert store.get_answer(BOB, answer.id) is None
    assert store.get_answer_comment(comment.id) is None


def test_get_answers_filters_and_totals(question, make_post, store) -> None:
    """Answer listings filter by author, post, tags and accepted state."""
    other = make_post(title="Other", tags=["misc"])
    first = store.answer_post(user_ref=BOB, post_id=question.id, content="Use helm")
    store.answer_post(user_ref=CAROL, post_id=question.id, content="Use kustomize")
    elsewhere = store.answer_post(user_ref=BOB, post_id=other.id, content="Unrelated")
    store.mark_answer_correct(ALICE, question.id, first.id)

    def ids(**options):
        return {answer.id for answer in store.get_answers(ALICE, AnswersOptions(**options)).answers}

    assert store.get_answers(ALICE, AnswersOptions(limit=1)).total == 3
    assert ids(author=BOB) == {first.id, elsewhere.id}
    assert ids(post_id=other.id) == {elsewhere.id}
    assert ids(tags=["deploy"]) == ids(post_id=question.id)
    assert ids(entity="component:default/x") == ids(post_id=question.id)
    assert ids(no_correct_answer=True) == {elsewhere.id}
    assert ids(search_query="kustomize") != set()

    criteria = is_author(ResourceType.ANSWER, CAROL)
    only_carol = store.get_answers(ALICE, AnswersOptions(), criteria)
    assert [answer.author for answer in only_carol.answers] == [CAROL]
