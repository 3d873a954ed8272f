# mypy: ignore-errors
# tests/v1/test_answers_api.py
"""Tests for answer endpoints."""

from __future__ import annotations

import pytest
from fastapi import status

ALICE = "user:default/alice"
BOB = "user:default/bob"
CAROL = "user:default/carol"


@pytest.fixture()
def question(make_post):
    return make_post(entities=["component:default/x"])


def _answer(client, headers, post_id, content="Use the helm chart"):
    response = client.post(
        f"/api/v1/posts/{post_id}/answers", json={"content": content}, headers=headers
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_answer_notifies_question_author_and_entities(client, auth_headers, question, transport) -> None:
    """The author and the question's entities hear about new answers."""
    answer = _answer(client, auth_headers(BOB), question.id)

    assert answer["post_id"] == question.id
    assert answer["correct"] is False
    notification = transport.sent[-1]
    assert set(notification.recipients.entity_ref) == {ALICE, "component:default/x"}
    assert notification.recipients.exclude_entity_ref == BOB
    assert notification.payload.link == f"/qa/questions/{question.id}#answer_{answer['id']}"


def test_answering_an_article_conflicts(client, auth_headers, make_post) -> None:
    """Only questions take answers."""
    article = make_post(type="article")
    response = client.post(
        f"/api/v1/posts/{article.id}/answers", json={"content": "Nope"}, headers=auth_headers(BOB)
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_answer_on_missing_post_is_404(client, auth_headers) -> None:
    response = client.post(
        "/api/v1/posts/4242/answers", json={"content": "Hello"}, headers=auth_headers(BOB)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_mark_correct_flow(client, auth_headers, question, transport) -> None:
    """Only the question author accepts, and only one answer at a time."""
    first = _answer(client, auth_headers(BOB), question.id)
    second = _answer(client, auth_headers(CAROL), question.id, content="Use kustomize")
    base = f"/api/v1/posts/{question.id}/answers"

    by_stranger = client.post(f"{base}/{first['id']}/correct", headers=auth_headers(CAROL))
    assert by_stranger.status_code == status.HTTP_403_FORBIDDEN

    accepted = client.post(f"{base}/{first['id']}/correct", headers=auth_headers(ALICE))
    assert accepted.status_code == status.HTTP_200_OK
    assert accepted.json()["correct"] is True
    assert set(transport.sent[-1].recipients.entity_ref) == {BOB, "component:default/x"}

    conflict = client.post(f"{base}/{second['id']}/correct", headers=auth_headers(ALICE))
    assert conflict.status_code == status.HTTP_409_CONFLICT

    unmarked = client.delete(f"{base}/{first['id']}/correct", headers=auth_headers(ALICE))
    assert unmarked.json()["correct"] is False
    switched = client.post(f"{base}/{second['id']}/correct", headers=auth_headers(ALICE))
    assert switched.json()["correct"] is True


def test_answer_under_wrong_post_is_404(client, auth_headers, question, make_post) -> None:
    """An answer id is only reachable under its own question."""
    answer = _answer(client, auth_headers(BOB), question.id)
    other = make_post(title="Another question")

    response = client.get(f"/api/v1/posts/{other.id}/answers/{answer['id']}")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/api/v1/posts/{question.id}/answers/{answer['id']}").status_code == 200


def test_answer_votes_and_listing(client, auth_headers, question) -> None:
    """Votes update the answer score; the listing filters by author."""
    answer = _answer(client, auth_headers(BOB), question.id)
    url = f"/api/v1/posts/{question.id}/answers/{answer['id']}/votes"

    assert client.post(url, json={"score": 1}, headers=auth_headers(ALICE)).json() == {
        "changed": True,
        "score": 1,
    }
    assert client.post(url, json={"score": 1}, headers=auth_headers(BOB)).status_code == 409
    assert client.delete(url, headers=auth_headers(ALICE)).json()["score"] == 0

    listing = client.get("/api/v1/answers", params={"author": BOB}).json()
    assert listing["total"] == 1
    assert listing["answers"][0]["id"] == answer["id"]


def test_answer_comment_and_update(client, auth_headers, question, transport) -> None:
    """Comments reach the answer author; edits are author only."""
    answer = _answer(client, auth_headers(BOB), question.id)
    base = f"/api/v1/posts/{question.id}/answers/{answer['id']}"

    commented = client.post(
        f"{base}/comments", json={"content": "Thanks @carol"}, headers=auth_headers(ALICE)
    )
    assert commented.status_code == status.HTTP_201_CREATED
    mention = transport.sent[-1]
    assert mention.payload.title == "New mention"
    assert mention.recipients.entity_ref == [CAROL]

    denied = client.put(base, json={"content": "Rewritten"}, headers=auth_headers(CAROL))
    assert denied.status_code == status.HTTP_403_FORBIDDEN
    edited = client.put(base, json={"content": "Rewritten"}, headers=auth_headers(BOB))
    assert edited.json()["content"] == "Rewritten"

    assert client.delete(base, headers=auth_headers(BOB)).status_code == 204
    assert client.get(base).status_code == status.HTTP_404_NOT_FOUND


def test_anonymous_answer_hides_its_editor(client, auth_headers, question) -> None:
    """Editing an anonymous answer leaves both author and editor masked for others."""
    response = client.post(
        f"/api/v1/posts/{question.id}/answers",
        json={"content": "Use the helm chart", "anonymous": True},
        headers=auth_headers(BOB),
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    base = f"/api/v1/posts/{question.id}/answers/{response.json()['id']}"

    edited = client.put(base, json={"content": "Rewritten"}, headers=auth_headers(BOB))
    assert edited.json()["updated_by"] == BOB

    seen = client.get(base, headers=auth_headers(CAROL)).json()
    assert seen["author"] == "anonymous"
    assert seen["updated_by"] == "anonymous"
