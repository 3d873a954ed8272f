# mypy: ignore-errors
# tests/v1/test_posts_api.py
"""Tests for post endpoints."""

from __future__ import annotations

from fastapi import status

ALICE = "user:default/alice"
BOB = "user:default/bob"
CAROL = "user:default/carol"
ENTITY_X = "component:default/x"


def _create(client, headers, **overrides):
    payload = {
        "title": "How do I deploy?",
        "content": "Looking for @carol's advice",
        "type": "question",
        "tags": ["deploy"],
        "entities": [ENTITY_X],
    }
    payload.update(overrides)
    response = client.post("/api/v1/posts/", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_create_post_requires_identity(client) -> None:
    """Anonymous callers cannot create posts."""
    response = client.post("/api/v1/posts/", json={"title": "t", "content": "c"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_invalid_token_is_rejected(client) -> None:
    """A malformed bearer token is a 401, not an anonymous read."""
    response = client.get("/api/v1/posts/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_and_read_post_notifies(client, auth_headers, transport, store) -> None:
    """Creating a post notifies entity followers and mentioned users."""
    store.follow_entity(BOB, ENTITY_X)
    post = _create(client, auth_headers(ALICE))

    assert post["author"] == ALICE
    assert post["tags"] == ["deploy"]

    response = client.get(f"/api/v1/posts/{post['id']}", headers=auth_headers(BOB))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["views"] == 1

    recipients = [set(n.recipients.entity_ref) for n in transport.sent]
    assert recipients == [{ENTITY_X, BOB}, {CAROL}]


def test_list_posts_with_query_filters(client, auth_headers) -> None:
    """List filters arrive as query parameters, including repeated tags."""
    headers = auth_headers(ALICE)
    _create(client, headers, tags=["deploy", "helm"])
    _create(client, headers, tags=["deploy"], type="article", title="Deploy notes")

    response = client.get("/api/v1/posts/", params={"tags": ["deploy", "helm"], "limit": 10})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["total"] == 1

    articles = client.get("/api/v1/posts/", params={"type": "article"}).json()
    assert [post["title"] for post in articles["posts"]] == ["Deploy notes"]


def test_missing_post_is_404(client) -> None:
    response = client.get("/api/v1/posts/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_post_is_author_only(client, auth_headers) -> None:
    """Non-authors without curated entities get 403."""
    post = _create(client, auth_headers(ALICE))
    payload = {"title": "Edited", "content": "Edited content"}

    forbidden = client.put(f"/api/v1/posts/{post['id']}", json=payload, headers=auth_headers(BOB))
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    allowed = client.put(f"/api/v1/posts/{post['id']}", json=payload, headers=auth_headers(ALICE))
    assert allowed.status_code == status.HTTP_200_OK
    assert allowed.json()["title"] == "Edited"


def test_vote_and_favorite(client, auth_headers) -> None:
    """Votes report whether they changed anything; own posts cannot be voted."""
    post = _create(client, auth_headers(ALICE))
    url = f"/api/v1/posts/{post['id']}/votes"

    first = client.post(url, json={"score": 1}, headers=auth_headers(BOB))
    again = client.post(url, json={"score": 1}, headers=auth_headers(BOB))
    own = client.post(url, json={"score": 1}, headers=auth_headers(ALICE))
    invalid = client.post(url, json={"score": 5}, headers=auth_headers(BOB))

    assert first.json() == {"changed": True, "score": 1}
    assert again.json() == {"changed": False, "score": 1}
    assert own.status_code == status.HTTP_409_CONFLICT
    assert invalid.status_code == 422

    favorite = client.post(f"/api/v1/posts/{post['id']}/favorite", headers=auth_headers(BOB))
    assert favorite.status_code == status.HTTP_200_OK


def test_comment_and_delete(client, auth_headers, transport) -> None:
    """Comment authors may delete their comments; posts are deleted by authors."""
    post = _create(client, auth_headers(ALICE), content="No mentions here", entities=[])
    comment = client.post(
        f"/api/v1/posts/{post['id']}/comments",
        json={"content": "Which cluster?"},
        headers=auth_headers(BOB),
    )
    assert comment.status_code == status.HTTP_201_CREATED
    assert set(transport.sent[-1].recipients.entity_ref) == {ALICE}

    comment_id = comment.json()["comments"][-1]["id"]
    denied = client.delete(
        f"/api/v1/posts/{post['id']}/comments/{comment_id}", headers=auth_headers(ALICE)
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    deleted = client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(ALICE))
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/posts/{post['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_anonymous_post_hides_its_editor(client, auth_headers) -> None:
    """An author's own edit does not reveal them through updated_by."""
    post = _create(client, auth_headers(ALICE), anonymous=True)
    url = f"/api/v1/posts/{post['id']}"
    edited = client.put(
        url, json={"title": "Edited", "content": "Edited content"}, headers=auth_headers(ALICE)
    )
    assert edited.status_code == status.HTTP_200_OK
    assert edited.json()["updated_by"] == ALICE

    seen = client.get(url, headers=auth_headers(BOB)).json()
    assert seen["author"] == "anonymous"
    assert seen["updated_by"] == "anonymous"

    unauthenticated = client.get(url).json()
    assert unauthenticated["updated_by"] == "anonymous"
