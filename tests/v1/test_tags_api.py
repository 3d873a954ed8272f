# mypy: ignore-errors
# tests/v1/test_tags_api.py
"""Tests for tag, entity and follow endpoints."""

from __future__ import annotations

from fastapi import status

ALICE = "user:default/alice"
BOB = "user:default/bob"
ENTITY_X = "component:default/x"


def test_tag_listing_and_description(client, auth_headers, make_post) -> None:
    """Used tags are listed with counts; descriptions can be edited."""
    make_post(tags=["deploy", "helm"])
    make_post(tags=["deploy"])

    tags = client.get("/api/v1/tags").json()
    assert [(tag["tag"], tag["posts_count"]) for tag in tags] == [("deploy", 2), ("helm", 1)]

    updated = client.put(
        "/api/v1/tags/Deploy", json={"description": "Shipping code"}, headers=auth_headers(BOB)
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["description"] == "Shipping code"
    assert [tag["tag"] for tag in client.get("/api/v1/tags", params={"no_description": True}).json()] == ["helm"]

    assert client.get("/api/v1/tags/unknown").status_code == status.HTTP_404_NOT_FOUND


def test_follow_tag_is_idempotent(client, auth_headers) -> None:
    """Following twice reports no change the second time."""
    headers = auth_headers(BOB)

    assert client.put("/api/v1/tags/K8s/follow", headers=headers).json() == {"changed": True}
    assert client.put("/api/v1/tags/k8s/follow", headers=headers).json() == {"changed": False}
    assert client.get("/api/v1/tags/followed", headers=headers).json() == ["k8s"]
    assert client.delete("/api/v1/tags/k8s/follow", headers=headers).json() == {"changed": True}
    assert client.get("/api/v1/tags/followed", headers=headers).json() == []


def test_follow_requires_identity(client) -> None:
    assert client.put("/api/v1/tags/k8s/follow").status_code == status.HTTP_401_UNAUTHORIZED


def test_entity_follow_by_query_reference(client, auth_headers, make_post) -> None:
    """Entity references travel as a query parameter because they contain slashes."""
    make_post(entities=[ENTITY_X])
    headers = auth_headers(BOB)

    followed = client.put("/api/v1/entity/follow", params={"ref": ENTITY_X}, headers=headers)
    assert followed.json() == {"changed": True}

    entity = client.get("/api/v1/entity", params={"ref": ENTITY_X}).json()
    assert entity["posts_count"] == 1
    assert entity["follower_count"] == 1
    assert client.get("/api/v1/entities/followed", headers=headers).json() == [ENTITY_X]
    assert [e["entity_ref"] for e in client.get("/api/v1/entities").json()] == [ENTITY_X]

    missing = client.get("/api/v1/entity", params={"ref": "component:default/none"})
    assert missing.status_code == status.HTTP_404_NOT_FOUND
