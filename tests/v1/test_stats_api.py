# mypy: ignore-errors
# tests/v1/test_stats_api.py
"""Tests for statistics and attachment endpoints."""

from __future__ import annotations

from fastapi import status

ALICE = "user:default/alice"
BOB = "user:default/bob"


def test_leaderboard_and_user_totals(client, make_post, store) -> None:
    """Leaderboards rank authors; user totals resolve references with slashes."""
    make_post()
    make_post(title="Second question")
    make_post(user_ref=BOB)

    board = client.get("/api/v1/stats/total-posts").json()
    assert [(row["author"], row["total"], row["position"]) for row in board] == [
        (ALICE, 2, 1),
        (BOB, 1, 2),
    ]
    only_bob = client.get("/api/v1/stats/total-posts", params={"author": BOB}).json()
    assert [row["author"] for row in only_bob] == [BOB]

    alice = client.get(f"/api/v1/stats/users/{ALICE}").json()
    assert alice["total_questions"] == 2
    assert client.get(f"/api/v1/stats/users/{ALICE}/history").json() == []
    assert [user["user_ref"] for user in client.get("/api/v1/stats/users").json()] == [ALICE, BOB]


def test_unknown_board_and_user_are_404(client) -> None:
    assert client.get("/api/v1/stats/most-liked").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/stats/users/user:default/ghost").status_code == 404


def test_global_stats_start_empty(client) -> None:
    response = client.get("/api/v1/stats/global")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test_attachment_metadata(client, auth_headers) -> None:
    """Attachment metadata is stored with its creator and fetched by uuid."""
    payload = {
        "uuid": "4c1f0e6e-2b61-4f39-9d7b-1b1c1f3a9e10",
        "location_type": "filesystem",
        "location_uri": "/var/lib/quorum/4c1f0e6e.png",
        "extension": "png",
        "mime_type": "image/png",
    }
    created = client.post("/api/v1/attachments/", json=payload, headers=auth_headers(ALICE))
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["creator"] == ALICE

    fetched = client.get(f"/api/v1/attachments/{payload['uuid']}")
    assert fetched.json()["mime_type"] == "image/png"
    assert client.get("/api/v1/attachments/missing").status_code == status.HTTP_404_NOT_FOUND
