# mypy: ignore-errors
# tests/test_stats_store.py
"""Tests for leaderboards, counters, rollups and attachments."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from quorum.core.exceptions import InvalidInputError
from quorum.models import UserStat
from quorum.repositories.options import AttachmentParameters, StatisticsOptions

ALICE = "user:default/alice"
BOB = "user:default/bob"
CAROL = "user:default/carol"


@pytest.fixture()
def activity(make_post, store):
    question = make_post(user_ref=ALICE)
    article = make_post(user_ref=ALICE, type="article", title="Write-up")
    bob_question = make_post(user_ref=BOB, title="Bob asks")
    answer = store.answer_post(user_ref=BOB, post_id=question.id, content="Like this")
    store.answer_post(user_ref=CAROL, post_id=question.id, content="Or this")
    store.vote_post(BOB, question.id, 1)
    store.vote_post(CAROL, question.id, 1)
    store.vote_post(CAROL, article.id, 1)
    store.vote_answer(ALICE, answer.id, 1)
    store.mark_answer_correct(ALICE, question.id, answer.id)
    store.comment_post(CAROL, bob_question.id, "Same problem here")
    store.get_post(BOB, question.id)
    store.get_post(ALICE, question.id)
    return {"question": question, "article": article, "answer": answer}


def test_leaderboards_rank_authors(activity, store) -> None:
    """Authors are ranked by their aggregate with positions starting at one."""
    upvoted = store.get_most_upvoted_posts()
    assert [(row.author, row.total, row.position) for row in upvoted] == [
        (ALICE, 3, 1),
        (BOB, 0, 2),
    ]
    assert [row.author for row in store.get_total_answers()] == [BOB, CAROL]
    assert store.get_most_upvoted_correct_answers()[0].author == BOB

    only_bob = store.get_total_posts(BOB)
    assert len(only_bob) == 1
    assert only_bob[0].position == 2
    assert len(store.get_total_posts(options=StatisticsOptions(limit=1))) == 1


def test_leaderboards_skip_anonymous_content(make_post, store) -> None:
    """Anonymous posts and answers never credit their real authors."""
    hidden = make_post(user_ref=CAROL, anonymous=True)
    make_post(user_ref=BOB, title="Bob asks")
    store.vote_post(ALICE, hidden.id, 1)
    store.answer_post(user_ref=CAROL, post_id=hidden.id, content="Quietly", anonymous=True)

    assert [row.author for row in store.get_most_upvoted_posts()] == [BOB]
    assert [row.author for row in store.get_total_posts()] == [BOB]
    assert store.get_total_posts(CAROL) == []
    assert store.get_total_answers() == []


def test_counts_and_views(activity, store) -> None:
    """Counters cover each content table; views can exclude the author."""
    assert store.get_count("posts") == 3
    assert store.get_count("posts", author=ALICE, type="article") == 1
    assert store.get_count("answers", author=BOB) == 1
    assert store.get_count("votes", author=CAROL) == 2
    assert store.get_count("comments") == 1
    assert store.get_count("views") == 2
    assert store.get_total_views(ALICE) == 2
    assert store.get_total_views(ALICE, exclude_user=True) == 1
    assert store.get_total_views(ALICE, last_days=7) == 2
    with pytest.raises(InvalidInputError):
        store.get_count("reactions")


def test_users_and_user_totals(activity, store) -> None:
    """Users are everyone with activity; unknown users have no totals."""
    assert [user.user_ref for user in store.get_users()] == [ALICE, BOB, CAROL]
    alice = store.get_user(ALICE)
    assert alice.total_questions == 1
    assert alice.total_articles == 1
    assert alice.total_votes == 1
    assert store.get_user("user:default/nobody") is None


def test_save_user_stats_is_idempotent(activity, store, db_session) -> None:
    """Saving the same user and date twice keeps one row with fresh totals."""
    day = date(2026, 3, 1)
    alice = store.get_user(ALICE)
    store.save_user_stats(alice, day)
    store.comment_post(ALICE, activity["question"].id, "Follow-up")
    store.save_user_stats(store.get_user(ALICE), day)

    rows = db_session.scalar(
        select(func.count()).select_from(UserStat).where(UserStat.user_ref == ALICE)
    )
    assert rows == 1
    assert store.get_user_stats(ALICE)[0].total_comments == 1


def test_global_stats_and_retention(activity, store) -> None:
    """Global rows are one per date and old rows are pruned."""
    today = date(2026, 3, 1)
    store.save_global_stats(today - timedelta(days=400))
    store.save_global_stats(today)
    store.save_global_stats(today)
    store.save_user_stats(store.get_user(BOB), today - timedelta(days=400))

    assert [row.date for row in store.get_global_stats()] == [today, today - timedelta(days=400)]
    assert store.get_global_stats()[0].total_questions == 2

    assert store.clean_stats(365, today) == 2
    assert [row.date for row in store.get_global_stats()] == [today]
    assert store.get_user_stats(BOB) == []


def test_attachment_metadata(make_post, store) -> None:
    """Attachments are stored by uuid and bound to posts through images."""
    attachment = store.post_attachment(
        AttachmentParameters(
            uuid="0b6f0c1e",
            location_type="filesystem",
            location_uri="/files/0b6f0c1e.png",
            extension="png",
            mime_type="image/png",
            creator=ALICE,
        )
    )
    post = make_post(images=[attachment.id])
    found = store.get_attachment("0b6f0c1e")

    assert found.post_id == post.id
    assert store.get_attachment("missing") is None
