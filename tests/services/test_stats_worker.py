# mypy: ignore-errors
"""Tests for the statistics rollup and its background worker."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from quorum.services.stats import StatsWorker, run_stats_rollup

ALICE = "user:default/alice"
BOB = "user:default/bob"


def test_run_stats_rollup_saves_and_prunes(make_post, store, db_session) -> None:
    post = make_post(user_ref=ALICE)
    store.vote_post(BOB, post.id, 1)
    store.save_global_stats(date(2024, 1, 1))

    day = date(2026, 3, 1)
    assert run_stats_rollup(db_session, day, retention_days=30) == 2
    assert run_stats_rollup(db_session, day, retention_days=30) == 2

    assert [row.date for row in store.get_global_stats()] == [day]
    assert store.get_global_stats()[0].total_users == 2
    assert [row.total_votes for row in store.get_user_stats(BOB)] == [1]


@pytest.mark.asyncio
async def test_worker_runs_until_stopped(mocker) -> None:
    worker = StatsWorker(interval=0.1)
    run_once = mocker.patch.object(worker, "run_once", return_value=0)

    await worker.start()
    assert worker.running
    await asyncio.sleep(0.25)
    await worker.stop()

    assert not worker.running
    assert run_once.call_count >= 2


@pytest.mark.asyncio
async def test_worker_survives_database_errors(mocker, caplog) -> None:
    worker = StatsWorker(interval=0.1)
    run_once = mocker.patch.object(
        worker,
        "run_once",
        side_effect=[OperationalError("select 1", {}, Exception("locked")), 0, 0, 0, 0, 0],
    )

    await worker.start()
    await asyncio.sleep(0.25)
    await worker.stop()

    assert run_once.call_count >= 2
    assert "StatsWorker rollup failed" in caplog.text
