# src/quorum/api/v1/endpoints/stats.py
"""Statistics endpoints: leaderboards, user totals and rollup history."""

from fastapi import APIRouter, HTTPException, Query, status

from quorum.api.v1.dependencies import StoreDep
from quorum.repositories.options import StatisticsOptions
from quorum.schemas.stats import (
    GlobalStatResponse,
    StatisticResponse,
    UserStatResponse,
    UserStatsResponse,
)

router = APIRouter(prefix="/stats", tags=["statistics"])

_LEADERBOARDS = {
    "most-upvoted-posts": "get_most_upvoted_posts",
    "total-posts": "get_total_posts",
    "most-upvoted-answers": "get_most_upvoted_answers",
    "most-upvoted-correct-answers": "get_most_upvoted_correct_answers",
    "total-answers": "get_total_answers",
}


@router.get("/global", response_model=list[GlobalStatResponse])
async def global_stats(store: StoreDep) -> list[GlobalStatResponse]:
    return [GlobalStatResponse.model_validate(row) for row in store.get_global_stats()]


@router.get("/users", response_model=list[UserStatsResponse])
async def users(store: StoreDep) -> list[UserStatsResponse]:
    return [UserStatsResponse.model_validate(user) for user in store.get_users()]


@router.get("/users/{user_ref:path}/history", response_model=list[UserStatResponse])
async def user_stats(user_ref: str, store: StoreDep) -> list[UserStatResponse]:
    return [UserStatResponse.model_validate(row) for row in store.get_user_stats(user_ref)]


@router.get("/users/{user_ref:path}", response_model=UserStatsResponse)
async def user(user_ref: str, store: StoreDep) -> UserStatsResponse:
    found = store.get_user(user_ref)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserStatsResponse.model_validate(found)


@router.get("/{board}", response_model=list[StatisticResponse])
async def leaderboard(
    board: str,
    store: StoreDep,
    author: str | None = None,
    limit: int = Query(10, ge=1, le=100),
    period_days: int | None = Query(None, ge=1),
) -> list[StatisticResponse]:
    method = _LEADERBOARDS.get(board)
    if method is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown statistic")
    rows = getattr(store, method)(author, StatisticsOptions(limit=limit, period_days=period_days))
    return [StatisticResponse.model_validate(row) for row in rows]
