# src/quorum/services/__init__.py
"""Services sitting beside the content store: notifications and statistics."""

from .notifications import (
    AnswerSnapshot,
    NotificationManager,
    PostSnapshot,
    snapshot_answer,
    snapshot_post,
)
from .stats import StatsWorker, run_stats_rollup
from .transport import HttpNotificationTransport, NotificationTransport, get_notification_transport

__all__ = [
    "AnswerSnapshot",
    "NotificationManager",
    "PostSnapshot",
    "snapshot_answer",
    "snapshot_post",
    "StatsWorker",
    "run_stats_rollup",
    "HttpNotificationTransport",
    "NotificationTransport",
    "get_notification_transport",
]
