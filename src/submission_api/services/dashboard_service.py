"""Dashboard statistics over all submissions.

Read-only. The sub-queries are independent and run concurrently, each in its
own session, so the combined view is not a single transactional snapshot.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from submission_api.app.config import get_settings
from submission_api.infra.submission_store import SubmissionStore
from submission_api.services.timestamps import utcnow

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def error_rate(error_count: int, total: int) -> float:
    """Percentage of submissions with processing errors, two decimals."""
    if total <= 0:
        return 0
    return round(error_count / total * 100, 2)


class DashboardService:
    """Aggregates counts, breakdowns and recent activity for the dashboard."""

    def __init__(self, store: SubmissionStore):
        self.store = store

    async def compute(self) -> dict:
        now = utcnow()
        recent_limit = get_settings().recent_submissions_limit

        (
            total,
            by_type,
            by_stage,
            by_status,
            by_priority,
            recent,
            with_errors,
            this_week,
        ) = await asyncio.gather(
            self.store.count(),
            self.store.group_count("submission_type", with_latest=True),
            self.store.group_count("stage"),
            self.store.group_count("status"),
            self.store.group_count("priority"),
            self.store.recent(recent_limit),
            self.store.count_with_processing_errors(),
            self.store.count_created_since(now - WEEK),
        )

        rate = error_rate(with_errors, total)
        logger.info(
            "Dashboard stats: total=%d this_week=%d error_rate=%s%%", total, this_week, rate
        )

        return {
            "overview": {
                "totalSubmissions": total,
                "submissionsThisWeek": this_week,
                "errorRate": rate,
                "submissionsWithErrors": with_errors,
            },
            "breakdowns": {
                "byType": by_type,
                "byStage": by_stage,
                "byStatus": by_status,
                "byPriority": by_priority,
            },
            "recent": recent,
            "performance": {
                "errorRate": rate,
                "totalWithErrors": with_errors,
            },
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
