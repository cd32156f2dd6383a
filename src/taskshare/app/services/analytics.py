"""Read-only aggregations over the tasks associated with a user."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..errors import ValidationError
from ..models import ANALYTICS_ASSOCIATIONS, TaskStatus, UserDocument, utcnow
from ..repositories import TaskRepository, association_filter
from ..schemas.analytics import AnalyticsOverview, AnalyticsTrends, TrendPoint

TREND_WINDOWS: dict[str, int] = {"weekly": 7, "monthly": 30}

DAY_FORMAT = "%Y-%m-%d"


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, halves rounded up; 0 when there are no tasks."""

    if total <= 0:
        return 0
    return math.floor(completed / total * 100 + 0.5)


def _daily_counts(match: dict[str, Any], date_field: str) -> list[dict[str, Any]]:
    return [
        {"$match": match},
        {
            "$group": {
                "_id": {"$dateToString": {"format": DAY_FORMAT, "date": f"${date_field}"}},
                "count": {"$sum": 1},
            }
        },
        {"$sort": {"_id": 1}},
    ]


class AnalyticsService:
    """Counting and grouping over owned, assigned and shared tasks."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._repository = TaskRepository(database)

    async def overview(self, requester: UserDocument) -> AnalyticsOverview:
        scope = association_filter(requester.id, ANALYTICS_ASSOCIATIONS)
        total = await self._repository.count(scope)
        completed = await self._repository.count({**scope, "status": TaskStatus.COMPLETED.value})
        pending = await self._repository.count({**scope, "status": TaskStatus.PENDING.value})
        in_progress = await self._repository.count({**scope, "status": TaskStatus.IN_PROGRESS.value})
        return AnalyticsOverview(
            total_tasks=total,
            completed_tasks=completed,
            pending_tasks=pending,
            in_progress_tasks=in_progress,
            completion_rate=completion_rate(completed, total),
        )

    async def trends(
        self,
        requester: UserDocument,
        period: str,
        *,
        now: datetime | None = None,
    ) -> AnalyticsTrends:
        """Group creations and completions per day over the trailing window.

        The two series come from independent pipelines: a task created inside
        the window but completed outside it only shows up in the creation
        series, and vice versa.
        """

        days = TREND_WINDOWS.get(period)
        if days is None:
            raise ValidationError(f"Invalid period: {period}")
        cutoff = (now or utcnow()) - timedelta(days=days)
        scope = association_filter(requester.id, ANALYTICS_ASSOCIATIONS)

        created = await self._repository.aggregate(
            _daily_counts({**scope, "created_at": {"$gte": cutoff}}, "created_at")
        )
        completed = await self._repository.aggregate(
            _daily_counts(
                {**scope, "status": TaskStatus.COMPLETED.value, "updated_at": {"$gte": cutoff}},
                "updated_at",
            )
        )
        return AnalyticsTrends(
            period=period,  # type: ignore[arg-type]
            creation_trends=[TrendPoint(date=row["_id"], count=row["count"]) for row in created],
            completion_trends=[TrendPoint(date=row["_id"], count=row["count"]) for row in completed],
        )


__all__ = ["AnalyticsService", "TREND_WINDOWS", "completion_rate"]
