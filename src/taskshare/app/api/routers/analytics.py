"""Routes exposing task analytics."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from ...deps import AnalyticsServiceDependency, CurrentUserDependency
from ...schemas import AnalyticsOverview, AnalyticsTrends, TrendPeriod

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/overview", response_model=AnalyticsOverview, summary="Task counts and completion rate")
async def read_overview(
    service: AnalyticsServiceDependency,
    current_user: CurrentUserDependency,
) -> AnalyticsOverview:
    return await service.overview(current_user)


@router.get("/trends", response_model=AnalyticsTrends, summary="Daily creation and completion series")
async def read_trends(
    service: AnalyticsServiceDependency,
    current_user: CurrentUserDependency,
    period: Annotated[TrendPeriod, Query(description="Trailing window: weekly (7 days) or monthly (30 days).")] = "weekly",
) -> AnalyticsTrends:
    return await service.trends(current_user, period)
