"""Analytics response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

TrendPeriod = Literal["weekly", "monthly"]


class AnalyticsOverview(BaseModel):
    """Task counts across every task associated with the caller."""

    total_tasks: int = Field(ge=0)
    completed_tasks: int = Field(ge=0)
    pending_tasks: int = Field(ge=0)
    in_progress_tasks: int = Field(ge=0)
    completion_rate: int = Field(ge=0, le=100)


class TrendPoint(BaseModel):
    date: str = Field(description="Calendar day formatted as YYYY-MM-DD (UTC).")
    count: int = Field(ge=0)


class AnalyticsTrends(BaseModel):
    period: TrendPeriod
    creation_trends: list[TrendPoint] = Field(default_factory=list)
    completion_trends: list[TrendPoint] = Field(default_factory=list)


__all__ = ["AnalyticsOverview", "AnalyticsTrends", "TrendPeriod", "TrendPoint"]
