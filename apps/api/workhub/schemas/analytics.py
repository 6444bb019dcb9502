"""Pydantic schemas for the analytics dashboard."""

from workhub.schemas.common import CamelModel, Money


class ProjectTotals(CamelModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    success_rate: float


class FinancialSummary(CamelModel):
    total_revenue: Money
    completed_revenue: Money
    total_received: Money
    pending_amount: Money


class StageCount(CamelModel):
    stage: str
    count: int
    percentage: float


class MonthlyTrend(CamelModel):
    month: str  # YYYY-MM
    created: int
    completed: int
    revenue: Money


class ThisMonth(CamelModel):
    created: int
    completed: int
    revenue: Money


class DashboardAnalytics(CamelModel):
    totals: ProjectTotals
    financials: FinancialSummary
    stage_distribution: list[StageCount]
    monthly_trends: list[MonthlyTrend]
    this_month: ThisMonth
