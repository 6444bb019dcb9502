"""Dashboard analytics over the project pipeline (read only)."""

import logging
from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from workhub.db.enums import Stage
from workhub.db.models import Project

logger = logging.getLogger(__name__)

TREND_MONTHS = 6
ZERO = Decimal("0")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _pct(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _is_completed(project: Project) -> bool:
    return project.current_stage == Stage.COMPLETED.value


def _completed_at(project: Project) -> datetime | None:
    return _as_utc(project.stage_change_timestamp) if _is_completed(project) else None


def _in_window(value: datetime | None, start: datetime, end: datetime) -> bool:
    return value is not None and start <= value < end


def financial_summary(projects: list[Project]) -> dict:
    """
    Revenue figures.

    Total revenue prefers the invoice amount and falls back to the project
    value. Received and pending come from the payment ledger.
    """
    total_revenue = sum(
        (Decimal(p.invoice_amount if p.invoice_amount is not None else p.project_value or 0) for p in projects),
        ZERO,
    )
    completed_revenue = sum(
        (Decimal(p.project_value or 0) for p in projects if _is_completed(p)), ZERO
    )
    return {
        "total_revenue": total_revenue,
        "completed_revenue": completed_revenue,
        "total_received": sum((p.total_received for p in projects), ZERO),
        "pending_amount": sum((p.pending_amount for p in projects), ZERO),
    }


def stage_distribution(projects: list[Project]) -> list[dict]:
    counts = Counter(p.current_stage for p in projects)
    return [
        {"stage": stage.value, "count": counts[stage.value], "percentage": _pct(counts[stage.value], len(projects))}
        for stage in Stage
        if counts[stage.value]
    ]


def monthly_trends(projects: list[Project], now: datetime) -> list[dict]:
    """Created/completed counts and completed revenue for the last six months."""
    trends = []
    for offset in range(TREND_MONTHS - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        start = _month_start(year, month)
        end = _month_start(*_shift_month(year, month, 1))
        completed = [p for p in projects if _in_window(_completed_at(p), start, end)]
        trends.append(
            {
                "month": f"{year:04d}-{month:02d}",
                "created": sum(1 for p in projects if _in_window(_as_utc(p.created_date), start, end)),
                "completed": len(completed),
                "revenue": sum((Decimal(p.project_value or 0) for p in completed), ZERO),
            }
        )
    return trends


def dashboard(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    projects = db.query(Project).all()
    total = len(projects)
    completed = sum(1 for p in projects if _is_completed(p))

    month_start = _month_start(now.year, now.month)
    month_end = _month_start(*_shift_month(now.year, now.month, 1))
    completed_this_month = [p for p in projects if _in_window(_completed_at(p), month_start, month_end)]

    logger.info("Dashboard analytics generated: projects=%s", total)
    return {
        "totals": {
            "total_projects": total,
            "active_projects": total - completed,
            "completed_projects": completed,
            "success_rate": _pct(completed, total),
        },
        "financials": financial_summary(projects),
        "stage_distribution": stage_distribution(projects),
        "monthly_trends": monthly_trends(projects, now),
        "this_month": {
            "created": sum(
                1 for p in projects if _in_window(_as_utc(p.created_date), month_start, month_end)
            ),
            "completed": len(completed_this_month),
            "revenue": sum((Decimal(p.project_value or 0) for p in completed_this_month), ZERO),
        },
    }
