"""Operational alerts raised against projects."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import TIMESTAMP, Boolean, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, backref, mapped_column, relationship

from workhub.db.base import Base
from workhub.db.models.projects import Project


class ProjectAlert(Base):
    """
    A delay or integrity alert for a project.

    Dismissal is a soft delete: `is_active` flips false and the dismissal
    is stamped once.
    """

    __tablename__ = "project_alerts"
    __table_args__ = (
        Index("idx_project_alerts_active_type", "project_id", "alert_type", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    days_overdue: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    dismissed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    dismissed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    project: Mapped[Project] = relationship(
        backref=backref("alerts", cascade="all, delete-orphan")
    )
