"""Analytics endpoints (SUPER_ADMIN dashboard)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workhub.core.deps import get_db, require_area
from workhub.core.role_policy import Area
from workhub.db.models import User
from workhub.schemas.analytics import DashboardAnalytics
from workhub.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard", response_model=DashboardAnalytics)
def dashboard(
    _: User = Depends(require_area(Area.DASHBOARD)),
    db: Session = Depends(get_db),
):
    return analytics_service.dashboard(db)
