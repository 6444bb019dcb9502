"""Alert endpoints. Admin area, except per-project reads."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workhub.core.deps import get_db, require_area
from workhub.core.role_policy import Area
from workhub.db.models import User
from workhub.schemas.alert import AlertRead, AlertScanResult, AlertSummary
from workhub.services import alert_service

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("/active", response_model=list[AlertRead])
def list_active(
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return alert_service.list_active(db)


@router.get("/summary", response_model=AlertSummary)
def summary(
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return alert_service.summary(db)


@router.get("/project/{project_id}", response_model=list[AlertRead])
def list_for_project(
    project_id: int,
    _: User = Depends(require_area(Area.COMPLETED)),
    db: Session = Depends(get_db),
):
    return alert_service.list_for_project(db, project_id)


@router.post("/generate", response_model=AlertScanResult)
def generate(
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    """Run the delay scan now instead of waiting for the worker."""
    return {"created": alert_service.generate_delay_alerts(db)}


@router.post("/{alert_id}/dismiss", response_model=AlertRead)
def dismiss(
    alert_id: int,
    user: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    """Dismiss an alert. Dismissing twice is harmless."""
    return alert_service.dismiss(db, alert_id, user.name)
