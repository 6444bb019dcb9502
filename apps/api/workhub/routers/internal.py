"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from workhub.core.config import settings
from workhub.core.deps import get_db
from workhub.schemas.alert import AlertScanResult
from workhub.services import alert_service

router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)) -> None:
    """Verify the internal secret header."""
    if not settings.INTERNAL_SECRET:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != settings.INTERNAL_SECRET:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


@router.post(
    "/alerts",
    response_model=AlertScanResult,
    dependencies=[Depends(verify_internal_secret)],
)
def scan_alerts(db: Session = Depends(get_db)):
    """Delay alert sweep for external cron."""
    return {"created": alert_service.generate_delay_alerts(db)}
