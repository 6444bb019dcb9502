"""Session endpoints."""

from fastapi import APIRouter, Depends

from workhub.core.config import settings
from workhub.core.deps import get_current_user
from workhub.core.role_policy import accessible_areas, landing_path_for
from workhub.db.models import User
from workhub.schemas.auth import MeResponse, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    """Current user with landing path and reachable areas."""
    return MeResponse(
        user=UserRead.model_validate(user),
        landing_path=landing_path_for(user),
        areas=accessible_areas(user),
        alert_poll_interval_seconds=settings.ALERT_POLL_INTERVAL_SECONDS,
    )
