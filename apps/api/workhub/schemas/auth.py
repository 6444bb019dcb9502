"""Pydantic schemas for users and the current session."""

from datetime import datetime

from pydantic import EmailStr, Field

from workhub.core.role_policy import Area
from workhub.db.enums import Role
from workhub.schemas.common import CamelModel


class UserRead(CamelModel):
    id: int
    name: str
    email: str
    role: str
    crm_id: int | None = None
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime


class MeResponse(CamelModel):
    """Profile plus the routing facts a dashboard needs after sign-in."""

    user: UserRead
    landing_path: str
    areas: list[Area]
    alert_poll_interval_seconds: int


class RoleUpdate(CamelModel):
    role: Role


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: Role
    crm_id: int | None = None
