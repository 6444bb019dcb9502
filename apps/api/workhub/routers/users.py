"""User administration endpoints (admins only)."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workhub.core.deps import actor_for, get_db, require_area
from workhub.core.role_policy import Area
from workhub.db.models import User
from workhub.schemas.auth import RoleUpdate, UserCreate, UserRead
from workhub.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
def list_users(
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db)


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    data: UserCreate,
    _: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    return user_service.create_user(db, data.name, data.email, data.role, data.crm_id)


@router.put("/{user_id}/role", response_model=UserRead)
def update_role(
    user_id: int,
    data: RoleUpdate,
    current: User = Depends(require_area(Area.ADMIN)),
    db: Session = Depends(get_db),
):
    """Change a user's role. Nobody changes their own role."""
    user = user_service.get_user(db, user_id)
    return user_service.set_role(db, user, data.role, actor_for(current))
