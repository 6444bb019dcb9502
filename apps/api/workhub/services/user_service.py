"""User administration."""

import logging

from sqlalchemy.orm import Session

from workhub.core.errors import AuthorizationError, ConflictError, NotFoundError
from workhub.core.role_policy import Actor, parse_role
from workhub.db.enums import Role
from workhub.db.models import User

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found with id: {user_id}")
    return user


def get_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.name, User.id).all()


def create_user(
    db: Session,
    name: str,
    email: str,
    role: Role,
    crm_id: int | None = None,
) -> User:
    email = email.strip().lower()
    if get_by_email(db, email):
        raise ConflictError(f"User with email {email} already exists")
    user = User(
        name=name.strip(),
        email=email,
        role=Role(role).value,
        crm_id=crm_id,
        is_active=True,
        token_version=1,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created: id=%s role=%s", user.id, user.role)
    return user


def set_role(db: Session, user: User, role: Role, actor: Actor) -> User:
    """
    Change a user's role and revoke their outstanding tokens.

    Nobody changes their own role, and only SUPER_ADMIN grants or revokes
    ROLE_SUPER_ADMIN.
    """
    role = Role(role)
    if actor.user_id is not None and actor.user_id == user.id:
        raise AuthorizationError("You cannot change your own role")
    touches_super_admin = role is Role.SUPER_ADMIN or parse_role(user.role) is Role.SUPER_ADMIN
    if touches_super_admin and parse_role(actor.role) is not Role.SUPER_ADMIN:
        raise AuthorizationError("Only a super admin can grant or revoke super admin")

    if user.role == role.value:
        return user
    old_role = user.role
    user.role = role.value
    user.token_version += 1
    db.commit()
    db.refresh(user)
    logger.info("User role changed: id=%s %s -> %s", user.id, old_role, role.value)
    return user
