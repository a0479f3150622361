from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_api.core.errors import (
    Conflict,
    DeactivatedAccount,
    InvalidCredentials,
    NotFound,
    SelfProtectionViolation,
)
from inventory_api.core.roles import Role
from inventory_api.core.security import CredentialService
from inventory_api.models.base import LifecycleState
from inventory_api.models.user import User


logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_user(
    db: Session,
    credentials: CredentialService,
    email: str,
    password: str,
    name: str,
    role: str = Role.staff.value,
) -> User:
    if find_by_email(db, email):
        raise Conflict("User with this email already exists")

    user = User(
        email=normalize_email(email),
        hashed_password=credentials.hash_password(password),
        name=name.strip(),
        role=role,
        state=LifecycleState.active.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User with this email already exists")
    db.refresh(user)
    logger.info("user registered id=%s role=%s", user.id, user.role)
    return user


def login(db: Session, credentials: CredentialService, email: str, password: str) -> User:
    user = find_by_email(db, email)
    if not user:
        raise InvalidCredentials()
    if not user.is_active:
        raise DeactivatedAccount("Account is deactivated. Contact administrator.")
    if not credentials.verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    return user


def change_password(
    db: Session,
    credentials: CredentialService,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    if not credentials.verify_password(current_password, user.hashed_password):
        raise InvalidCredentials("Current password is incorrect")
    user.hashed_password = credentials.hash_password(new_password)
    db.commit()


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def ensure_not_self(actor: User, user_id: int, action: str) -> None:
    """Admins manage other accounts only; their own role and status are off limits."""
    if actor.id == user_id:
        raise SelfProtectionViolation(f"You cannot {action} your own account")


def update_user(
    db: Session,
    actor: User,
    user_id: int,
    name: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> User:
    ensure_not_self(actor, user_id, "modify")
    user = get_user(db, user_id)

    if name is not None:
        user.name = name.strip()
    if role is not None:
        user.role = role
    if is_active is not None:
        if is_active:
            user.activate()
        else:
            user.deactivate()
    db.commit()
    db.refresh(user)
    logger.info("user updated id=%s by=%s role=%s state=%s", user.id, actor.id, user.role, user.state)
    return user


def deactivate_user(db: Session, actor: User, user_id: int) -> None:
    ensure_not_self(actor, user_id, "delete")
    user = get_user(db, user_id)
    user.deactivate()
    db.commit()
    logger.info("user deactivated id=%s by=%s", user_id, actor.id)
