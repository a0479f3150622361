from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from inventory_api.core.database import get_db
from inventory_api.core.deps import require_admin
from inventory_api.core.roles import Role
from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.user import User
from inventory_api.schemas.base import CamelModel
from inventory_api.services import user_service


router = APIRouter()


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class UserOut(CamelModel):
    id: int
    email: str
    name: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("")
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """All accounts, deactivated ones included"""
    users = [_out(u) for u in user_service.list_users(db)]
    return envelope(users, count=len(users))


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return envelope(_out(user_service.get_user(db, user_id)))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = user_service.update_user(
        db,
        admin,
        user_id,
        name=data.name,
        role=data.role.value if data.role else None,
        is_active=data.is_active,
    )
    return envelope(_out(user), "User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    user_service.deactivate_user(db, admin, user_id)
    return envelope(message="User deactivated successfully")
