from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from inventory_api.core.database import get_db
from inventory_api.core.deps import get_current_user, require_admin
from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.category import Category
from inventory_api.models.user import User
from inventory_api.schemas.base import CamelModel
from inventory_api.services import category_service


router = APIRouter()


class CategoryIn(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=50)
    display_order: int = Field(default=0, ge=0)

    @field_validator("name", "description", "icon", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class CategoryOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: int
    created_at: Optional[datetime] = None
    product_count: Optional[int] = None


def _out(category: Category, product_count: Optional[int] = None) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        description=category.description or None,
        icon=category.icon or None,
        display_order=category.display_order,
        created_at=category.created_at,
        product_count=product_count,
    )


@router.get("")
def list_categories(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    categories = [_out(c) for c in category_service.list_categories(db)]
    return envelope(categories, count=len(categories))


@router.get("/{category_id}")
def get_category(category_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    category, product_count = category_service.get_category_with_count(db, category_id)
    return envelope(_out(category, product_count))


@router.post("", status_code=201)
def create_category(data: CategoryIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    category = category_service.create_category(
        db, data.name, data.description or None, data.icon or None, data.display_order
    )
    return envelope(_out(category), "Category created successfully")


@router.put("/{category_id}")
def update_category(
    category_id: int,
    data: CategoryIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    category = category_service.update_category(
        db, category_id, data.name, data.description or None, data.icon or None, data.display_order
    )
    return envelope(_out(category), "Category updated successfully")


@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    category_service.delete_category(db, category_id)
    return envelope(message="Category deleted successfully")
