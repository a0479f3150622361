from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_api.core.errors import Conflict, NotFound
from inventory_api.models.category import Category
from inventory_api.models.product import Product


logger = logging.getLogger(__name__)


def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.display_order.asc(), Category.name.asc()).all()


def get_category(db: Session, category_id: int, lock: bool = False) -> Category:
    query = db.query(Category).filter(Category.id == category_id)
    if lock:
        query = query.with_for_update()
    category = query.first()
    if not category:
        raise NotFound("Category not found")
    return category


def count_active_products(db: Session, category_id: int) -> int:
    return (
        db.query(func.count(Product.id))
        .filter(Product.category_id == category_id, Product.is_active)
        .scalar()
    )


def get_category_with_count(db: Session, category_id: int) -> Tuple[Category, int]:
    category = get_category(db, category_id)
    return category, count_active_products(db, category_id)


def ensure_name_available(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise Conflict("Category with this name already exists")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Category with this name already exists")


def create_category(
    db: Session,
    name: str,
    description: Optional[str] = None,
    icon: Optional[str] = None,
    display_order: int = 0,
) -> Category:
    ensure_name_available(db, name)
    category = Category(name=name, description=description, icon=icon, display_order=display_order)
    db.add(category)
    _commit(db)
    db.refresh(category)
    return category


def update_category(
    db: Session,
    category_id: int,
    name: str,
    description: Optional[str] = None,
    icon: Optional[str] = None,
    display_order: int = 0,
) -> Category:
    category = get_category(db, category_id)
    ensure_name_available(db, name, exclude_id=category_id)
    category.name = name
    category.description = description
    category.icon = icon
    category.display_order = display_order
    _commit(db)
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> None:
    """Hard delete, refused while any active product is in the category."""
    # Exclusive lock: product writes hold a shared lock on their category row
    category = get_category(db, category_id, lock=True)
    active_count = count_active_products(db, category_id)
    if active_count > 0:
        db.rollback()
        raise Conflict(f"Cannot delete category. It has {active_count} active products.")

    # Soft-deleted products keep their history but lose the reference
    db.query(Product).filter(Product.category_id == category_id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
    logger.info("category deleted id=%s", category_id)
