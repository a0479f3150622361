from __future__ import annotations

import math
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from inventory_api.core.errors import NotFound
from inventory_api.core.inventory_rules import StockStatus
from inventory_api.models.product import Product
from inventory_api.schemas.products import Pagination, ProductView, project_product


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def active_products(db: Session) -> Query:
    return db.query(Product).filter(Product.is_active)


def apply_stock_status_filter(query: Query, stock_status: Optional[str]) -> Query:
    if not stock_status or stock_status == "all":
        return query
    if stock_status == StockStatus.out_of_stock.value:
        return query.filter(Product.quantity_in_stock == 0)
    if stock_status == StockStatus.low_stock.value:
        return query.filter(
            Product.quantity_in_stock > 0,
            Product.quantity_in_stock <= Product.low_stock_threshold,
        )
    if stock_status == StockStatus.in_stock.value:
        return query.filter(Product.quantity_in_stock > Product.low_stock_threshold)
    return query


def like_pattern(term: str) -> str:
    """Substring pattern for LIKE with `\\`, `%` and `_` matched literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def filtered_products(
    db: Session,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    stock_status: Optional[str] = None,
) -> Query:
    """The one predicate used for both the page slice and the counts."""
    query = active_products(db)
    if search:
        term = search.strip().lower()
        if term:
            pattern = like_pattern(term)
            query = query.filter(
                or_(
                    func.lower(Product.name).like(pattern, escape="\\"),
                    func.lower(Product.name_km).like(pattern, escape="\\"),
                    func.lower(Product.sku).like(pattern, escape="\\"),
                )
            )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return apply_stock_status_filter(query, stock_status)


def build_pagination(page: int, limit: int, total_items: int) -> Pagination:
    total_pages = math.ceil(total_items / limit) if total_items else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        items_per_page=limit,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def list_products(
    db: Session,
    role: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    stock_status: Optional[str] = None,
) -> Tuple[List[ProductView], Pagination]:
    query = filtered_products(db, search=search, category_id=category_id, stock_status=stock_status)
    total_items = query.order_by(None).count()
    products = (
        query.options(joinedload(Product.category))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [project_product(p, role) for p in products], build_pagination(page, limit, total_items)


def get_active_product(db: Session, product_id: int) -> Product:
    product = active_products(db).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")
    return product


def get_product(db: Session, product_id: int, role: str) -> ProductView:
    return project_product(get_active_product(db, product_id), role)
