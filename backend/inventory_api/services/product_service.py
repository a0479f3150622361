from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from inventory_api.core.errors import Conflict, NotFound
from inventory_api.models.base import LifecycleState
from inventory_api.models.category import Category
from inventory_api.models.product import Product
from inventory_api.schemas.products import ProductIn
from inventory_api.services.blob_store import ImageUpload, store_image
from inventory_api.services.catalog_service import get_active_product
from inventory_api.services.stock_ledger import lock_active_product, record_manual_adjustment, record_opening_stock


logger = logging.getLogger(__name__)


def ensure_sku_available(db: Session, sku: Optional[str], exclude_id: Optional[int] = None) -> None:
    if not sku:
        return
    query = db.query(Product.id).filter(Product.sku == sku, Product.is_active)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise Conflict("SKU already exists")


def ensure_category_exists(db: Session, category_id: Optional[int]) -> None:
    if category_id is None:
        return
    # Shared lock keeps the category from being deleted until this write commits
    if not db.query(Category.id).filter(Category.id == category_id).with_for_update(read=True).first():
        raise NotFound("Category not found")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Friendly message for the partial unique index (two writers racing on one SKU)
        if "uq_products_active_sku" in str(e.orig) or "products.sku" in str(e.orig):
            raise Conflict("SKU already exists")
        raise Conflict("Invalid product data")
    except StaleDataError:
        db.rollback()
        raise Conflict("Product was modified concurrently, please retry")


def create_product(
    db: Session,
    data: ProductIn,
    actor_id: Optional[int],
    blob_store,
    image: Optional[ImageUpload] = None,
) -> Product:
    ensure_sku_available(db, data.sku)
    ensure_category_exists(db, data.category_id)

    product = Product(
        name=data.name,
        name_km=data.name_km,
        description=data.description,
        category_id=data.category_id,
        image_url=store_image(blob_store, image),
        cost_price=data.cost_price,
        cost_currency=data.cost_currency,
        selling_price=data.selling_price,
        selling_currency=data.selling_currency,
        quantity_in_stock=data.quantity_in_stock,
        low_stock_threshold=data.low_stock_threshold,
        sku=data.sku,
        state=LifecycleState.active.value,
    )
    db.add(product)
    db.flush()  # product.id is needed by the opening movement

    record_opening_stock(db, product, actor_id)
    _commit(db)
    db.refresh(product)
    logger.info("product created id=%s sku=%s quantity=%s", product.id, product.sku, product.quantity_in_stock)
    return product


def update_product(
    db: Session,
    product_id: int,
    data: ProductIn,
    actor_id: Optional[int],
    blob_store,
    image: Optional[ImageUpload] = None,
) -> Product:
    product = lock_active_product(db, product_id)
    if not product:
        raise NotFound("Product not found")
    ensure_sku_available(db, data.sku, exclude_id=product.id)
    ensure_category_exists(db, data.category_id)

    new_image_url = store_image(blob_store, image)
    if new_image_url:
        product.image_url = new_image_url

    product.name = data.name
    product.name_km = data.name_km
    product.description = data.description
    product.category_id = data.category_id
    product.cost_price = data.cost_price
    product.cost_currency = data.cost_currency
    product.selling_price = data.selling_price
    product.selling_currency = data.selling_currency
    product.low_stock_threshold = data.low_stock_threshold
    product.sku = data.sku

    # A quantity edited here still goes through the ledger, in this same transaction
    record_manual_adjustment(db, product, data.quantity_in_stock, actor_id)

    _commit(db)
    db.refresh(product)
    return product


def soft_delete_product(db: Session, product_id: int) -> None:
    product = get_active_product(db, product_id)
    product.deactivate()
    db.commit()
    logger.info("product deactivated id=%s", product_id)
