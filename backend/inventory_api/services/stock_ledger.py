from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from inventory_api.core.errors import Conflict, InvalidOperation, NotFound, UpstreamFailure
from inventory_api.core.inventory_rules import (
    MAX_QUANTITY,
    ChangeType,
    StockMode,
    change_type_for,
    compute_new_quantity,
    get_movement_notes,
    parse_mode,
    validate_quantity,
)
from inventory_api.models.product import Product
from inventory_api.models.stock_movement import StockMovement


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


@dataclass
class StockAdjustment:
    previous_quantity: int
    new_quantity: int
    product: Product
    movement: StockMovement


def lock_active_product(db: Session, product_id: int) -> Optional[Product]:
    """
    Load an active product with a row lock held until the transaction ends.

    SQLite ignores FOR UPDATE; there the version check on UPDATE catches races.
    """
    return (
        db.query(Product)
        .filter(Product.id == product_id, Product.is_active)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _append_movement(
    db: Session,
    product: Product,
    previous_quantity: int,
    new_quantity: int,
    change_type: ChangeType,
    actor_id: Optional[int],
    notes: Optional[str],
) -> StockMovement:
    movement = StockMovement(
        product_id=product.id,
        user_id=actor_id,
        change_type=change_type.value,
        quantity_change=new_quantity - previous_quantity,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        notes=notes,
    )
    product.quantity_in_stock = new_quantity
    db.add(movement)
    return movement


def _apply_adjustment(
    db: Session,
    product_id: int,
    quantity: int,
    mode: StockMode,
    actor_id: Optional[int],
    notes: Optional[str],
) -> StockAdjustment:
    product = lock_active_product(db, product_id)
    if not product:
        db.rollback()
        raise NotFound("Product not found")

    previous_quantity = product.quantity_in_stock
    new_quantity = compute_new_quantity(previous_quantity, quantity, mode)
    if new_quantity < 0:
        db.rollback()
        raise InvalidOperation("Stock cannot be negative")
    if new_quantity > MAX_QUANTITY:
        db.rollback()
        raise InvalidOperation(f"Stock cannot exceed {MAX_QUANTITY}")

    movement = _append_movement(
        db,
        product,
        previous_quantity,
        new_quantity,
        change_type_for(mode),
        actor_id,
        get_movement_notes("stock_adjustment", notes),
    )
    # Quantity update and ledger append commit together or not at all
    db.commit()
    return StockAdjustment(previous_quantity, new_quantity, product, movement)


def adjust_stock(
    db: Session,
    product_id: int,
    quantity: int,
    mode: str,
    actor_id: Optional[int],
    notes: Optional[str] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> StockAdjustment:
    """
    Change a product's quantity and append the matching ledger entry atomically.

    - `set`: quantity is the absolute target
    - `add` / `subtract`: quantity is a non-negative magnitude
    - Fails with InvalidOperation (and writes nothing) if the result would be negative

    Concurrent adjustments of one product are serialized by the row lock; where
    the store cannot lock rows, a lost compare-and-swap on the product version
    rolls the whole transaction back and the read-guard-write is repeated.
    Store failures are never retried, since the transaction state is unknown.
    """
    stock_mode = parse_mode(mode)
    validate_quantity(quantity)

    for attempt in range(1, max_attempts + 1):
        try:
            adjustment = _apply_adjustment(db, product_id, quantity, stock_mode, actor_id, notes)
        except StaleDataError:
            db.rollback()
            logger.info(
                "stock version conflict product_id=%s attempt=%s/%s", product_id, attempt, max_attempts
            )
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("stock adjustment failed product_id=%s", product_id)
            raise UpstreamFailure() from exc

        logger.info(
            "stock adjusted product_id=%s mode=%s previous=%s new=%s actor_id=%s",
            product_id,
            stock_mode.value,
            adjustment.previous_quantity,
            adjustment.new_quantity,
            actor_id,
        )
        return adjustment

    raise Conflict("Stock was modified concurrently, please retry")


def record_opening_stock(db: Session, product: Product, actor_id: Optional[int]) -> Optional[StockMovement]:
    """
    Ledger entry for the quantity a product was created with.

    Runs in the caller's transaction, after the product row has been flushed.
    """
    opening_quantity = product.quantity_in_stock or 0
    if opening_quantity == 0:
        return None
    return _append_movement(
        db,
        product,
        0,
        opening_quantity,
        ChangeType.addition,
        actor_id,
        get_movement_notes("product_create"),
    )


def record_manual_adjustment(
    db: Session,
    product: Product,
    new_quantity: int,
    actor_id: Optional[int],
    notes: Optional[str] = None,
) -> Optional[StockMovement]:
    """Ledger entry for a quantity set through a product edit. Caller commits."""
    validate_quantity(new_quantity)
    previous_quantity = product.quantity_in_stock
    if new_quantity == previous_quantity:
        return None
    return _append_movement(
        db,
        product,
        previous_quantity,
        new_quantity,
        ChangeType.adjustment,
        actor_id,
        get_movement_notes("product_update", notes),
    )


def list_movements(db: Session, product_id: int, limit: int = 50, offset: int = 0) -> List[StockMovement]:
    return (
        db.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def replay_quantity(db: Session, product_id: int) -> int:
    """Quantity reconstructed from the ledger alone."""
    total = (
        db.query(func.coalesce(func.sum(StockMovement.quantity_change), 0))
        .filter(StockMovement.product_id == product_id)
        .scalar()
    )
    return int(total)
