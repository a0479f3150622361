"""
Stock rules: how an adjustment request turns into a new quantity and a ledger
entry, and how a quantity is classified against its low-stock threshold.

General rule: every change to a product's quantity produces exactly one
movement whose `quantity_change` is the applied delta, so the movements of a
product always sum to its current quantity.
"""
from enum import Enum
from typing import Optional

from inventory_api.core.errors import InvalidOperation


class StockMode(str, Enum):
    set = "set"
    add = "add"
    subtract = "subtract"


class ChangeType(str, Enum):
    addition = "addition"
    subtraction = "subtraction"
    adjustment = "adjustment"


class StockStatus(str, Enum):
    out_of_stock = "out_of_stock"
    low_stock = "low_stock"
    in_stock = "in_stock"


CHANGE_TYPE_BY_MODE = {
    StockMode.add: ChangeType.addition,
    StockMode.subtract: ChangeType.subtraction,
    StockMode.set: ChangeType.adjustment,
}

STOCK_STATUS_FILTERS = ("all",) + tuple(s.value for s in StockStatus)

# Quantities are stored in a 32-bit integer column
MAX_QUANTITY = 2**31 - 1


def parse_mode(mode) -> StockMode:
    try:
        return StockMode(mode)
    except ValueError:
        raise InvalidOperation("Type must be set, add, or subtract")


def validate_quantity(quantity) -> int:
    """Quantities are non-negative integers in every mode (bools are rejected)."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidOperation("Quantity must be an integer")
    if quantity < 0:
        raise InvalidOperation("Quantity must be a non-negative integer")
    if quantity > MAX_QUANTITY:
        raise InvalidOperation(f"Quantity cannot exceed {MAX_QUANTITY}")
    return quantity


def compute_new_quantity(current: int, quantity: int, mode: StockMode) -> int:
    """
    Apply an adjustment request to the current quantity.

    Args:
        current: Quantity read under lock
        quantity: Absolute target for `set`, magnitude for `add`/`subtract`
        mode: Adjustment mode

    Returns:
        The resulting quantity. May be negative; callers must reject that.
    """
    if mode == StockMode.set:
        return quantity
    if mode == StockMode.add:
        return current + quantity
    return current - quantity


def change_type_for(mode: StockMode) -> ChangeType:
    return CHANGE_TYPE_BY_MODE[mode]


def classify_stock(quantity: int, threshold: int) -> StockStatus:
    if quantity == 0:
        return StockStatus.out_of_stock
    if quantity <= threshold:
        return StockStatus.low_stock
    return StockStatus.in_stock


def get_movement_notes(operation_type: str, notes: Optional[str] = None) -> Optional[str]:
    """
    Notes stored on a movement.

    Stock endpoint adjustments keep the caller's notes verbatim; ledger entries
    written on behalf of product create/edit get a descriptive default.
    """
    if notes:
        return notes.strip() or None
    notes_map = {
        "product_create": "Initial stock",
        "product_update": "Manual adjustment from product edit",
    }
    return notes_map.get(operation_type)
