import pytest

from inventory_api.core.errors import InvalidOperation
from inventory_api.core.inventory_rules import (
    MAX_QUANTITY,
    ChangeType,
    StockMode,
    StockStatus,
    change_type_for,
    classify_stock,
    compute_new_quantity,
    get_movement_notes,
    parse_mode,
    validate_quantity,
)


@pytest.mark.parametrize(
    "current,quantity,mode,expected",
    [
        (10, 3, StockMode.subtract, 7),
        (7, 7, StockMode.subtract, 0),
        (0, 1, StockMode.subtract, -1),
        (3, 20, StockMode.set, 20),
        (3, 0, StockMode.set, 0),
        (5, 4, StockMode.add, 9),
    ],
)
def test_compute_new_quantity(current, quantity, mode, expected):
    assert compute_new_quantity(current, quantity, mode) == expected


def test_change_type_follows_mode():
    assert change_type_for(StockMode.add) == ChangeType.addition
    assert change_type_for(StockMode.subtract) == ChangeType.subtraction
    assert change_type_for(StockMode.set) == ChangeType.adjustment


@pytest.mark.parametrize(
    "quantity,threshold,expected",
    [
        (0, 5, StockStatus.out_of_stock),
        (0, 0, StockStatus.out_of_stock),
        (1, 5, StockStatus.low_stock),
        (5, 5, StockStatus.low_stock),
        (6, 5, StockStatus.in_stock),
        (1, 0, StockStatus.in_stock),
    ],
)
def test_classify_stock(quantity, threshold, expected):
    assert classify_stock(quantity, threshold) == expected


def test_parse_mode_rejects_unknown():
    assert parse_mode("add") == StockMode.add
    with pytest.raises(InvalidOperation):
        parse_mode("multiply")


@pytest.mark.parametrize("bad", [-1, 1.5, "3", True, None, MAX_QUANTITY + 1])
def test_validate_quantity_rejects(bad):
    with pytest.raises(InvalidOperation):
        validate_quantity(bad)


def test_movement_notes_defaults():
    assert get_movement_notes("product_create") == "Initial stock"
    assert get_movement_notes("product_update") == "Manual adjustment from product edit"
    assert get_movement_notes("stock_adjustment") is None
    assert get_movement_notes("stock_adjustment", "  restock  ") == "restock"
