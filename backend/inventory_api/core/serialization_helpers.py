"""
Generic serialization helpers.
No business logic here, only formatting of store values for JSON.
"""
from decimal import ROUND_HALF_UP, Decimal


TWO_PLACES = Decimal("0.01")


def serialize_decimal(value):
    """Numeric column value to float for JSON"""
    if value is None:
        return None
    return float(value)


def round_money(value) -> float:
    """Round half-up to cents, then to float"""
    if value is None:
        return 0.0
    return float(Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def envelope(data=None, message=None, **extra) -> dict:
    """Success body: `{success, message?, data?, ...extra}`"""
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
