"""
Product request bodies and the two role-scoped response shapes.

Staff never see cost data: `StaffProductView` simply has no cost fields, and
`project_product` picks the variant from the caller's role.
"""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import Field, StrictInt, field_validator

from inventory_api.core.inventory_rules import MAX_QUANTITY, StockMode, classify_stock
from inventory_api.core.roles import is_admin
from inventory_api.core.serialization_helpers import serialize_decimal
from inventory_api.models.product import DEFAULT_LOW_STOCK_THRESHOLD, Product
from inventory_api.schemas.base import CamelModel


Currency = Literal["USD", "KHR"]


class ProductIn(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    name_km: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = None
    cost_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    selling_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    cost_currency: Currency = "USD"
    selling_currency: Currency = "USD"
    quantity_in_stock: int = Field(ge=0, le=MAX_QUANTITY)
    low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD, ge=0, le=MAX_QUANTITY)
    sku: Optional[str] = Field(default=None, max_length=100)

    @field_validator("name", "name_km", "description", "sku", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category(cls, value):
        # Multipart forms send "" for an unset select
        if value == "":
            return None
        return value


class StockUpdateIn(CamelModel):
    quantity: StrictInt = Field(le=MAX_QUANTITY)
    type: StockMode
    notes: Optional[str] = Field(default=None, max_length=500)


class StaffProductView(CamelModel):
    id: int
    name: str
    name_km: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    image_url: Optional[str] = None
    selling_price: float
    selling_currency: str
    quantity_in_stock: int
    low_stock_threshold: int
    sku: Optional[str] = None
    stock_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminProductView(StaffProductView):
    cost_price: float
    cost_currency: str
    profit_margin: float


ProductView = Union[AdminProductView, StaffProductView]


def _staff_fields(product: Product) -> dict:
    return dict(
        id=product.id,
        name=product.name,
        name_km=product.name_km,
        description=product.description,
        category_id=product.category_id,
        category_name=product.category.name if product.category else None,
        image_url=product.image_url,
        selling_price=serialize_decimal(product.selling_price),
        selling_currency=product.selling_currency,
        quantity_in_stock=product.quantity_in_stock,
        low_stock_threshold=product.low_stock_threshold,
        sku=product.sku,
        stock_status=classify_stock(product.quantity_in_stock, product.low_stock_threshold).value,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def project_product(product: Product, role: str) -> ProductView:
    if is_admin(role):
        return AdminProductView(
            **_staff_fields(product),
            cost_price=serialize_decimal(product.cost_price),
            cost_currency=product.cost_currency,
            profit_margin=serialize_decimal(product.selling_price - product.cost_price),
        )
    return StaffProductView(**_staff_fields(product))


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class MovementView(CamelModel):
    id: int
    product_id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    change_type: str
    quantity_change: int
    previous_quantity: int
    new_quantity: int
    notes: Optional[str] = None
    created_at: datetime


def project_movement(movement) -> MovementView:
    return MovementView(
        id=movement.id,
        product_id=movement.product_id,
        user_id=movement.user_id,
        user_name=movement.user.name if movement.user else None,
        change_type=movement.change_type,
        quantity_change=movement.quantity_change,
        previous_quantity=movement.previous_quantity,
        new_quantity=movement.new_quantity,
        notes=movement.notes,
        created_at=movement.created_at,
    )
