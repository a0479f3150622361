from __future__ import annotations

from decimal import Decimal
from typing import List

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, joinedload

from inventory_api.core.inventory_rules import StockStatus, classify_stock
from inventory_api.core.roles import is_admin
from inventory_api.core.serialization_helpers import round_money, serialize_decimal
from inventory_api.models.category import Category
from inventory_api.models.product import Product
from inventory_api.models.stock_movement import StockMovement
from inventory_api.models.user import User
from inventory_api.schemas.dashboard import (
    AdminDashboardStats,
    AdminLowStockItem,
    CategoryBreakdown,
    DashboardStats,
    LowStockItem,
    LowStockSummary,
    LowStockView,
    ProfitableProduct,
    ProfitLine,
    ProfitReport,
    ProfitSummary,
    RecentMovement,
    StatsView,
)
from inventory_api.services.catalog_service import active_products, apply_stock_status_filter


TOP_LIMIT = 5
RECENT_MOVEMENTS_LIMIT = 10


def profit_percentage(cost_price, selling_price) -> float:
    """Profit over cost as a percentage, 2 decimals; 0 when cost is 0."""
    cost = Decimal(cost_price or 0)
    if cost == 0:
        return 0.0
    return round_money((Decimal(selling_price or 0) - cost) / cost * 100)


def _category_breakdown(db: Session) -> List[CategoryBreakdown]:
    rows = (
        db.query(
            Category.id,
            Category.name,
            func.count(Product.id).label("product_count"),
            func.coalesce(func.sum(Product.quantity_in_stock), 0).label("total_items"),
        )
        .outerjoin(Product, and_(Product.category_id == Category.id, Product.is_active))
        .group_by(Category.id, Category.name, Category.display_order)
        .order_by(Category.display_order.asc(), Category.name.asc())
        .all()
    )
    return [
        CategoryBreakdown(id=r.id, name=r.name, product_count=r.product_count, total_items=int(r.total_items))
        for r in rows
    ]


def _low_stock_query(db: Session):
    return (
        active_products(db)
        .options(joinedload(Product.category))
        .filter(Product.quantity_in_stock <= Product.low_stock_threshold)
        .order_by(Product.quantity_in_stock.asc(), Product.id.asc())
    )


def _recent_movements(db: Session) -> List[RecentMovement]:
    rows = (
        db.query(StockMovement, Product.name.label("product_name"), User.name.label("user_name"))
        .join(Product, StockMovement.product_id == Product.id)
        .outerjoin(User, StockMovement.user_id == User.id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(RECENT_MOVEMENTS_LIMIT)
        .all()
    )
    return [
        RecentMovement(
            id=m.id,
            change_type=m.change_type,
            quantity_change=m.quantity_change,
            previous_quantity=m.previous_quantity,
            new_quantity=m.new_quantity,
            created_at=m.created_at,
            product_name=product_name,
            user_name=user_name,
        )
        for m, product_name, user_name in rows
    ]


def dashboard_stats(db: Session, role: str) -> StatsView:
    """
    Dashboard rollups over active products.

    Everyone gets counts and the per-category breakdown; admins also get
    inventory valuation, the lowest-stock and most profitable products, and
    the latest ledger entries.
    """
    total_products = active_products(db).count()
    total_items = (
        db.query(func.coalesce(func.sum(Product.quantity_in_stock), 0)).filter(Product.is_active).scalar()
    )
    low_stock_count = apply_stock_status_filter(active_products(db), StockStatus.low_stock.value).count()
    out_of_stock_count = apply_stock_status_filter(active_products(db), StockStatus.out_of_stock.value).count()

    base = dict(
        total_products=total_products,
        total_items_in_stock=int(total_items),
        low_stock_count=low_stock_count,
        out_of_stock_count=out_of_stock_count,
        category_breakdown=_category_breakdown(db),
    )
    if not is_admin(role):
        return DashboardStats(**base)

    values = (
        db.query(
            func.coalesce(func.sum(Product.quantity_in_stock * Product.cost_price), 0),
            func.coalesce(func.sum(Product.quantity_in_stock * Product.selling_price), 0),
            func.coalesce(
                func.sum(Product.quantity_in_stock * (Product.selling_price - Product.cost_price)), 0
            ),
        )
        .filter(Product.is_active)
        .one()
    )
    total_cost_value, total_selling_value, potential_profit = values

    low_stock_products = [
        LowStockSummary(
            id=p.id,
            name=p.name,
            quantity_in_stock=p.quantity_in_stock,
            low_stock_threshold=p.low_stock_threshold,
            sku=p.sku,
            category_name=p.category.name if p.category else None,
        )
        for p in _low_stock_query(db).limit(TOP_LIMIT).all()
    ]

    top_profitable = (
        active_products(db)
        .filter(Product.quantity_in_stock > 0)
        .order_by((Product.selling_price - Product.cost_price).desc(), Product.id.asc())
        .limit(TOP_LIMIT)
        .all()
    )
    top_profitable_products = [
        ProfitableProduct(
            id=p.id,
            name=p.name,
            cost_price=serialize_decimal(p.cost_price),
            selling_price=serialize_decimal(p.selling_price),
            profit_per_unit=round_money(p.selling_price - p.cost_price),
            profit_percentage=profit_percentage(p.cost_price, p.selling_price),
        )
        for p in top_profitable
    ]

    return AdminDashboardStats(
        **base,
        total_cost_value=round_money(total_cost_value),
        total_selling_value=round_money(total_selling_value),
        potential_profit=round_money(potential_profit),
        low_stock_products=low_stock_products,
        top_profitable_products=top_profitable_products,
        recent_stock_movements=_recent_movements(db),
    )


def low_stock_products(db: Session, role: str) -> List[LowStockView]:
    items = []
    for p in _low_stock_query(db).all():
        fields = dict(
            id=p.id,
            name=p.name,
            quantity_in_stock=p.quantity_in_stock,
            low_stock_threshold=p.low_stock_threshold,
            sku=p.sku,
            selling_price=serialize_decimal(p.selling_price),
            image_url=p.image_url,
            category_name=p.category.name if p.category else None,
            stock_status=classify_stock(p.quantity_in_stock, p.low_stock_threshold).value,
        )
        if is_admin(role):
            items.append(AdminLowStockItem(**fields, cost_price=serialize_decimal(p.cost_price)))
        else:
            items.append(LowStockItem(**fields))
    return items


def profit_calculator(db: Session) -> ProfitReport:
    products = active_products(db).options(joinedload(Product.category)).all()

    lines = []
    total_cost = Decimal(0)
    total_selling = Decimal(0)
    total_profit = Decimal(0)
    for p in products:
        cost = Decimal(p.cost_price or 0)
        selling = Decimal(p.selling_price or 0)
        quantity = p.quantity_in_stock
        profit_per_unit = selling - cost
        potential_profit = profit_per_unit * quantity

        total_cost += cost * quantity
        total_selling += selling * quantity
        total_profit += potential_profit

        lines.append(
            ProfitLine(
                id=p.id,
                name=p.name,
                sku=p.sku,
                cost_price=serialize_decimal(cost),
                selling_price=serialize_decimal(selling),
                quantity_in_stock=quantity,
                profit_per_unit=round_money(profit_per_unit),
                total_potential_profit=round_money(potential_profit),
                profit_percentage=profit_percentage(cost, selling),
                category_name=p.category.name if p.category else None,
            )
        )

    lines.sort(key=lambda line: line.total_potential_profit, reverse=True)
    overall_margin = round_money(total_profit / total_cost * 100) if total_cost else 0.0

    return ProfitReport(
        products=lines,
        summary=ProfitSummary(
            total_cost_value=round_money(total_cost),
            total_selling_value=round_money(total_selling),
            total_potential_profit=round_money(total_profit),
            overall_profit_margin=overall_margin,
        ),
    )
