from datetime import datetime
from typing import List, Optional, Union

from inventory_api.schemas.base import CamelModel


class CategoryBreakdown(CamelModel):
    id: int
    name: str
    product_count: int
    total_items: int


class LowStockSummary(CamelModel):
    id: int
    name: str
    quantity_in_stock: int
    low_stock_threshold: int
    sku: Optional[str] = None
    category_name: Optional[str] = None


class ProfitableProduct(CamelModel):
    id: int
    name: str
    cost_price: float
    selling_price: float
    profit_per_unit: float
    profit_percentage: float


class RecentMovement(CamelModel):
    id: int
    change_type: str
    quantity_change: int
    previous_quantity: int
    new_quantity: int
    created_at: datetime
    product_name: str
    user_name: Optional[str] = None


class DashboardStats(CamelModel):
    total_products: int
    total_items_in_stock: int
    low_stock_count: int
    out_of_stock_count: int
    category_breakdown: List[CategoryBreakdown]


class AdminDashboardStats(DashboardStats):
    total_cost_value: float
    total_selling_value: float
    potential_profit: float
    low_stock_products: List[LowStockSummary]
    top_profitable_products: List[ProfitableProduct]
    recent_stock_movements: List[RecentMovement]


class LowStockItem(CamelModel):
    id: int
    name: str
    quantity_in_stock: int
    low_stock_threshold: int
    sku: Optional[str] = None
    selling_price: float
    image_url: Optional[str] = None
    category_name: Optional[str] = None
    stock_status: str


class AdminLowStockItem(LowStockItem):
    cost_price: float


class ProfitLine(CamelModel):
    id: int
    name: str
    sku: Optional[str] = None
    cost_price: float
    selling_price: float
    quantity_in_stock: int
    profit_per_unit: float
    total_potential_profit: float
    profit_percentage: float
    category_name: Optional[str] = None


class ProfitSummary(CamelModel):
    total_cost_value: float
    total_selling_value: float
    total_potential_profit: float
    overall_profit_margin: float


class ProfitReport(CamelModel):
    products: List[ProfitLine]
    summary: ProfitSummary


StatsView = Union[AdminDashboardStats, DashboardStats]
LowStockView = Union[AdminLowStockItem, LowStockItem]
