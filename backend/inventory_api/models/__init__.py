from .base import Base, LifecycleState
from .user import User
from .category import Category
from .product import Product
from .stock_movement import StockMovement

__all__ = ["Base", "LifecycleState", "User", "Category", "Product", "StockMovement"]
