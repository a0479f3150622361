from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import relationship

from inventory_api.models.base import Base, LifecycleMixin, TimestampMixin


DEFAULT_LOW_STOCK_THRESHOLD = 5
CURRENCIES = ("USD", "KHR")


class Product(LifecycleMixin, TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("low_stock_threshold >= 0", name="ck_products_threshold_non_negative"),
        # SKU is unique among active products only; soft-deleted rows keep theirs
        Index(
            "uq_products_active_sku",
            "sku",
            unique=True,
            postgresql_where=text("state = 'active' AND sku IS NOT NULL"),
            sqlite_where=text("state = 'active' AND sku IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    name_km = Column(String(255), nullable=True)  # Khmer name
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    image_url = Column(String(500), nullable=True)

    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    cost_currency = Column(String(3), nullable=False, default="USD")
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)
    selling_currency = Column(String(3), nullable=False, default="USD")

    # Only ever written through the stock ledger
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=DEFAULT_LOW_STOCK_THRESHOLD)
    sku = Column(String(100), nullable=True, index=True)

    # Optimistic concurrency: every UPDATE is guarded by the version it read
    version_id = Column(Integer, nullable=False)

    category = relationship("Category", back_populates="products")

    __mapper_args__ = {"version_id_col": version_id}
