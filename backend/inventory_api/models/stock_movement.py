from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from inventory_api.models.base import Base, utcnow


class StockMovement(Base):
    """Append-only ledger row. Never updated or deleted."""

    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("new_quantity = previous_quantity + quantity_change", name="ck_stock_movements_delta"),
        CheckConstraint("new_quantity >= 0", name="ck_stock_movements_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # "addition", "subtraction" or "adjustment"
    change_type = Column(String(20), nullable=False)

    # Signed applied delta: new_quantity - previous_quantity
    quantity_change = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)

    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = relationship("Product")
    user = relationship("User")
