from sqlalchemy import Column, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from inventory_api.models.base import Base, TimestampMixin


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)

    products = relationship("Product", back_populates="category")


# Names are unique regardless of case
Index("uq_categories_name_lower", func.lower(Category.name), unique=True)
