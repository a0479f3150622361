from sqlalchemy import Column, Integer, String, UniqueConstraint

from inventory_api.models.base import Base, LifecycleMixin, TimestampMixin


class User(LifecycleMixin, TimestampMixin, Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="staff")
