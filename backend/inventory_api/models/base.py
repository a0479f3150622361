from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, String
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleState(str, Enum):
    active = "active"
    deactivated = "deactivated"


class LifecycleMixin:
    """Soft-delete state shared by users and products.

    `Model.is_active` is the one predicate every listing and lookup filters on.
    """

    state = Column(String(20), nullable=False, default=LifecycleState.active.value, index=True)

    @hybrid_property
    def is_active(self):
        return self.state == LifecycleState.active.value

    def activate(self) -> None:
        self.state = LifecycleState.active.value

    def deactivate(self) -> None:
        self.state = LifecycleState.deactivated.value


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
