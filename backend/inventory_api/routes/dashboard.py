from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inventory_api.core.database import get_db
from inventory_api.core.deps import get_current_user, require_admin
from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.user import User
from inventory_api.services import dashboard_service


router = APIRouter()


@router.get("/stats")
def stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Inventory rollups; valuation and profit figures are admin only"""
    return envelope(dashboard_service.dashboard_stats(db, user.role))


@router.get("/low-stock")
def low_stock(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    items = dashboard_service.low_stock_products(db, user.role)
    return envelope(items, count=len(items))


@router.get("/profit-calculator")
def profit_calculator(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return envelope(dashboard_service.profit_calculator(db))
