# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from schemas.order import OrderStats
from schemas.product import CamelBase
from services.orders import get_order_stats
from utils.admin_auth import require_admin

router = APIRouter(
    prefix="/stats",
    tags=["Stats"],
    dependencies=[Depends(require_admin)],
)

# === Response Schemas ===

class DashboardSummary(CamelBase):
    orders: OrderStats
    active_products: int
    inactive_products: int


# === Endpoint 1: Order statistics ===

@router.get("/orders", response_model=OrderStats)
def get_stats_orders(db: Session = Depends(get_db)):
    return OrderStats(**get_order_stats(db))


# === Endpoint 2: Dashboard summary ===

@router.get("/summary", response_model=DashboardSummary)
def get_stats_summary(db: Session = Depends(get_db)):
    active = db.query(Product).filter(Product.is_active.is_(True)).count()
    total = db.query(Product).count()
    return DashboardSummary(
        orders=OrderStats(**get_order_stats(db)),
        active_products=active,
        inactive_products=total - active,
    )
