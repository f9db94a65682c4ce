from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from schemas.product import CamelBase


# Line computed at checkout from the trusted catalog price
class PricedItemOut(CamelBase):
    product_id: str
    title: str
    price: float
    quantity: int
    line_total: float


# Response returned to the storefront after a successful checkout
class OrderCreateResponse(CamelBase):
    ok: bool = True
    id: str
    order_number: str
    total_amount: float
    items: List[PricedItemOut]


# Persisted order line
class OrderItemOut(CamelBase):
    id: int
    order_id: str
    product_id: str
    title: str
    price: float
    quantity: int


# Order header as stored
class OrderOut(CamelBase):
    id: str
    order_number: str
    status: str
    total_amount: float
    full_name: str
    phone: str
    email: Optional[str] = None
    address: str
    city: str
    postal_code: str
    notes: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    source_country: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderDetail(CamelBase):
    ok: bool = True
    order: OrderOut
    items: List[OrderItemOut]


class OrderListResponse(CamelBase):
    ok: bool = True
    orders: List[OrderOut]


# Schema for updating order status
class OrderStatusPatch(CamelBase):
    status: str


class OrderStats(CamelBase):
    total: int = 0
    ordered: int = 0
    confirmed: int = 0
    processing: int = 0
    delivering: int = 0
    delivered: int = 0
    cancelled: int = 0
    total_revenue: float = 0.0
    today_orders: int = 0


# Outcome of a cascade delete
class DeleteReport(CamelBase):
    ok: bool = True
    order_id: str
    deleted_item_ids: List[int] = Field(default_factory=list)
    failed_items: Dict[int, str] = Field(default_factory=dict)


class ReconcileReport(CamelBase):
    ok: bool = True
    voided_order_ids: List[str] = Field(default_factory=list)
