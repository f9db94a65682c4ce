"""Checkout workflow.

A raw order submission goes through three steps:

1. ``parse_order_submission`` trims and checks the customer fields and turns
   the JSON cart into a deduplicated list of ``(product_id, quantity)``.
2. ``reconcile_prices`` loads the catalog rows for those ids in one query and
   prices every line from the stored price. Prices or totals sent by the
   client are never read.
3. ``persist_order`` writes the order header and its items in a single
   transaction.

``create_order`` runs the three steps in order. Nothing is written unless
steps 1 and 2 succeed.
"""

import json
import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models.order import Order, OrderItem
from models.product import Product
from schemas.product import ProductRecord
from services.errors import (
    EmptyCartError,
    InvalidPriceError,
    PersistenceError,
    ProductInactiveError,
    ProductsUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

# Submission keys as sent by the storefront, by customer attribute
SUBMISSION_KEYS = {
    "full_name": "fullName",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "city": "city",
    "postal_code": "postalCode",
    "notes": "notes",
}

# Checked in this order; the first missing field is reported
REQUIRED_FIELDS = (
    ("full_name", "Full name is required"),
    ("phone", "Phone number is required"),
    ("address", "Address is required"),
    ("city", "City is required"),
    ("postal_code", "Postal code is required"),
)


@dataclass
class CustomerInfo:
    full_name: str
    phone: str
    address: str
    city: str
    postal_code: str
    email: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class OrderSubmission:
    customer: CustomerInfo
    items: List[Tuple[str, int]]


@dataclass
class PricedItem:
    product_id: str
    title: str
    price: float
    quantity: int

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "title": self.title,
            "price": self.price,
            "quantity": self.quantity,
            "line_total": round(self.line_total, 2),
        }


@dataclass
class RequestMetadata:
    """Where an order came from. Every field is best-effort."""

    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN
    source_country: str = UNKNOWN

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RequestMetadata":
        forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
        ip = forwarded or headers.get("x-real-ip") or UNKNOWN
        country = (
            headers.get("x-country")
            or headers.get("x-vercel-ip-country")
            or headers.get("cf-ipcountry")
            or UNKNOWN
        )
        return cls(
            ip_address=ip,
            user_agent=headers.get("user-agent") or UNKNOWN,
            source_country=country,
        )


@dataclass
class CheckoutResult:
    order: Order
    items: List[PricedItem] = field(default_factory=list)


def _clean(value: Any) -> Optional[str]:
    """Trim a raw field; empty means absent."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_int(value: Any, fallback: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return math.floor(number)


def parse_cart_items(items_raw: Any) -> List[Tuple[str, int]]:
    """Decode the JSON cart. Anything that is not a JSON array is an empty cart.

    Lines with a quantity outside 1..MAX_LINE_QUANTITY are dropped.
    """
    try:
        parsed = json.loads(items_raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []

    items = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        product_id = _clean(entry.get("productId")) or ""
        quantity = _to_int(entry.get("quantity", 0))
        if product_id and 0 < quantity <= settings.MAX_LINE_QUANTITY:
            items.append((product_id, quantity))
    return items


def merge_items(items: Iterable[Tuple[str, int]]) -> List[Tuple[str, int]]:
    """Sum quantities of repeated product ids, keeping first-seen order."""
    qty_by_id: Dict[str, int] = {}
    for product_id, quantity in items:
        qty_by_id[product_id] = qty_by_id.get(product_id, 0) + quantity
    return list(qty_by_id.items())


def parse_order_submission(form: Mapping[str, Any]) -> OrderSubmission:
    values = {name: _clean(form.get(key)) for name, key in SUBMISSION_KEYS.items()}

    for name, message in REQUIRED_FIELDS:
        if not values[name]:
            raise ValidationError(name, message)

    items = merge_items(parse_cart_items(form.get("items") or "[]"))
    if not items:
        raise EmptyCartError()
    for product_id, quantity in items:
        if quantity > settings.MAX_LINE_QUANTITY:
            raise ValidationError("items", f"Quantity too large for product: {product_id}")

    return OrderSubmission(customer=CustomerInfo(**values), items=items)


def fetch_products(db: Session, product_ids: List[str]) -> Dict[str, ProductRecord]:
    # One batched lookup for the whole cart
    rows = db.query(Product).filter(Product.id.in_(product_ids)).all()
    return {row.id: ProductRecord.model_validate(row) for row in rows}


def price_items(
    items: List[Tuple[str, int]], products: Mapping[str, ProductRecord]
) -> Tuple[List[PricedItem], float]:
    missing = [product_id for product_id, _ in items if product_id not in products]
    if missing:
        raise ProductsUnavailableError(missing)

    priced = []
    for product_id, quantity in items:
        record = products[product_id]
        if record.is_active is False:
            raise ProductInactiveError(product_id, record.title)
        if not record.has_valid_price:
            raise InvalidPriceError(product_id, record.title)
        priced.append(PricedItem(
            product_id=product_id,
            title=record.title,
            price=record.price,
            quantity=quantity,
        ))

    total = round(sum(it.line_total for it in priced), 2)
    return priced, total


def reconcile_prices(db: Session, items: List[Tuple[str, int]]) -> Tuple[List[PricedItem], float]:
    products = fetch_products(db, [product_id for product_id, _ in items])
    return price_items(items, products)


def generate_order_number() -> str:
    return f"ORDER-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12].upper()}"


def persist_order(
    db: Session,
    customer: CustomerInfo,
    priced_items: List[PricedItem],
    order_total: float,
    metadata: Optional[RequestMetadata] = None,
) -> Order:
    metadata = metadata or RequestMetadata()
    order = Order(
        order_number=generate_order_number(),
        status="ordered",
        total_amount=order_total,
        full_name=customer.full_name,
        phone=customer.phone,
        email=customer.email,
        address=customer.address,
        city=customer.city,
        postal_code=customer.postal_code,
        notes=customer.notes,
        ip_address=metadata.ip_address,
        user_agent=metadata.user_agent,
        source_country=metadata.source_country,
    )

    # Header and items commit together or not at all
    try:
        db.add(order)
        db.flush()
        db.add_all([
            OrderItem(
                order_id=order.id,
                product_id=it.product_id,
                title=it.title,
                price=it.price,
                quantity=it.quantity,
            )
            for it in priced_items
        ])
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to persist order %s: %s", order.order_number, e)
        raise PersistenceError("Failed to create order") from e

    db.refresh(order)
    logger.info("Order %s created (%d items, total %.2f)", order.order_number, len(priced_items), order_total)
    return order


def create_order(
    db: Session, form: Mapping[str, Any], metadata: Optional[RequestMetadata] = None
) -> CheckoutResult:
    submission = parse_order_submission(form)
    priced_items, total = reconcile_prices(db, submission.items)
    order = persist_order(db, submission.customer, priced_items, total, metadata)
    return CheckoutResult(order=order, items=priced_items)
