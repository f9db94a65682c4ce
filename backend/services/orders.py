"""Order management used by the admin dashboard."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models.order import ORDER_STATUSES, Order, OrderItem
from services.errors import (
    InvalidStatusError,
    OrderDeleteIncomplete,
    OrderNotFoundError,
    StatusTransitionError,
)

logger = logging.getLogger(__name__)


@dataclass
class DeleteResult:
    order_id: str
    deleted_item_ids: List[int] = field(default_factory=list)


def list_orders(db: Session, status: Optional[str] = None, limit: Optional[int] = None) -> List[Order]:
    """Newest orders first, optionally restricted to one status ("all" means no filter)."""
    query = db.query(Order)
    if status and status != "all":
        query = query.filter(Order.status == status)
    return (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit or settings.ORDERS_PAGE_SIZE)
        .all()
    )


def _get_header(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise OrderNotFoundError(order_id)
    return order


def list_items(db: Session, order_id: str) -> List[OrderItem]:
    return db.query(OrderItem).filter(OrderItem.order_id == order_id).order_by(OrderItem.id).all()


def get_order(db: Session, order_id: str) -> Tuple[Order, List[OrderItem]]:
    order = _get_header(db, order_id)
    return order, list_items(db, order_id)


def update_order_status(
    db: Session,
    order_id: str,
    new_status: str,
    transitions: Optional[Mapping[str, Sequence[str]]] = None,
) -> Tuple[Order, str]:
    """Set the order status and return ``(order, previous_status)``.

    Any status may follow any other unless an allow-list of transitions is
    given (or configured through ``ORDER_STATUS_TRANSITIONS``).
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidStatusError(new_status)

    order = _get_header(db, order_id)
    old_status = order.status

    if transitions is None:
        transitions = settings.ORDER_STATUS_TRANSITIONS
    if transitions is not None and new_status != old_status:
        if new_status not in transitions.get(old_status, ()):
            raise StatusTransitionError(old_status, new_status)

    order.status = new_status
    db.commit()
    db.refresh(order)
    return order, old_status


def delete_order(db: Session, order_id: str) -> DeleteResult:
    """Delete the items of an order, then the order itself.

    Every item is deleted in its own commit and failures are collected. If
    any item could not be removed the header is kept, so the order stays
    visible, and ``OrderDeleteIncomplete`` reports what happened.
    """
    _get_header(db, order_id)

    deleted: List[int] = []
    failed: Dict[int, str] = {}
    for item in list_items(db, order_id):
        item_id = item.id
        try:
            db.delete(item)
            db.commit()
            deleted.append(item_id)
        except SQLAlchemyError as e:
            db.rollback()
            failed[item_id] = str(e)
            logger.warning("Failed to delete item %s of order %s: %s", item_id, order_id, e)

    if failed:
        raise OrderDeleteIncomplete(order_id, deleted, failed)

    db.delete(_get_header(db, order_id))
    db.commit()
    return DeleteResult(order_id=order_id, deleted_item_ids=deleted)


def get_order_stats(db: Session, limit: Optional[int] = None) -> Dict[str, float]:
    """Tally the most recent orders per status, plus revenue and today's count."""
    rows = (
        db.query(Order.status, Order.total_amount, Order.created_at)
        .order_by(Order.created_at.desc())
        .limit(limit or settings.STATS_SCAN_LIMIT)
        .all()
    )

    stats: Dict[str, float] = {status: 0 for status in ORDER_STATUSES}
    stats["total"] = len(rows)

    # Date prefix of the ISO timestamps, in server UTC
    today = datetime.now(timezone.utc).date().isoformat()
    revenue, today_orders = 0.0, 0
    for status, total_amount, created_at in rows:
        if status in stats:
            stats[status] += 1
        if status != "cancelled":
            revenue += total_amount or 0.0
        if created_at and created_at.isoformat().startswith(today):
            today_orders += 1

    stats["total_revenue"] = round(revenue, 2)
    stats["today_orders"] = today_orders
    return stats


def void_incomplete_orders(db: Session) -> List[str]:
    """Cancel orders that have a header but no items.

    Checkout writes header and items together, so such rows only come from
    interrupted imports or manual edits. They are voided, not completed: the
    cart that produced them is gone.
    """
    orphans = (
        db.query(Order)
        .outerjoin(OrderItem, OrderItem.order_id == Order.id)
        .filter(OrderItem.id.is_(None), Order.status != "cancelled")
        .all()
    )
    for order in orphans:
        logger.warning("Voiding order %s: no items", order.order_number)
        order.status = "cancelled"
    db.commit()
    return [order.id for order in orphans]
