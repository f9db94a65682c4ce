# backend/utils/notifier.py
import httpx
import logging
from datetime import datetime
from typing import List, Optional

from config import settings
from models.order import Order
from services.checkout import PricedItem

logger = logging.getLogger(__name__)

class OrderNotifier:
    """Posts a summary of every new order to the configured relay (e-mail script, webhook).

    Delivery is best-effort: errors are logged and never reach the caller.
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 currency: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.NOTIFICATION_URL if url is None else url
        self.timeout = settings.NOTIFICATION_TIMEOUT if timeout is None else timeout
        self.currency = currency or settings.CURRENCY
        # Injected in tests (httpx.MockTransport)
        self.transport = transport

    def build_summary(self, order: Order, items: List[PricedItem]) -> dict:
        subtotal = sum(it.line_total for it in items)
        items_list = "\n".join(
            f"{it.title or 'Item'} x{it.quantity} - {it.line_total:.2f} {self.currency}" for it in items
        )
        created = order.created_at or datetime.now()
        return {
            "order_id": order.order_number,
            "order_date": created.strftime("%Y-%m-%d %H:%M:%S"),
            "customer_name": order.full_name or "Unknown",
            "customer_email": order.email or "Not provided",
            "customer_phone": order.phone or "Not provided",
            "customer_address": f"{order.address or ''}, {order.city or ''}, {order.postal_code or ''}",
            "product_name": items_list,
            "quantity": str(sum(it.quantity for it in items)),
            "price": f"{subtotal:.2f}",
            "total": f"{order.total_amount:.2f}",
            "notes": order.notes or "No notes",
        }

    async def send_order_created(self, order: Order, items: List[PricedItem]) -> bool:
        if not self.url:
            logger.info("Notification URL not configured, skipping order %s", order.order_number)
            return False

        try:
            payload = self.build_summary(order, items)
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Order notification rejected: %s %s", e.response.status_code, e.response.reason_phrase)
            return False
        except Exception as e:
            # Covers transport errors and malformed URLs; the order is already stored
            logger.exception("Failed to send order notification for %s: %s", order.order_number, e)
            return False

        logger.info("Order notification sent for %s", order.order_number)
        return True

order_notifier = OrderNotifier()

def get_notifier() -> OrderNotifier:
    return order_notifier
