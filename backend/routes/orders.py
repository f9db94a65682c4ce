# backend/routes/orders.py
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from services.cart import Cart, SqlCartRepository
from services.checkout import RequestMetadata, SUBMISSION_KEYS, create_order
from services.errors import CheckoutError, PersistenceError, ValidationError
from schemas.order import OrderCreateResponse, PricedItemOut
from utils.audit import write_log
from utils.notifier import OrderNotifier, get_notifier

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Turn a JSON or form-encoded submission into raw text fields.
# Items are passed on as a JSON string, exactly as a checkout form posts them.
async def _read_submission(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("body", "Invalid JSON body")
    if not isinstance(body, dict):
        body = {}

    fields = {}
    for key in list(SUBMISSION_KEYS.values()) + ["cartKey"]:
        value = body.get(key)
        if value is not None:
            fields[key] = str(value)
    fields["items"] = json.dumps(body.get("items") or [])
    return fields

# Customer checkout: validate, price from the catalog, store, notify
@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
async def submit_order(
    request: Request,
    db: Session = Depends(get_db),
    notifier: OrderNotifier = Depends(get_notifier),
):
    metadata = RequestMetadata.from_headers(request.headers)
    try:
        form = await _read_submission(request)
        result = create_order(db, form, metadata)
    except (CheckoutError, PersistenceError) as e:
        logger.info("Order rejected: %s", e)
        write_log(
            db, actor="customer", action="ORDER_CREATE", resource="orders", status="FAIL",
            ip=metadata.ip_address, meta={"error": str(e)},
        )
        raise

    order = result.order
    write_log(
        db, actor="customer", action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=metadata.ip_address,
        meta={"order_id": order.id, "order_number": order.order_number, "total": order.total_amount},
    )

    # Never fails the request
    await notifier.send_order_created(order, result.items)

    cart_key = (form.get("cartKey") or "").strip()
    if cart_key:
        Cart(SqlCartRepository(db, cart_key)).clear()

    return OrderCreateResponse(
        id=order.id,
        order_number=order.order_number,
        total_amount=order.total_amount,
        items=[PricedItemOut(**it.to_dict()) for it in result.items],
    )
