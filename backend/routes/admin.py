# backend/routes/admin.py
import json
import logging
import math
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from schemas.order import (
    DeleteReport, OrderDetail, OrderItemOut, OrderListResponse, OrderOut,
    OrderStatusPatch, ReconcileReport,
)
from schemas.product import ProductListResponse, ProductOut
from services import orders as order_service
from services.errors import OrderDeleteIncomplete
from utils.admin_auth import require_admin
from utils.audit import write_log
from utils.storage import delete_images, save_images

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _order_detail(db: Session, order_id: str) -> OrderDetail:
    order, items = order_service.get_order(db, order_id)
    return OrderDetail(
        order=OrderOut.model_validate(order),
        items=[OrderItemOut.model_validate(it) for it in items],
    )


# ==========================================
#  ORDERS
# ==========================================
@router.get("/orders", response_model=OrderListResponse)
def list_orders(
    status: Optional[str] = Query(None, description="Filter by status ('all' for every status)"),
    db: Session = Depends(get_db),
):
    orders = order_service.list_orders(db, status)
    return OrderListResponse(orders=[OrderOut.model_validate(o) for o in orders])


@router.get("/orders/{order_id}", response_model=OrderDetail)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return _order_detail(db, order_id)


# Status is a free-form label unless ORDER_STATUS_TRANSITIONS is configured
@router.patch("/orders/{order_id}/status", response_model=OrderDetail)
def update_order_status(
    order_id: str,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
):
    order, old_status = order_service.update_order_status(db, order_id, payload.status)
    write_log(
        db, actor="admin", action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
        ip=_client_ip(request), meta={"order_id": order.id, "old": old_status, "new": order.status},
    )
    return _order_detail(db, order_id)


@router.delete("/orders/{order_id}", response_model=DeleteReport)
def delete_order(order_id: str, request: Request, db: Session = Depends(get_db)):
    try:
        result = order_service.delete_order(db, order_id)
    except OrderDeleteIncomplete as e:
        report = DeleteReport(
            ok=False, order_id=e.order_id,
            deleted_item_ids=e.deleted_item_ids, failed_items=e.failed_items,
        )
        write_log(
            db, actor="admin", action="ORDER_DELETE", resource="orders", status="FAIL",
            ip=_client_ip(request), meta={"order_id": order_id, "failed_items": list(e.failed_items)},
        )
        return JSONResponse(status_code=409, content=report.model_dump(mode="json", by_alias=True))

    write_log(
        db, actor="admin", action="ORDER_DELETE", resource="orders", status="SUCCESS",
        ip=_client_ip(request), meta={"order_id": order_id, "items": len(result.deleted_item_ids)},
    )
    return DeleteReport(order_id=result.order_id, deleted_item_ids=result.deleted_item_ids)


# Void orders left with a header but no items
@router.post("/orders/reconcile", response_model=ReconcileReport)
def reconcile_orders(request: Request, db: Session = Depends(get_db)):
    voided = order_service.void_incomplete_orders(db)
    if voided:
        write_log(
            db, actor="admin", action="ORDER_VOID_INCOMPLETE", resource="orders", status="SUCCESS",
            ip=_client_ip(request), meta={"order_ids": voided},
        )
    return ReconcileReport(voided_order_ids=voided)


# ==========================================
#  PRODUCTS
# ==========================================
def _to_price(raw: str) -> float:
    try:
        price = float(raw.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail="Price must be a valid number")
    if not math.isfinite(price):
        raise HTTPException(status_code=400, detail="Price must be a valid number")
    if price < 0:
        raise HTTPException(status_code=400, detail="Price must be >= 0")
    return price


def _parse_id_list(raw: Optional[str]) -> List[str]:
    try:
        ids = json.loads(raw or "[]")
    except ValueError:
        return []
    if not isinstance(ids, list):
        return []
    return [str(i) for i in ids if i]


def _get_product(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products", response_model=ProductListResponse)
def list_products(db: Session = Depends(get_db)):
    products = db.query(Product).order_by(Product.created_at.desc(), Product.id).all()
    return ProductListResponse(products=[ProductOut.model_validate(p) for p in products])


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(
    request: Request,
    db: Session = Depends(get_db),
    title: str = Form(...),
    price: str = Form(...),
    description: Optional[str] = Form(None),
    is_active: bool = Form(True),
    images: List[UploadFile] = File(default=[]),
):
    title = title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    if not price.strip():
        raise HTTPException(status_code=400, detail="Price is required")
    price_value = _to_price(price)

    image_file_ids = save_images(images)
    if not image_file_ids:
        raise HTTPException(status_code=400, detail="Upload at least 1 image")

    product = Product(
        title=title,
        price=price_value,
        description=(description or "").strip() or None,
        image_file_ids=image_file_ids,
        is_active=is_active,
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(
        db, actor="admin", action="PRODUCT_CREATE", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product.id, "title": product.title},
    )
    return ProductOut.model_validate(product)


# Partial update; images are appended unless image_mode=replace
@router.patch("/products/{product_id}", response_model=ProductOut)
def edit_product(
    product_id: str,
    request: Request,
    db: Session = Depends(get_db),
    title: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
    image_mode: Literal["append", "replace"] = Form("append"),
    existing_image_ids: Optional[str] = Form(None),
    images: List[UploadFile] = File(default=[]),
):
    product = _get_product(db, product_id)

    if title is not None:
        if not title.strip():
            raise HTTPException(status_code=400, detail="Title is required")
        product.title = title.strip()
    if price is not None:
        product.price = _to_price(price)
    if description is not None:
        product.description = description.strip() or None
    if is_active is not None:
        product.is_active = is_active

    previous_ids = list(product.image_file_ids or [])
    new_ids = save_images(images)
    if image_mode == "replace":
        product.image_file_ids = new_ids
    elif new_ids or existing_image_ids is not None:
        base = _parse_id_list(existing_image_ids) if existing_image_ids is not None else list(product.image_file_ids or [])
        product.image_file_ids = base + new_ids

    db.commit()
    db.refresh(product)

    # Files no longer referenced by the product, removed best-effort
    dropped = [i for i in previous_ids if i not in (product.image_file_ids or [])]
    failed = delete_images(dropped)
    if failed:
        logger.warning("Product %s edited, %d image(s) left behind", product.id, len(failed))

    write_log(
        db, actor="admin", action="PRODUCT_EDIT", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product.id, "removed_images": dropped},
    )
    return ProductOut.model_validate(product)


@router.delete("/products/{product_id}")
def delete_product(
    product_id: str,
    request: Request,
    delete_images_too: bool = Query(False, alias="delete_images"),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    image_ids = list(product.image_file_ids or [])
    db.delete(product)
    db.commit()

    # Image cleanup is best-effort, the product is already gone
    failed = delete_images(image_ids) if delete_images_too else []
    if failed:
        logger.warning("Product %s deleted, %d image(s) left behind", product_id, len(failed))

    write_log(
        db, actor="admin", action="PRODUCT_DELETE", resource="products", status="SUCCESS",
        ip=_client_ip(request), meta={"id": product_id, "images_deleted": delete_images_too},
    )
    return {"ok": True, "id": product_id, "failedImageIds": failed}
