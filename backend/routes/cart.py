from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from services.cart import Cart, ProductSnapshot, SqlCartRepository
from schemas.cart import CartAddItem, CartCount, CartLineOut, CartOut, CartUpdateItem
from utils.audit import write_log

router = APIRouter(prefix="/cart", tags=["Cart"])

CartKey = Annotated[str, Path(min_length=1, max_length=64, description="Opaque cart token kept by the browser")]

def _open_cart(db: Session, cart_key: str, request: Request) -> Cart:
    cart = Cart(SqlCartRepository(db, cart_key))

    # Audit every change with the resulting badge count
    def _audit(changed: Cart):
        write_log(
            db,
            actor="customer",
            action="CART_UPDATE",
            resource="cart",
            status="SUCCESS",
            ip=request.client.host if request.client else None,
            meta={"cart_key": cart_key, "count": changed.count()},
        )

    cart.subscribe(_audit)
    return cart

def _cart_to_out(cart: Cart) -> CartOut:
    entries = cart.get_all()
    items_out = [
        CartLineOut(
            product_id=e.product_id,
            title=e.title,
            price=e.price,
            quantity=e.quantity,
            image=e.image,
            line_total=round(e.line_total, 2),
        )
        for e in entries
    ]
    return CartOut(
        items=items_out,
        count=sum(e.quantity for e in entries),
        total=round(sum(e.line_total for e in entries), 2),
    )

@router.get("/{cart_key}", response_model=CartOut)
def get_cart(request: Request, cart_key: CartKey, db: Session = Depends(get_db)):
    return _cart_to_out(_open_cart(db, cart_key, request))

@router.get("/{cart_key}/count", response_model=CartCount)
def get_cart_count(request: Request, cart_key: CartKey, db: Session = Depends(get_db)):
    return CartCount(count=_open_cart(db, cart_key, request).count())

@router.post("/{cart_key}/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    cart_key: CartKey,
    db: Session = Depends(get_db),
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product or product.is_active is False:
        raise HTTPException(status_code=404, detail="Product not found")

    # Display snapshot only, checkout re-prices from the catalog
    images = product.image_file_ids or []
    snapshot = ProductSnapshot(title=product.title, price=product.price, image=images[0] if images else None)

    cart = _open_cart(db, cart_key, request)
    cart.add_or_increment(product.id, snapshot)
    return _cart_to_out(cart)

@router.put("/{cart_key}/items/{product_id}", response_model=CartOut)
def update_cart_item(
    product_id: str,
    payload: CartUpdateItem,
    request: Request,
    cart_key: CartKey,
    db: Session = Depends(get_db),
):
    cart = _open_cart(db, cart_key, request)
    if payload.quantity > 0 and cart.repository.get(product_id) is None:
        raise HTTPException(status_code=404, detail="Cart item not found")

    cart.set_quantity(product_id, payload.quantity)
    return _cart_to_out(cart)

@router.delete("/{cart_key}/items/{product_id}", response_model=CartOut)
def delete_cart_item(
    product_id: str,
    request: Request,
    cart_key: CartKey,
    db: Session = Depends(get_db),
):
    cart = _open_cart(db, cart_key, request)
    cart.remove(product_id)
    return _cart_to_out(cart)

@router.delete("/{cart_key}", response_model=CartOut)
def clear_cart(request: Request, cart_key: CartKey, db: Session = Depends(get_db)):
    cart = _open_cart(db, cart_key, request)
    cart.clear()
    return _cart_to_out(cart)
