from typing import Optional, List, Literal
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from schemas.product import ProductListPage, ProductOut


router = APIRouter(
    prefix="/shop",
    tags=["Shop"]
)

@router.get("/products", response_model=ProductListPage)
def list_products_for_shop(
    q: Optional[str] = Query(None, description="Search by title"),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    sort_by: Literal["title", "price", "created_at"] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.is_active.is_(True)) # Only products on sale

    if q:
        query = query.filter(Product.title.ilike(f"%{q}%"))

    allowed = {
        "title": Product.title,
        "price": Product.price,
        "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by, Product.created_at)
    if order == "desc":
        query = query.order_by(sort_col.desc(), Product.id)
    else:
        query = query.order_by(sort_col.asc(), Product.id)

    total = query.count()
    items: List[Product] = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": [ProductOut.model_validate(p) for p in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }

@router.get("/products/{product_id}", response_model=ProductOut)
def get_product_for_shop(product_id: str, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product or product.is_active is False:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.model_validate(product)
