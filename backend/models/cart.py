# backend/models/cart.py
from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint, func
from database import Base


# A single product entry (quantity + display snapshot) in a storefront cart
class CartLine(Base):
    __tablename__ = "cart_lines" # Table name

    id = Column(Integer, primary_key=True, index=True)
    cart_key = Column(String(64), index=True, nullable=False) # Opaque token identifying the browser cart
    product_id = Column(String(32), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # Display snapshot taken when the product was added; never used for pricing
    title = Column(String, nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    image = Column(String, nullable=True)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # One line per product in the same cart
        UniqueConstraint("cart_key", "product_id", name="uq_cartline_cart_product"),
    )
