import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

ORDER_STATUSES = ("ordered", "confirmed", "processing", "delivering", "delivered", "cancelled")

class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_number = Column(String, unique=True, nullable=False, index=True)
    status = Column(String, default="ordered", nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    # Set client-side so orders created within the same second still sort
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Customer contact
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)

    # Shipping address
    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)

    notes = Column(String, nullable=True)

    # Request provenance, best-effort
    ip_address = Column(String, default="unknown")
    user_agent = Column(String, default="unknown")
    source_country = Column(String, default="unknown")

    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")

class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)

    # Snapshot of the product at order time; later catalog edits do not apply
    product_id = Column(String(32), nullable=False)
    title = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
