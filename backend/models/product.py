import uuid

from sqlalchemy import Column, String, Float, Boolean, DateTime, JSON, CheckConstraint, func
from database import Base

# Model Product
# Catalog entry sold in the storefront. Mutated only from the admin
# dashboard; checkout reads it to price orders.
class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    title = Column(String, nullable=False, index=True)
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    description = Column(String, nullable=True)

    # Stored file ids of the product images, in display order
    image_file_ids = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
