# backend/schemas/product.py
import math
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ORM-compatible schema serialized with camelCase keys for the storefront client
class CamelBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ProductRecord(ORMBase):
    """Trusted view of a catalog row, used by checkout.

    Rows are validated here before any price is used. Price is kept lenient
    (unparseable values become None) so checkout can reject the product by
    name instead of failing on the whole batch.
    """
    id: str
    title: str = ""
    price: Optional[float] = None
    is_active: Optional[bool] = True

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> Optional[float]:
        if v is None or isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @property
    def has_valid_price(self) -> bool:
        return self.price is not None and math.isfinite(self.price) and self.price >= 0


# Full product representation
class ProductOut(CamelBase):
    id: str
    title: str
    price: float
    description: Optional[str] = None
    image_file_ids: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Paginated response for storefront listings
class ProductListPage(CamelBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int


# Admin listing envelope
class ProductListResponse(CamelBase):
    ok: bool = True
    products: List[ProductOut]
