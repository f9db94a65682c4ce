from typing import List, Optional

from pydantic import Field

from config import settings
from schemas.product import CamelBase

# Request schema for adding a product to the cart
class CartAddItem(CamelBase):
    product_id: str = Field(min_length=1)

# Request schema for overwriting a line quantity (<= 0 removes the line)
class CartUpdateItem(CamelBase):
    quantity: int = Field(le=settings.MAX_LINE_QUANTITY)

# Response schema for a single cart line
class CartLineOut(CamelBase):
    product_id: str
    title: str
    price: float
    quantity: int
    image: Optional[str] = None
    line_total: float

# Response schema for the entire cart; prices are display hints only
class CartOut(CamelBase):
    items: List[CartLineOut]
    count: int
    total: float

class CartCount(CamelBase):
    count: int
