"""Domain exceptions for checkout and order management."""

from typing import Dict, List, Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class CheckoutError(StorefrontError):
    """A submitted order was rejected; the message is safe to show the customer."""

    pass


class ValidationError(CheckoutError):
    """Raised when a required customer field is missing."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class EmptyCartError(CheckoutError):
    """Raised when no valid line items remain after normalization."""

    def __init__(self):
        super().__init__("Cart is empty")


class ProductsUnavailableError(CheckoutError):
    """Raised when requested product ids have no catalog record."""

    def __init__(self, missing_ids: List[str]):
        self.missing_ids = list(missing_ids)
        super().__init__(f"Some items are no longer available: {', '.join(self.missing_ids)}")


class ProductInactiveError(CheckoutError):
    """Raised when a requested product is switched off in the catalog."""

    def __init__(self, product_id: str, title: Optional[str] = None):
        self.product_id = product_id
        super().__init__(f"Product unavailable: {title or product_id}")


class InvalidPriceError(CheckoutError):
    """Raised when a catalog price is missing, negative or not finite."""

    def __init__(self, product_id: str, title: Optional[str] = None):
        self.product_id = product_id
        super().__init__(f"Invalid price for product: {title or product_id}")


class PersistenceError(StorefrontError):
    """Raised when the order could not be written."""

    pass


class OrderNotFoundError(StorefrontError):
    """Raised when an order id doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InvalidStatusError(StorefrontError):
    """Raised when a status is not part of the order status enumeration."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid order status: {status}")


class StatusTransitionError(StorefrontError):
    """Raised when the configured transition allow-list rejects a change."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status from {current} to {requested}")


class OrderDeleteIncomplete(StorefrontError):
    """Raised when some order items could not be deleted; the order header is kept."""

    def __init__(self, order_id: str, deleted_item_ids: List[int], failed_items: Dict[int, str]):
        self.order_id = order_id
        self.deleted_item_ids = list(deleted_item_ids)
        self.failed_items = dict(failed_items)
        super().__init__(
            f"Order {order_id} not deleted: {len(self.failed_items)} item(s) could not be removed"
        )
