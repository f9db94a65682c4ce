"""Cart accumulator.

A cart is a set of lines keyed by product id. Lines live in a
``CartRepository``; ``Cart`` applies the add/update/remove rules on top of it
and tells subscribed listeners after every change (badge counters, audit).
Prices kept on a line are display snapshots; checkout re-prices everything.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from models.cart import CartLine


@dataclass
class ProductSnapshot:
    """Display data copied from the catalog when a product is added."""

    title: str = ""
    price: float = 0.0
    image: Optional[str] = None


@dataclass
class CartEntry:
    product_id: str
    quantity: int
    title: str = ""
    price: float = 0.0
    image: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartRepository(Protocol):
    """Storage for the lines of one cart."""

    def get(self, product_id: str) -> Optional[CartEntry]:
        ...

    def set(self, entry: CartEntry) -> None:
        ...

    def remove(self, product_id: str) -> None:
        ...

    def clear(self) -> None:
        ...

    def list(self) -> List[CartEntry]:
        ...


class MemoryCartRepository:
    """Process-local repository, used by tests and scripts."""

    def __init__(self):
        self._entries: Dict[str, CartEntry] = {}

    def get(self, product_id: str) -> Optional[CartEntry]:
        return self._entries.get(product_id)

    def set(self, entry: CartEntry) -> None:
        self._entries[entry.product_id] = entry

    def remove(self, product_id: str) -> None:
        self._entries.pop(product_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def list(self) -> List[CartEntry]:
        return list(self._entries.values())


class SqlCartRepository:
    """Lines stored in the ``cart_lines`` table under one cart key."""

    def __init__(self, db: Session, cart_key: str):
        self.db = db
        self.cart_key = cart_key

    def _query(self):
        return self.db.query(CartLine).filter(CartLine.cart_key == self.cart_key)

    @staticmethod
    def _to_entry(line: CartLine) -> CartEntry:
        return CartEntry(
            product_id=line.product_id,
            quantity=line.quantity,
            title=line.title or "",
            price=line.price or 0.0,
            image=line.image,
        )

    def get(self, product_id: str) -> Optional[CartEntry]:
        line = self._query().filter(CartLine.product_id == product_id).first()
        return self._to_entry(line) if line else None

    def set(self, entry: CartEntry) -> None:
        line = self._query().filter(CartLine.product_id == entry.product_id).first()
        if not line:
            line = CartLine(cart_key=self.cart_key, product_id=entry.product_id)
            self.db.add(line)
        line.quantity = entry.quantity
        line.title = entry.title
        line.price = entry.price
        line.image = entry.image
        self.db.commit()

    def remove(self, product_id: str) -> None:
        self._query().filter(CartLine.product_id == product_id).delete(synchronize_session=False)
        self.db.commit()

    def clear(self) -> None:
        self._query().delete(synchronize_session=False)
        self.db.commit()

    def list(self) -> List[CartEntry]:
        return [self._to_entry(line) for line in self._query().order_by(CartLine.id).all()]


CartListener = Callable[["Cart"], None]


class Cart:
    def __init__(self, repository: CartRepository):
        self.repository = repository
        self._listeners: List[CartListener] = []

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def add_or_increment(self, product_id: str, snapshot: Optional[ProductSnapshot] = None) -> CartEntry:
        entry = self.repository.get(product_id)
        if entry:
            entry.quantity += 1
            if snapshot:
                entry.title, entry.price, entry.image = snapshot.title, snapshot.price, snapshot.image
        else:
            snapshot = snapshot or ProductSnapshot()
            entry = CartEntry(
                product_id=product_id,
                quantity=1,
                title=snapshot.title,
                price=snapshot.price,
                image=snapshot.image,
            )
        self.repository.set(entry)
        self._changed()
        return entry

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartEntry]:
        """Overwrite a line quantity. Zero or less removes the line.

        Returns the updated entry, or None when the line was removed or never
        existed.
        """
        if quantity <= 0:
            self.remove(product_id)
            return None
        entry = self.repository.get(product_id)
        if not entry:
            return None
        entry.quantity = quantity
        self.repository.set(entry)
        self._changed()
        return entry

    def remove(self, product_id: str) -> None:
        self.repository.remove(product_id)
        self._changed()

    def clear(self) -> None:
        self.repository.clear()
        self._changed()

    def get_all(self) -> List[CartEntry]:
        return self.repository.list()

    def count(self) -> int:
        return sum(entry.quantity for entry in self.get_all())

    def total(self) -> float:
        # Display estimate from snapshots
        return round(sum(entry.line_total for entry in self.get_all()), 2)

    def submission_items(self) -> List[dict]:
        """Lines in the shape expected by the order endpoint."""
        return [{"productId": e.product_id, "quantity": e.quantity} for e in self.get_all()]
