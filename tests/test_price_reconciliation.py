"""Tests for pricing carts from the catalog and writing orders."""

import math

import pytest

from models.order import Order, OrderItem
from schemas.product import ProductRecord
from services import checkout
from services.checkout import (
    CustomerInfo, PricedItem, RequestMetadata, create_order, persist_order,
    price_items, reconcile_prices,
)
from services.errors import (
    InvalidPriceError, PersistenceError, ProductInactiveError, ProductsUnavailableError,
)


def record(product_id, title="Desk Lamp", price=50.0, is_active=True):
    return ProductRecord(id=product_id, title=title, price=price, is_active=is_active)


CUSTOMER = CustomerInfo(
    full_name="Jane Doe", phone="123", address="1 Main St", city="Metropolis", postal_code="00000",
)


class TestProductRecord:
    def test_reads_orm_rows(self, make_product):
        product = make_product(product_id="P1", title=" Lamp ", price=12.5)
        rec = ProductRecord.model_validate(product)
        assert rec.id == "P1"
        assert rec.title == "Lamp"
        assert rec.price == 12.5
        assert rec.has_valid_price

    @pytest.mark.parametrize("price", [None, "abc", -1, float("inf"), float("nan"), True])
    def test_invalid_prices(self, price):
        assert not ProductRecord(id="P1", price=price).has_valid_price

    def test_numeric_string_price(self):
        assert ProductRecord(id="P1", price="19.90").price == 19.9


class TestPriceItems:
    def test_totals_from_catalog_prices(self):
        priced, total = price_items(
            [("P1", 3), ("P2", 2)],
            {"P1": record("P1", price=50.0), "P2": record("P2", title="Shade", price=12.25)},
        )
        assert [(p.product_id, p.price, p.quantity, p.line_total) for p in priced] == [
            ("P1", 50.0, 3, 150.0),
            ("P2", 12.25, 2, 24.5),
        ]
        assert total == 174.5

    def test_total_is_rounded_to_cents(self):
        _, total = price_items([("P1", 3)], {"P1": record("P1", price=0.1)})
        assert total == 0.3

    def test_missing_products_are_all_listed(self):
        with pytest.raises(ProductsUnavailableError) as exc_info:
            price_items([("P1", 1), ("GONE1", 1), ("GONE2", 4)], {"P1": record("P1")})
        assert exc_info.value.missing_ids == ["GONE1", "GONE2"]
        assert "GONE1, GONE2" in str(exc_info.value)

    def test_inactive_product_named_by_title(self):
        with pytest.raises(ProductInactiveError, match="Product unavailable: Desk Lamp"):
            price_items([("P1", 1)], {"P1": record("P1", is_active=False)})

    def test_inactive_product_without_title_named_by_id(self):
        with pytest.raises(ProductInactiveError, match="Product unavailable: P1"):
            price_items([("P1", 1)], {"P1": record("P1", title="", is_active=False)})

    def test_unset_active_flag_counts_as_active(self):
        priced, _ = price_items([("P1", 1)], {"P1": record("P1", is_active=None)})
        assert priced[0].product_id == "P1"

    @pytest.mark.parametrize("price", [float("inf"), float("nan"), -0.01, None])
    def test_invalid_price(self, price):
        with pytest.raises(InvalidPriceError, match="Invalid price for product: Desk Lamp"):
            price_items([("P1", 1)], {"P1": record("P1", price=price)})

    def test_free_products_are_allowed(self):
        _, total = price_items([("P1", 2)], {"P1": record("P1", price=0)})
        assert total == 0


class TestReconcilePrices:
    def test_single_batched_query(self, db, make_product, engine):
        from sqlalchemy import event

        make_product(product_id="P1", price=50.0)
        make_product(product_id="P2", price=20.0)
        make_product(product_id="P3", price=99.0)

        statements = []

        def count(conn, cursor, statement, *args):
            statements.append(statement)

        event.listen(engine, "before_cursor_execute", count)
        try:
            priced, total = reconcile_prices(db, [("P1", 1), ("P2", 2)])
        finally:
            event.remove(engine, "before_cursor_execute", count)

        assert len([s for s in statements if "FROM products" in s]) == 1
        assert total == 90.0
        assert {p.product_id for p in priced} == {"P1", "P2"}

    def test_inactive_product_in_database(self, db, make_product):
        make_product(product_id="P1", is_active=False)
        with pytest.raises(ProductInactiveError):
            reconcile_prices(db, [("P1", 1)])


class TestPersistOrder:
    def test_header_and_items_written(self, db):
        items = [PricedItem("P1", "Desk Lamp", 50.0, 3), PricedItem("P2", "Shade", 10.0, 1)]
        order = persist_order(db, CUSTOMER, items, 160.0, RequestMetadata("10.0.0.1", "pytest", "MA"))

        assert order.status == "ordered"
        assert order.total_amount == 160.0
        assert order.order_number.startswith("ORDER-")
        assert (order.ip_address, order.user_agent, order.source_country) == ("10.0.0.1", "pytest", "MA")

        stored = db.query(OrderItem).filter(OrderItem.order_id == order.id).order_by(OrderItem.id).all()
        assert [(i.product_id, i.title, i.price, i.quantity) for i in stored] == [
            ("P1", "Desk Lamp", 50.0, 3),
            ("P2", "Shade", 10.0, 1),
        ]
        assert math.isclose(sum(i.price * i.quantity for i in stored), order.total_amount)

    def test_metadata_defaults_to_unknown(self, db):
        order = persist_order(db, CUSTOMER, [PricedItem("P1", "Lamp", 1.0, 1)], 1.0)
        assert order.ip_address == "unknown"
        assert order.source_country == "unknown"

    def test_failure_writes_nothing(self, db, monkeypatch):
        monkeypatch.setattr(checkout, "generate_order_number", lambda: "ORDER-FIXED")
        persist_order(db, CUSTOMER, [PricedItem("P1", "Lamp", 1.0, 1)], 1.0)

        with pytest.raises(PersistenceError, match="Failed to create order"):
            persist_order(db, CUSTOMER, [PricedItem("P2", "Shade", 2.0, 2)], 4.0)

        assert db.query(Order).count() == 1
        assert db.query(OrderItem).filter(OrderItem.product_id == "P2").count() == 0

    def test_order_numbers_are_distinct(self):
        numbers = {checkout.generate_order_number() for _ in range(200)}
        assert len(numbers) == 200


class TestCreateOrder:
    def test_client_total_is_ignored(self, db, make_product):
        make_product(product_id="P1", price=50.0)
        form = {
            "fullName": "Jane Doe", "phone": "123", "address": "1 Main St",
            "city": "Metropolis", "postalCode": "00000", "totalAmount": "1",
            "items": '[{"productId": "P1", "quantity": 2, "price": 0.5}]',
        }
        result = create_order(db, form)
        assert result.order.total_amount == 100.0
        assert result.items[0].price == 50.0

    def test_unknown_product_writes_nothing(self, db, make_product):
        make_product(product_id="P1")
        form = {
            "fullName": "Jane Doe", "phone": "123", "address": "1 Main St",
            "city": "Metropolis", "postalCode": "00000",
            "items": '[{"productId": "P1", "quantity": 1}, {"productId": "NOPE", "quantity": 1}]',
        }
        with pytest.raises(ProductsUnavailableError):
            create_order(db, form)
        assert db.query(Order).count() == 0
        assert db.query(OrderItem).count() == 0
