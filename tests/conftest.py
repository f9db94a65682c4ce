"""Pytest fixtures for the storefront API tests."""

import os
import tempfile

# Settings are read at import time, configure them before the app is imported
ADMIN_TOKEN = "test-admin-token"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_TOKEN"] = ADMIN_TOKEN
os.environ["NOTIFICATION_URL"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")
os.environ.pop("ORDER_STATUS_TRANSITIONS", None)

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models.cart  # noqa: F401  (registers cart_lines)
import models.log  # noqa: F401  (registers logs)
from models.order import Order, OrderItem
from models.product import Product
from utils.notifier import OrderNotifier, get_notifier

NOTIFY_URL = "http://notify.test/orders"


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifications():
    """Payloads received by the fake notification endpoint."""
    return []


@pytest.fixture
def notifier(notifications):
    def handler(request: httpx.Request) -> httpx.Response:
        notifications.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    return OrderNotifier(url=NOTIFY_URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def client(session_factory, notifier):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
def make_product(db):
    """Insert a catalog product."""

    def _make(product_id=None, title="Desk Lamp", price=50.0, is_active=True, images=None):
        product = Product(
            title=title,
            price=price,
            is_active=is_active,
            image_file_ids=images if images is not None else ["lamp.jpg"],
        )
        if product_id:
            product.id = product_id
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_order(db):
    """Insert an order with items directly, bypassing checkout."""

    def _make(status="ordered", items=(("P1", "Desk Lamp", 50.0, 1),), created_at=None, **fields):
        total = sum(price * qty for _, _, price, qty in items)
        values = dict(
            order_number=f"ORDER-TEST-{os.urandom(6).hex()}",
            status=status,
            total_amount=total,
            full_name="Jane Doe",
            phone="123",
            address="1 Main St",
            city="Metropolis",
            postal_code="00000",
        )
        values.update(fields)
        order = Order(**values)
        if created_at is not None:
            order.created_at = created_at
        db.add(order)
        db.flush()
        db.add_all([
            OrderItem(order_id=order.id, product_id=pid, title=title, price=price, quantity=qty)
            for pid, title, price, qty in items
        ])
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def jane_doe():
    """The reference checkout payload (without items)."""
    return {
        "fullName": "Jane Doe",
        "phone": "123",
        "address": "1 Main St",
        "city": "Metropolis",
        "postalCode": "00000",
    }
