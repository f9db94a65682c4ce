import argparse
import logging
import random
from datetime import datetime, timedelta, timezone

from database import SessionLocal, init_db
from models.product import Product
from models.order import Order, OrderItem, ORDER_STATUSES
from services.checkout import generate_order_number

logger = logging.getLogger(__name__)

# Configuration
DEMO_PRODUCTS = [
    ("Argan Oil 100ml", 120.0, "Cold-pressed argan oil from Essaouira."),
    ("Handwoven Berber Rug", 1450.0, "Wool rug, natural dyes, 120x180 cm."),
    ("Ceramic Tagine Pot", 310.0, "Glazed clay tagine for two."),
    ("Mint Tea Set", 275.0, "Silver-plated teapot with six glasses."),
    ("Leather Babouches", 190.0, "Hand-stitched slippers, sizes 36-45."),
    ("Black Soap 250g", 45.0, "Traditional beldi soap with eucalyptus."),
]
DEMO_CITIES = ["Casablanca", "Rabat", "Marrakech", "Fes", "Tangier"]
# End Configuration


def load_products(session) -> list:
    """Insert the demo catalog unless products already exist."""
    if session.query(Product).count():
        logger.info("Products already present, skipping catalog seed")
        return session.query(Product).all()

    products = [
        Product(title=title, price=price, description=description, image_file_ids=[], is_active=True)
        for title, price, description in DEMO_PRODUCTS
    ]
    session.add_all(products)
    session.commit()
    logger.info("Inserted %d products", len(products))
    return products


def load_orders(session, products: list, count: int, days: int):
    """Generate random historical orders priced from the catalog."""
    now = datetime.now(timezone.utc)
    for i in range(count):
        picked = random.sample(products, k=random.randint(1, min(3, len(products))))
        lines = [(p, random.randint(1, 3)) for p in picked]
        total = round(sum(p.price * qty for p, qty in lines), 2)

        order = Order(
            order_number=generate_order_number(),
            status=random.choice(ORDER_STATUSES),
            total_amount=total,
            created_at=now - timedelta(days=random.randint(0, days), minutes=random.randint(0, 1440)),
            full_name=f"Demo Customer {i + 1}",
            phone=f"+2126{random.randint(10000000, 99999999)}",
            address=f"{random.randint(1, 200)} Rue de la Demo",
            city=random.choice(DEMO_CITIES),
            postal_code=f"{random.randint(10000, 99999)}",
        )
        session.add(order)
        session.flush()
        session.add_all([
            OrderItem(order_id=order.id, product_id=p.id, title=p.title, price=p.price, quantity=qty)
            for p, qty in lines
        ])
    session.commit()
    logger.info("Inserted %d orders", count)


def main():
    parser = argparse.ArgumentParser(description="Seed the storefront database with demo data.")
    parser.add_argument("--orders", type=int, default=25, help="number of demo orders to create")
    parser.add_argument("--days", type=int, default=30, help="spread orders over this many past days")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    init_db()
    session = SessionLocal()
    try:
        products = load_products(session)
        if args.orders > 0:
            load_orders(session, products, args.orders, args.days)
    finally:
        session.close()


if __name__ == "__main__":
    main()
