# Overview: Concurrent checkouts against one shop's last units; no unit may be sold twice.

"""
Concurrency Tests

Runs real threads against a file-backed SQLite database (in-memory SQLite
is one connection, so it cannot race). Every cashier holds a one-unit cart
for the same product and there is one unit fewer than cashiers.

Expected: exactly N-1 checkouts succeed, the rest fail with OversellError,
no InventoryItem is attached to two sales, and stock ends at zero.
"""

import threading

import pytest

from shopos import create_app
from shopos.extensions import db
from shopos.models import InventoryItem, Sale
from shopos.models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER
from shopos.services import cart_service
from shopos.services.auth_service import create_user
from shopos.services.checkout_service import checkout
from shopos.services.inventory_service import count_in_stock, receive_stock
from shopos.services.products_service import create_product
from shopos.services.shop_service import add_worker, create_shop
from shopos.validation import OversellError

CASHIERS = 5
PASSWORD = "Password123"


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'race.sqlite3'}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False, "timeout": 30}},
        "BCRYPT_ROUNDS": 4,
        "LOG_LEVEL": "WARNING",
    })
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def race(file_app):
    """Shop with CASHIERS workers, each holding one unit in their cart; CASHIERS-1 units in stock."""
    with file_app.app_context():
        owner = create_user("Race Owner", "race-owner@test.local", PASSWORD, ROLE_SHOP_OWNER)
        shop = create_shop(name="Race Shop", code="RACE", owner_id=owner.id)
        product = create_product(
            shop_id=shop.id,
            payload={"name": "iPhone 13", "sku": "APL-13", "selling_price": 2000, "cost_price": 1500},
        )
        receive_stock(shop_id=shop.id, product_id=product.id, quantity=CASHIERS - 1)

        cashier_ids = []
        for i in range(CASHIERS):
            user = create_user(f"Cashier {i}", f"race-cashier-{i}@test.local", PASSWORD, ROLE_SHOP_WORKER)
            add_worker(shop_id=shop.id, user_id=user.id)
            cart_service.add_item(user_id=user.id, shop_id=shop.id, product_id=product.id)
            cashier_ids.append(user.id)

        return {"shop_id": shop.id, "product_id": product.id, "cashier_ids": cashier_ids}


def test_last_units_are_never_oversold(file_app, race):
    shop_id = race["shop_id"]
    barrier = threading.Barrier(CASHIERS)
    sold = []
    rejected = []
    unexpected = []

    def _cashier(user_id):
        with file_app.app_context():
            barrier.wait()
            try:
                sale = checkout(user_id=user_id, shop_id=shop_id)
                sold.append(sale.id)
            except OversellError:
                rejected.append(user_id)
            except Exception as exc:
                unexpected.append(repr(exc))

    threads = [threading.Thread(target=_cashier, args=(uid,)) for uid in race["cashier_ids"]]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert unexpected == []
    assert len(sold) == CASHIERS - 1
    assert len(rejected) == 1

    with file_app.app_context():
        assert count_in_stock(shop_id, race["product_id"]) == 0
        assert db.session.query(Sale).count() == CASHIERS - 1

        units = db.session.query(InventoryItem).filter_by(shop_id=shop_id).all()
        assert sorted(u.sale_id for u in units) == sorted(sold)

        invoices = [s.invoice_number for s in db.session.query(Sale).all()]
        assert len(set(invoices)) == len(invoices)
