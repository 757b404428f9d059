"""
Pytest fixtures for ShopOS backend tests.

Provides an in-memory application, per-test table wipes, two tenants
(shop A with an owner and a worker, shop B with its own owner), catalog
fixtures and login helpers for the API tests.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from shopos import create_app
from shopos.extensions import db
from shopos.models import InventoryItem
from shopos.models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER, ROLE_SUPER_ADMIN
from shopos.models.inventory import ITEM_IN_STOCK
from shopos.services.auth_service import create_user
from shopos.services.customer_service import create_customer
from shopos.services.products_service import create_product
from shopos.services.shop_service import add_worker, create_shop
from shopos.time_utils import utcnow


PASSWORD = "Password123"

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "BCRYPT_ROUNDS": 4,
    "DEFAULT_TAX_PERCENTAGE": 17,
    "LOG_LEVEL": "WARNING",
}


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture(scope="function")
def db_session(app):
    """Fresh data for each test; the schema is kept."""
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()
    db.session.remove()


# =============================================================================
# TENANTS
# =============================================================================

@pytest.fixture(scope="function")
def admin(db_session):
    return create_user("Admin", "admin@test.local", PASSWORD, ROLE_SUPER_ADMIN)


@pytest.fixture(scope="function")
def owner(db_session):
    return create_user("Owner A", "owner-a@test.local", PASSWORD, ROLE_SHOP_OWNER)


@pytest.fixture(scope="function")
def shop(db_session, owner):
    return create_shop(name="Shop A", code="SHOPA", owner_id=owner.id)


@pytest.fixture(scope="function")
def worker(db_session, shop):
    user = create_user("Cashier A", "cashier-a@test.local", PASSWORD, ROLE_SHOP_WORKER)
    add_worker(shop_id=shop.id, user_id=user.id)
    return user


@pytest.fixture(scope="function")
def other_owner(db_session):
    return create_user("Owner B", "owner-b@test.local", PASSWORD, ROLE_SHOP_OWNER)


@pytest.fixture(scope="function")
def other_shop(db_session, other_owner):
    return create_shop(name="Shop B", code="SHOPB", owner_id=other_owner.id)


# =============================================================================
# CATALOG / STOCK
# =============================================================================

@pytest.fixture(scope="function")
def phone(db_session, shop):
    """Handset priced at 1000, cost 800."""
    return create_product(
        shop_id=shop.id,
        payload={
            "name": "Galaxy A15",
            "sku": "SAM-A15",
            "brand": "Samsung",
            "selling_price": 1000,
            "cost_price": 800,
            "low_stock_threshold": 2,
        },
    )


@pytest.fixture(scope="function")
def charger(db_session, shop):
    return create_product(
        shop_id=shop.id,
        payload={"name": "USB-C Charger", "sku": "CHG-25W", "selling_price": 250, "cost_price": 150},
    )


@pytest.fixture(scope="function")
def customer(db_session, shop):
    return create_customer(
        shop_id=shop.id,
        payload={"name": "Bilal Ahmed", "phone": "03001234567", "cnic": "35202-1234567-1"},
    )


@pytest.fixture(scope="function")
def add_stock(db_session):
    """
    Factory: add_stock(product, quantity, age_days=0) -> [InventoryItem]

    Units are dated age_days in the past so FIFO order can be controlled.
    """
    def _add(product, quantity, age_days=0):
        purchase_date = utcnow() - timedelta(days=age_days)
        units = []
        for _ in range(quantity):
            unit = InventoryItem(
                shop_id=product.shop_id,
                product_id=product.id,
                status=ITEM_IN_STOCK,
                cost_price=Decimal(product.cost_price),
                purchase_date=purchase_date,
            )
            db_session.add(unit)
            units.append(unit)
        db_session.commit()
        return units

    return _add


# =============================================================================
# API HELPERS
# =============================================================================

def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    if response.status_code == 200:
        return response.json.get("token")
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def login(client):
    """login(user) -> Authorization headers for that user."""
    def _login(user):
        token = get_auth_token(client, user.email)
        assert token, f"login failed for {user.email}"
        return auth_headers(token)

    return _login
