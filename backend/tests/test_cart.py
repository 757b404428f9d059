# Overview: Pytest coverage for the POS cart service.

import pytest

from shopos.models import CartItem
from shopos.services import cart_service
from shopos.services.products_service import create_product, update_product
from shopos.validation import NotFoundError, ValidationError


class TestAddItem:

    def test_add_creates_line(self, db_session, worker, shop, phone):
        line = cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=2)
        assert line.quantity == 2
        assert db_session.query(CartItem).count() == 1

    def test_adding_again_increments(self, db_session, worker, shop, phone):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        line = cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=3)
        assert line.quantity == 4
        assert db_session.query(CartItem).count() == 1

    def test_zero_quantity_rejected(self, db_session, worker, shop, phone):
        with pytest.raises(ValidationError):
            cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=0)

    def test_product_from_other_shop_is_not_found(self, db_session, worker, shop, other_shop):
        foreign = create_product(
            shop_id=other_shop.id,
            payload={"name": "Foreign", "sku": "F-1", "selling_price": 10},
        )
        with pytest.raises(NotFoundError):
            cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=foreign.id)

    def test_inactive_product_cannot_be_added(self, db_session, worker, shop, phone):
        update_product(shop_id=shop.id, product_id=phone.id, payload={"status": "INACTIVE"})
        with pytest.raises(NotFoundError):
            cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)

    def test_no_stock_needed_to_add(self, db_session, worker, shop, phone):
        """Availability is enforced at checkout, not while building the cart."""
        line = cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=5)
        assert line.quantity == 5


class TestListItems:

    def test_subtotal_uses_current_price(self, db_session, worker, shop, phone, charger):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=2)
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=charger.id)

        cart = cart_service.list_items(user_id=worker.id, shop_id=shop.id)
        assert cart["count"] == 2
        assert cart["total_quantity"] == 3
        assert cart["subtotal"] == 2250.0

        update_product(shop_id=shop.id, product_id=phone.id, payload={"selling_price": 1100})
        cart = cart_service.list_items(user_id=worker.id, shop_id=shop.id)
        assert cart["subtotal"] == 2450.0

    def test_carts_are_per_user(self, db_session, owner, worker, shop, phone):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        assert cart_service.list_items(user_id=owner.id, shop_id=shop.id)["count"] == 0
        assert cart_service.list_items(user_id=worker.id, shop_id=shop.id)["count"] == 1


class TestUpdateAndRemove:

    def test_update_sets_absolute_quantity(self, db_session, worker, shop, phone):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=4)
        line = cart_service.update_quantity(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=1)
        assert line.quantity == 1

    def test_update_to_zero_rejected(self, db_session, worker, shop, phone):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        with pytest.raises(ValidationError):
            cart_service.update_quantity(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=0)

    def test_update_missing_line(self, db_session, worker, shop, phone):
        with pytest.raises(NotFoundError):
            cart_service.update_quantity(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=2)

    def test_remove_line(self, db_session, worker, shop, phone, charger):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=charger.id)
        cart_service.remove_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)

        remaining = cart_service.list_items(user_id=worker.id, shop_id=shop.id)["items"]
        assert [row["product_id"] for row in remaining] == [charger.id]

    def test_remove_missing_line(self, db_session, worker, shop, phone):
        with pytest.raises(NotFoundError):
            cart_service.remove_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)

    def test_clear_returns_removed_count(self, db_session, worker, shop, phone, charger):
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=charger.id)
        assert cart_service.clear(user_id=worker.id, shop_id=shop.id) == 2
        assert cart_service.clear(user_id=worker.id, shop_id=shop.id) == 0
