# Overview: Pytest coverage for the catalog and the unit-level stock ledger.

from decimal import Decimal

import pytest

from shopos.models import AuditLog, InventoryItem
from shopos.models.inventory import ITEM_DAMAGED, ITEM_IN_STOCK, ITEM_OUT_OF_STOCK
from shopos.services import cart_service, inventory_service, products_service
from shopos.services.checkout_service import checkout
from shopos.validation import ConflictError, NotFoundError, ValidationError


class TestProducts:

    def test_duplicate_sku_in_same_shop(self, db_session, shop, phone):
        with pytest.raises(ConflictError):
            products_service.create_product(
                shop_id=shop.id, payload={"name": "Copy", "sku": "SAM-A15", "selling_price": 1}
            )

    def test_same_sku_in_other_shop_is_fine(self, db_session, other_shop, phone):
        product = products_service.create_product(
            shop_id=other_shop.id, payload={"name": "Galaxy A15", "sku": "SAM-A15", "selling_price": 990}
        )
        assert product.shop_id == other_shop.id

    def test_required_fields(self, db_session, shop):
        with pytest.raises(ValidationError):
            products_service.create_product(shop_id=shop.id, payload={"name": "No SKU", "selling_price": 1})

    def test_negative_price_rejected(self, db_session, shop, phone):
        with pytest.raises(ValidationError):
            products_service.update_product(shop_id=shop.id, product_id=phone.id, payload={"selling_price": -5})

    def test_get_includes_stock(self, db_session, shop, phone, add_stock):
        add_stock(phone, 3)
        data = products_service.get_product(shop_id=shop.id, product_id=phone.id)
        assert data["in_stock"] == 3
        assert data["sku"] == "SAM-A15"

    def test_get_from_other_shop(self, db_session, other_shop, phone):
        with pytest.raises(NotFoundError):
            products_service.get_product(shop_id=other_shop.id, product_id=phone.id)

    def test_list_search_and_pages(self, db_session, shop, phone, charger):
        result = products_service.list_products(shop_id=shop.id, search="samsung")
        assert [row["id"] for row in result["items"]] == [phone.id]

        page = products_service.list_products(shop_id=shop.id, page=2, limit=1)
        assert page["total"] == 2
        assert page["count"] == 1
        # ordered by name: "Galaxy A15" < "USB-C Charger"
        assert page["items"][0]["id"] == charger.id


class TestReceiveStock:

    def test_creates_units_with_product_cost(self, db_session, owner, shop, phone):
        units = inventory_service.receive_stock(
            shop_id=shop.id,
            product_id=phone.id,
            quantity=3,
            user_id=owner.id,
            imeis=["356789000000011", "356789000000029"],
        )
        assert len(units) == 3
        assert inventory_service.count_in_stock(shop.id, phone.id) == 3
        assert all(u.cost_price == Decimal("800") for u in units)
        assert [u.imei for u in units] == ["356789000000011", "356789000000029", None]

        entry = db_session.query(AuditLog).filter_by(table_name="InventoryItem", action="CREATE").one()
        assert entry.new_values == {"product_id": phone.id, "quantity": 3}

    def test_too_many_identifiers(self, db_session, shop, phone):
        with pytest.raises(ValidationError):
            inventory_service.receive_stock(shop_id=shop.id, product_id=phone.id, quantity=1, imeis=["a", "b"])
        assert inventory_service.count_in_stock(shop.id, phone.id) == 0

    def test_product_from_other_shop(self, db_session, other_shop, phone):
        with pytest.raises(NotFoundError):
            inventory_service.receive_stock(shop_id=other_shop.id, product_id=phone.id, quantity=1)


class TestItemStatus:

    def test_damaged_unit_leaves_stock(self, db_session, shop, phone, add_stock):
        units = add_stock(phone, 2)
        item = inventory_service.set_item_status(shop_id=shop.id, item_id=units[0].id, status=ITEM_DAMAGED)
        assert item.status == ITEM_DAMAGED
        assert inventory_service.count_in_stock(shop.id, phone.id) == 1

        inventory_service.set_item_status(shop_id=shop.id, item_id=units[0].id, status=ITEM_IN_STOCK)
        assert inventory_service.count_in_stock(shop.id, phone.id) == 2

    def test_sold_unit_is_locked(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id)
        sale = checkout(user_id=worker.id, shop_id=shop.id)
        sold = db_session.query(InventoryItem).filter_by(sale_id=sale.id).one()

        with pytest.raises(ConflictError):
            inventory_service.set_item_status(shop_id=shop.id, item_id=sold.id, status=ITEM_IN_STOCK)
        db_session.refresh(sold)
        assert sold.status == ITEM_OUT_OF_STOCK

    def test_sold_is_not_a_manual_status(self, db_session, shop, phone, add_stock):
        units = add_stock(phone, 1)
        with pytest.raises(ValidationError):
            inventory_service.set_item_status(shop_id=shop.id, item_id=units[0].id, status=ITEM_OUT_OF_STOCK)

    def test_unit_from_other_shop(self, db_session, other_shop, phone, add_stock):
        units = add_stock(phone, 1)
        with pytest.raises(NotFoundError):
            inventory_service.set_item_status(shop_id=other_shop.id, item_id=units[0].id, status=ITEM_DAMAGED)


class TestSummary:

    def test_low_stock_flag_and_value(self, db_session, shop, phone, charger, add_stock):
        add_stock(phone, 2)
        add_stock(charger, 6)

        rows = {row["sku"]: row for row in inventory_service.inventory_summary(shop.id)}

        assert rows["SAM-A15"]["in_stock"] == 2
        assert rows["SAM-A15"]["is_low_stock"] is True
        assert rows["SAM-A15"]["stock_value"] == 1600.0
        assert rows["CHG-25W"]["in_stock"] == 6
        assert rows["CHG-25W"]["is_low_stock"] is False

    def test_list_units_oldest_first(self, db_session, shop, phone, add_stock):
        newer = add_stock(phone, 1, age_days=1)
        older = add_stock(phone, 1, age_days=5)
        units = inventory_service.list_units(shop_id=shop.id, product_id=phone.id)
        assert [u.id for u in units] == [older[0].id, newer[0].id]
