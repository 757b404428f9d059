# Overview: Pytest coverage for sale reads, edits and deletion with stock restore.

from datetime import timedelta
from decimal import Decimal

import pytest

from shopos.models import AuditLog, InventoryItem, Payment, Sale, SaleItem
from shopos.models.inventory import ITEM_IN_STOCK
from shopos.services import cart_service, sales_service
from shopos.services.checkout_service import checkout
from shopos.services.inventory_service import count_in_stock
from shopos.services.receipt_service import WALK_IN_CUSTOMER, render_receipt
from shopos.time_utils import utcnow
from shopos.validation import NotFoundError, ValidationError


def _sell(user, shop, product, quantity=1, **kwargs):
    cart_service.add_item(user_id=user.id, shop_id=shop.id, product_id=product.id, quantity=quantity)
    return checkout(user_id=user.id, shop_id=shop.id, **kwargs)


class TestDeleteSale:

    def test_restores_units_and_removes_rows(self, db_session, owner, worker, shop, phone, add_stock):
        add_stock(phone, 4)
        sale = _sell(worker, shop, phone, 3)
        sale_id = sale.id
        assert count_in_stock(shop.id, phone.id) == 1

        result = sales_service.delete_sale(shop_id=shop.id, sale_id=sale_id, user_id=owner.id)

        assert result["sale_id"] == sale_id
        assert result["restored_units"] == 3
        assert count_in_stock(shop.id, phone.id) == 4
        assert db_session.query(InventoryItem).filter_by(sale_id=sale_id).count() == 0
        assert db_session.get(Sale, sale_id) is None
        assert db_session.query(SaleItem).filter_by(sale_id=sale_id).count() == 0
        assert db_session.query(Payment).filter_by(sale_id=sale_id).count() == 0

    def test_only_own_units_restored(self, db_session, owner, worker, shop, phone, add_stock):
        add_stock(phone, 3)
        first = _sell(worker, shop, phone, 1)
        second = _sell(worker, shop, phone, 2)
        second_units = {u.id for u in db_session.query(InventoryItem).filter_by(sale_id=second.id)}

        sales_service.delete_sale(shop_id=shop.id, sale_id=first.id, user_id=owner.id)

        assert count_in_stock(shop.id, phone.id) == 1
        still_sold = {u.id for u in db_session.query(InventoryItem).filter_by(sale_id=second.id)}
        assert still_sold == second_units

    def test_round_trip_restores_stock_exactly(self, db_session, owner, worker, shop, phone, charger, add_stock):
        add_stock(phone, 2)
        add_stock(charger, 3)
        before = {
            u.id: u.status
            for u in db_session.query(InventoryItem).filter_by(shop_id=shop.id)
        }

        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=phone.id, quantity=2)
        cart_service.add_item(user_id=worker.id, shop_id=shop.id, product_id=charger.id, quantity=1)
        sale = checkout(user_id=worker.id, shop_id=shop.id)
        sales_service.delete_sale(shop_id=shop.id, sale_id=sale.id, user_id=owner.id)

        db_session.expire_all()
        after = {
            u.id: u.status
            for u in db_session.query(InventoryItem).filter_by(shop_id=shop.id)
        }
        assert after == before
        assert set(after.values()) == {ITEM_IN_STOCK}

    def test_customer_total_decremented(self, db_session, owner, worker, shop, phone, customer, add_stock):
        add_stock(phone, 2)
        keep = _sell(worker, shop, phone, 1, customer_id=customer.id)
        drop = _sell(worker, shop, phone, 1, customer_id=customer.id)

        sales_service.delete_sale(shop_id=shop.id, sale_id=drop.id, user_id=owner.id)

        db_session.refresh(customer)
        assert customer.total_purchases == keep.total_amount

    def test_second_delete_is_not_found(self, db_session, owner, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        sales_service.delete_sale(shop_id=shop.id, sale_id=sale.id, user_id=owner.id)
        with pytest.raises(NotFoundError):
            sales_service.delete_sale(shop_id=shop.id, sale_id=sale.id, user_id=owner.id)

    def test_other_shop_cannot_delete(self, db_session, worker, shop, other_shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        with pytest.raises(NotFoundError):
            sales_service.delete_sale(shop_id=other_shop.id, sale_id=sale.id)
        assert count_in_stock(shop.id, phone.id) == 0

    def test_audit_entry_keeps_snapshot(self, db_session, owner, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        invoice = sale.invoice_number
        sale_id = sale.id

        sales_service.delete_sale(shop_id=shop.id, sale_id=sale_id, user_id=owner.id)

        entry = db_session.query(AuditLog).filter_by(
            table_name="Sale", record_id=str(sale_id), action="DELETE"
        ).one()
        assert entry.old_values["invoice_number"] == invoice
        assert entry.new_values == {"restored_units": 1}


class TestUpdateSale:

    def test_status_and_notes(self, db_session, owner, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)

        updated = sales_service.update_sale(
            shop_id=shop.id, sale_id=sale.id, user_id=owner.id, status="CANCELLED", notes="Customer changed mind"
        )
        assert updated.status == "CANCELLED"
        assert updated.notes == "Customer changed mind"
        assert updated.total_amount == sale.total_amount

    def test_invalid_status(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        with pytest.raises(ValidationError):
            sales_service.update_sale(shop_id=shop.id, sale_id=sale.id, status="SHIPPED")

    def test_nothing_to_update(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        with pytest.raises(ValidationError):
            sales_service.update_sale(shop_id=shop.id, sale_id=sale.id)


class TestListSales:

    def test_pagination_and_order(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 3)
        sales = [_sell(worker, shop, phone) for _ in range(3)]

        page = sales_service.list_sales(shop_id=shop.id, page=1, limit=2)
        assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert [s["id"] for s in page["sales"]] == [sales[2].id, sales[1].id]

        page = sales_service.list_sales(shop_id=shop.id, page=2, limit=2)
        assert [s["id"] for s in page["sales"]] == [sales[0].id]

    def test_search_by_invoice_and_customer(self, db_session, worker, shop, phone, customer, add_stock):
        add_stock(phone, 2)
        walk_in = _sell(worker, shop, phone)
        named = _sell(worker, shop, phone, customer_id=customer.id)

        by_invoice = sales_service.list_sales(shop_id=shop.id, search=walk_in.invoice_number)
        assert [s["id"] for s in by_invoice["sales"]] == [walk_in.id]

        by_name = sales_service.list_sales(shop_id=shop.id, search="bilal")
        assert [s["id"] for s in by_name["sales"]] == [named.id]

    def test_date_filter(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        _sell(worker, shop, phone)
        today = utcnow().date()

        assert sales_service.list_sales(shop_id=shop.id, start=today, end=today)["pagination"]["total"] == 1
        tomorrow = today + timedelta(days=1)
        assert sales_service.list_sales(shop_id=shop.id, start=tomorrow)["pagination"]["total"] == 0

    def test_scoped_to_shop(self, db_session, worker, shop, other_shop, phone, add_stock):
        add_stock(phone, 1)
        _sell(worker, shop, phone)
        assert sales_service.list_sales(shop_id=other_shop.id)["pagination"]["total"] == 0


class TestReceipt:

    def test_walk_in_receipt(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 2)
        sale = _sell(worker, shop, phone, 2, discount_amount=10)

        receipt = render_receipt(sale)
        assert receipt["shop"]["name"] == "Shop A"
        assert receipt["invoice_number"] == sale.invoice_number
        assert receipt["customer_name"] == WALK_IN_CUSTOMER
        assert receipt["cashier"] == worker.name
        assert receipt["items"] == [{
            "name": "Galaxy A15",
            "sku": "SAM-A15",
            "quantity": 2,
            "unit_price": 1000.0,
            "total_price": 2000.0,
        }]
        assert receipt["total_amount"] == 2106.0
        assert receipt["paid_amount"] == 2106.0
        assert receipt["due_amount"] == 0.0

    def test_named_customer(self, db_session, worker, shop, phone, customer, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone, customer_id=customer.id)
        receipt = render_receipt(sale)
        assert receipt["customer_name"] == "Bilal Ahmed"
        assert receipt["customer_phone"] == "03001234567"
        assert Decimal(str(receipt["subtotal"])) == sale.subtotal
