# Overview: Pytest coverage for suppliers, purchase orders and receiving into stock.

from decimal import Decimal

import pytest

from shopos.models import InventoryItem
from shopos.services import purchase_service, supplier_service
from shopos.services.inventory_service import count_in_stock
from shopos.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def supplier(db_session, shop):
    return supplier_service.create_supplier(shop_id=shop.id, name="Lahore Mobile Traders", phone="0421234567")


@pytest.fixture
def order(db_session, owner, shop, supplier, phone, charger):
    """5 phones at 800 and 10 chargers at 150."""
    return purchase_service.create_purchase(
        shop_id=shop.id,
        supplier_id=supplier.id,
        items=[
            {"product_id": phone.id, "quantity": 5, "unit_cost": 800},
            {"product_id": charger.id, "quantity": 10, "unit_cost": "150"},
        ],
        user_id=owner.id,
    )


def _line(purchase, product):
    return next(line for line in purchase.items if line.product_id == product.id)


class TestSuppliers:

    def test_update_and_deactivate(self, db_session, shop, supplier):
        updated = supplier_service.update_supplier(
            shop_id=shop.id, supplier_id=supplier.id, contact_person="Usman", is_active=False
        )
        assert updated.contact_person == "Usman"
        assert updated.is_active is False

        assert supplier_service.list_suppliers(shop_id=shop.id) == []
        assert len(supplier_service.list_suppliers(shop_id=shop.id, include_inactive=True)) == 1

    def test_name_required(self, db_session, shop):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(shop_id=shop.id, name=" ")

    def test_other_shop_cannot_see(self, db_session, other_shop, supplier):
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier(shop_id=other_shop.id, supplier_id=supplier.id)


class TestCreatePurchase:

    def test_totals_and_number(self, db_session, order):
        assert order.status == "PENDING"
        assert order.invoice_number.startswith("PUR-")
        assert order.total_amount == Decimal("5500")
        assert order.due_amount == Decimal("5500")
        assert order.paid_amount == Decimal("0")
        assert len(order.items) == 2

    def test_no_stock_until_received(self, db_session, shop, phone, order):
        assert count_in_stock(shop.id, phone.id) == 0

    def test_inactive_supplier(self, db_session, shop, supplier, phone):
        supplier_service.update_supplier(shop_id=shop.id, supplier_id=supplier.id, is_active=False)
        with pytest.raises(ConflictError):
            purchase_service.create_purchase(
                shop_id=shop.id,
                supplier_id=supplier.id,
                items=[{"product_id": phone.id, "quantity": 1, "unit_cost": 1}],
            )

    def test_empty_items(self, db_session, shop, supplier):
        with pytest.raises(ValidationError):
            purchase_service.create_purchase(shop_id=shop.id, supplier_id=supplier.id, items=[])

    def test_product_from_other_shop(self, db_session, other_shop, phone):
        foreign_supplier = supplier_service.create_supplier(shop_id=other_shop.id, name="Elsewhere")
        with pytest.raises(NotFoundError):
            purchase_service.create_purchase(
                shop_id=other_shop.id,
                supplier_id=foreign_supplier.id,
                items=[{"product_id": phone.id, "quantity": 1, "unit_cost": 1}],
            )


class TestReceivePurchase:

    def test_partial_then_full(self, db_session, owner, shop, phone, charger, order):
        phone_line = _line(order, phone)
        charger_line = _line(order, charger)

        result = purchase_service.receive_purchase(
            shop_id=shop.id,
            purchase_id=order.id,
            items=[{"purchase_item_id": phone_line.id, "received_quantity": 2, "imeis": ["356789000000011"]}],
            user_id=owner.id,
        )
        assert result["units_created"] == 2
        assert result["purchase"].status == "PARTIAL"
        assert count_in_stock(shop.id, phone.id) == 2

        result = purchase_service.receive_purchase(
            shop_id=shop.id,
            purchase_id=order.id,
            items=[
                {"purchase_item_id": phone_line.id, "received_quantity": 5},
                {"purchase_item_id": charger_line.id, "received_quantity": 10},
            ],
        )
        assert result["units_created"] == 13
        assert result["purchase"].status == "RECEIVED"
        assert result["purchase"].received_date is not None
        assert count_in_stock(shop.id, phone.id) == 5
        assert count_in_stock(shop.id, charger.id) == 10

    def test_units_carry_purchase_details(self, db_session, shop, phone, supplier, order):
        phone_line = _line(order, phone)
        purchase_service.receive_purchase(
            shop_id=shop.id,
            purchase_id=order.id,
            items=[{"purchase_item_id": phone_line.id, "received_quantity": 1, "imeis": ["356789000000011"]}],
        )
        unit = db_session.query(InventoryItem).filter_by(purchase_id=order.id).one()
        assert unit.imei == "356789000000011"
        assert unit.cost_price == Decimal("800")
        assert unit.batch_number == order.invoice_number
        assert unit.supplier_id == supplier.id

    def test_repeating_the_same_total_creates_nothing(self, db_session, shop, phone, order):
        phone_line = _line(order, phone)
        items = [{"purchase_item_id": phone_line.id, "received_quantity": 3}]
        purchase_service.receive_purchase(shop_id=shop.id, purchase_id=order.id, items=items)
        result = purchase_service.receive_purchase(shop_id=shop.id, purchase_id=order.id, items=items)
        assert result["units_created"] == 0
        assert count_in_stock(shop.id, phone.id) == 3

    def test_over_receiving_rejected(self, db_session, shop, phone, order):
        phone_line = _line(order, phone)
        with pytest.raises(ValidationError):
            purchase_service.receive_purchase(
                shop_id=shop.id,
                purchase_id=order.id,
                items=[{"purchase_item_id": phone_line.id, "received_quantity": 6}],
            )
        assert count_in_stock(shop.id, phone.id) == 0

    def test_lowering_the_received_total_rejected(self, db_session, shop, phone, order):
        phone_line = _line(order, phone)
        purchase_service.receive_purchase(
            shop_id=shop.id,
            purchase_id=order.id,
            items=[{"purchase_item_id": phone_line.id, "received_quantity": 3}],
        )
        with pytest.raises(ValidationError) as exc:
            purchase_service.receive_purchase(
                shop_id=shop.id,
                purchase_id=order.id,
                items=[{"purchase_item_id": phone_line.id, "received_quantity": 2}],
            )
        assert exc.value.details["received_quantity"] == 3
        assert count_in_stock(shop.id, phone.id) == 3

    def test_unknown_line(self, db_session, shop, order):
        with pytest.raises(NotFoundError):
            purchase_service.receive_purchase(
                shop_id=shop.id,
                purchase_id=order.id,
                items=[{"purchase_item_id": 999999, "received_quantity": 1}],
            )

    def test_received_purchase_is_closed(self, db_session, shop, phone, charger, order):
        items = [
            {"purchase_item_id": _line(order, phone).id, "received_quantity": 5},
            {"purchase_item_id": _line(order, charger).id, "received_quantity": 10},
        ]
        purchase_service.receive_purchase(shop_id=shop.id, purchase_id=order.id, items=items)
        with pytest.raises(ConflictError):
            purchase_service.receive_purchase(shop_id=shop.id, purchase_id=order.id, items=items)


class TestPurchasePayments:

    def test_payment_reduces_due(self, db_session, owner, shop, order):
        purchase = purchase_service.record_purchase_payment(
            shop_id=shop.id, purchase_id=order.id, amount=2000, user_id=owner.id
        )
        assert purchase.paid_amount == Decimal("2000")
        assert purchase.due_amount == Decimal("3500")

    def test_overpayment_rejected(self, db_session, shop, order):
        with pytest.raises(ValidationError) as exc:
            purchase_service.record_purchase_payment(shop_id=shop.id, purchase_id=order.id, amount=6000)
        assert exc.value.details["due_amount"] == 5500.0

    def test_list_filters(self, db_session, shop, supplier, order):
        assert [p.id for p in purchase_service.list_purchases(shop_id=shop.id, status="PENDING")] == [order.id]
        assert purchase_service.list_purchases(shop_id=shop.id, status="RECEIVED") == []
        assert [p.id for p in purchase_service.list_purchases(shop_id=shop.id, supplier_id=supplier.id)] == [order.id]
