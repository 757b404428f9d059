# Overview: Pytest coverage for split payments, refunds and daily reconciliation.

from datetime import timedelta
from decimal import Decimal

import pytest

from shopos.services import cart_service, payment_service, sales_service
from shopos.services.checkout_service import checkout
from shopos.time_utils import utcnow
from shopos.validation import ConflictError, NotFoundError, ValidationError


def _sell(user, shop, product, quantity=1, **kwargs):
    cart_service.add_item(user_id=user.id, shop_id=shop.id, product_id=product.id, quantity=quantity)
    return checkout(user_id=user.id, shop_id=shop.id, **kwargs)


@pytest.fixture
def open_sale(db_session, owner, worker, shop, phone, add_stock):
    """A 1170 sale whose checkout payment has been refunded, so the full amount is due."""
    add_stock(phone, 1)
    sale = _sell(worker, shop, phone)
    payment_service.refund_payment(
        shop_id=shop.id, payment_id=sale.payments[0].id, user_id=owner.id, reason="Card declined"
    )
    db_session.refresh(sale)
    return sale


class TestAddPayment:

    def test_split_payments_reduce_due(self, db_session, worker, shop, open_sale):
        assert open_sale.due_amount == Decimal("1170")

        payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=500, method="cash", user_id=worker.id)
        payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount="670", method="EasyPaisa")

        db_session.refresh(open_sale)
        assert open_sale.paid_amount == Decimal("1170")
        assert open_sale.due_amount == Decimal("0")
        assert sorted(p.method for p in open_sale.payments) == ["CASH", "CASH", "EASYPAISA"]

    def test_overpayment_rejected(self, db_session, shop, open_sale):
        with pytest.raises(ValidationError) as exc:
            payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=1171, method="CASH")
        assert exc.value.details["remaining_amount"] == 1170.0

    def test_fully_paid_sale_rejects_more(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        sale = _sell(worker, shop, phone)
        with pytest.raises(ValidationError):
            payment_service.add_payment(shop_id=shop.id, sale_id=sale.id, amount=1, method="CASH")

    def test_non_positive_amount_rejected(self, db_session, shop, open_sale):
        with pytest.raises(ValidationError):
            payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=0, method="CASH")

    def test_method_required(self, db_session, shop, open_sale):
        with pytest.raises(ValidationError):
            payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=10, method="  ")

    def test_cancelled_sale_rejected(self, db_session, owner, shop, open_sale):
        sales_service.update_sale(shop_id=shop.id, sale_id=open_sale.id, user_id=owner.id, status="CANCELLED")
        with pytest.raises(ConflictError):
            payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=10, method="CASH")

    def test_sale_in_other_shop(self, db_session, other_shop, open_sale):
        with pytest.raises(NotFoundError):
            payment_service.add_payment(shop_id=other_shop.id, sale_id=open_sale.id, amount=10, method="CASH")

    def test_summary(self, db_session, shop, open_sale):
        payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=170, method="CARD")
        db_session.refresh(open_sale)
        assert payment_service.payment_summary(open_sale) == {
            "sale_id": open_sale.id,
            "total_amount": 1170.0,
            "paid_amount": 170.0,
            "due_amount": 1000.0,
            "payments_count": 2,
        }


class TestRefund:

    def test_refund_keeps_row(self, db_session, shop, open_sale):
        refunded = open_sale.payments[0]
        assert refunded.status == "REFUNDED"
        assert "Card declined" in refunded.notes
        assert len(open_sale.payments) == 1

    def test_refund_twice_rejected(self, db_session, shop, open_sale):
        with pytest.raises(ConflictError):
            payment_service.refund_payment(shop_id=shop.id, payment_id=open_sale.payments[0].id)

    def test_refund_unknown_payment(self, db_session, shop):
        with pytest.raises(NotFoundError):
            payment_service.refund_payment(shop_id=shop.id, payment_id=424242)


class TestListPayments:

    def test_filters(self, db_session, shop, open_sale):
        payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=100, method="CARD")

        assert len(payment_service.list_payments(shop_id=shop.id)) == 2
        assert [p.method for p in payment_service.list_payments(shop_id=shop.id, method="card")] == ["CARD"]
        assert len(payment_service.list_payments(shop_id=shop.id, status="REFUNDED")) == 1

    def test_invalid_status(self, db_session, shop):
        with pytest.raises(ValidationError):
            payment_service.list_payments(shop_id=shop.id, status="BOUNCED")


class TestReconcile:

    def test_balanced_day(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 2)
        _sell(worker, shop, phone)
        _sell(worker, shop, phone, payment_method="CARD")

        report = payment_service.reconcile(shop_id=shop.id, day=utcnow().date())

        assert report["summary"]["total_payments"] == 2
        assert report["summary"]["total_amount"] == 2340.0
        assert report["summary"]["completed_amount"] == 2340.0
        assert report["summary"]["pending_amount"] == 0.0
        assert set(report["summary"]["method_summary"]) == {"CASH", "CARD"}
        assert report["summary"]["method_summary"]["CARD"]["count"] == 1
        assert report["discrepancies"] == []

    def test_underpaid_sale_is_a_discrepancy(self, db_session, shop, open_sale):
        payment_service.add_payment(shop_id=shop.id, sale_id=open_sale.id, amount=1000, method="CASH")

        report = payment_service.reconcile(shop_id=shop.id, day=utcnow().date())

        assert report["discrepancies"] == [{
            "sale_id": open_sale.id,
            "invoice_number": open_sale.invoice_number,
            "sale_total": 1170.0,
            "total_paid": 1000.0,
            "difference": 170.0,
        }]
        cash = report["summary"]["method_summary"]["CASH"]
        assert cash["count"] == 2
        assert cash["completed"] == 1000.0
        assert cash["refunded"] == 1170.0

    def test_other_day_is_empty(self, db_session, worker, shop, phone, add_stock):
        add_stock(phone, 1)
        _sell(worker, shop, phone)
        report = payment_service.reconcile(shop_id=shop.id, day=utcnow().date() - timedelta(days=1))
        assert report["summary"]["total_payments"] == 0
        assert report["discrepancies"] == []

    def test_all_shops(self, db_session, worker, shop, other_shop, phone, add_stock):
        add_stock(phone, 1)
        _sell(worker, shop, phone)
        assert payment_service.reconcile(shop_id=other_shop.id, day=utcnow().date())["summary"]["total_payments"] == 0
        assert payment_service.reconcile(shop_id=None, day=utcnow().date())["summary"]["total_payments"] == 1
