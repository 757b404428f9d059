# Overview: Pytest coverage for mobile-wallet, load and bill payment transactions.

from datetime import date, datetime
from decimal import Decimal

import pytest

from shopos.models import AuditLog, MobileService
from shopos.services import mobile_service_service as mobile
from shopos.validation import NotFoundError, ValidationError


def _txn(shop, **overrides):
    payload = {"service_type": "EASYPAISA_CASHOUT", "amount": 5000}
    transaction_date = overrides.pop("transaction_date", None)
    payload.update(overrides)
    return mobile.create_transaction(shop_id=shop.id, payload=payload, transaction_date=transaction_date)


class TestCommission:

    @pytest.mark.parametrize("service_type,amount,rate,commission", [
        ("EASYPAISA_CASHIN", "5000", "10", "50"),
        ("JAZZCASH_CASHOUT", "5000", "20", "100"),
        ("BANK_TRANSFER", "25000", "20", "500"),
        ("MOBILE_LOAD", "500", "26", "13"),
        ("BILL_PAYMENT", "1234", "10", "12.34"),
    ])
    def test_default_rates_per_thousand(self, service_type, amount, rate, commission):
        assert mobile.calculate_commission(service_type, Decimal(amount)) == (Decimal(rate), Decimal(commission))

    def test_rounded_to_cents(self):
        assert mobile.calculate_commission("MOBILE_LOAD", Decimal("99"))[1] == Decimal("2.57")

    def test_unknown_service_type(self):
        with pytest.raises(ValidationError):
            mobile.calculate_commission("WESTERN_UNION", Decimal("100"))


class TestCreateTransaction:

    def test_defaults(self, db_session, worker, shop):
        txn = mobile.create_transaction(
            shop_id=shop.id,
            payload={"service_type": "EASYPAISA_CASHOUT", "amount": 5000, "discount": 30, "phone_number": " 03001234567 "},
            user_id=worker.id,
        )
        assert txn.status == "COMPLETED"
        assert txn.commission_rate == Decimal("20")
        assert txn.commission == Decimal("100")
        assert txn.net_commission == Decimal("70")
        assert txn.phone_number == "03001234567"
        assert txn.transaction_date is not None
        assert txn.to_dict()["created_by"]["id"] == worker.id

        entry = db_session.query(AuditLog).filter_by(table_name="MobileService", action="CREATE").one()
        assert entry.record_id == str(txn.id)

    def test_commission_rate_override(self, db_session, shop):
        txn = _txn(shop, amount=2000, commission_rate=15)
        assert txn.commission_rate == Decimal("15")
        assert txn.commission == Decimal("30")

    def test_mobile_load_needs_provider(self, db_session, shop):
        with pytest.raises(ValidationError):
            _txn(shop, service_type="MOBILE_LOAD", amount=500)
        with pytest.raises(ValidationError):
            _txn(shop, service_type="MOBILE_LOAD", amount=500, load_provider="VODAFONE")
        assert db_session.query(MobileService).count() == 0

        txn = _txn(shop, service_type="MOBILE_LOAD", amount=500, load_provider="ZONG")
        assert txn.load_provider == "ZONG"

    def test_provider_dropped_for_other_services(self, db_session, shop):
        txn = _txn(shop, load_provider="JAZZ")
        assert txn.load_provider is None

    @pytest.mark.parametrize("overrides", [
        {"service_type": None},
        {"service_type": "CRYPTO"},
        {"amount": 0},
        {"amount": -50},
        {"amount": "lots"},
        {"discount": -1},
        {"discount": 101},
    ])
    def test_invalid_input(self, db_session, shop, overrides):
        with pytest.raises(ValidationError):
            _txn(shop, **overrides)
        assert db_session.query(MobileService).count() == 0


class TestUpdateAndDelete:

    def test_amount_change_uses_stored_rate(self, db_session, owner, shop):
        txn = _txn(shop, discount=30, commission_rate=25)
        updated = mobile.update_transaction(
            shop_id=shop.id, transaction_id=txn.id, payload={"amount": 7500}, user_id=owner.id
        )
        assert updated.commission_rate == Decimal("25")
        assert updated.commission == Decimal("187.5")
        assert updated.discount == Decimal("30")
        assert updated.net_commission == Decimal("157.5")

        entry = db_session.query(AuditLog).filter_by(table_name="MobileService", action="UPDATE").one()
        assert entry.old_values["amount"] == 5000.0
        assert entry.new_values["amount"] == 7500.0

    def test_status_and_text_only(self, db_session, shop):
        txn = _txn(shop)
        updated = mobile.update_transaction(
            shop_id=shop.id, transaction_id=txn.id, payload={"status": "FAILED", "notes": "network down"}
        )
        assert updated.status == "FAILED"
        assert updated.notes == "network down"
        assert updated.commission == Decimal("100")

    def test_invalid_status(self, db_session, shop):
        txn = _txn(shop)
        with pytest.raises(ValidationError):
            mobile.update_transaction(shop_id=shop.id, transaction_id=txn.id, payload={"status": "REVERSED"})

    def test_empty_patch(self, db_session, shop):
        txn = _txn(shop)
        with pytest.raises(ValidationError):
            mobile.update_transaction(shop_id=shop.id, transaction_id=txn.id, payload={"unknown": 1})

    def test_other_shop_cannot_touch(self, db_session, shop, other_shop):
        txn = _txn(shop)
        with pytest.raises(NotFoundError):
            mobile.update_transaction(shop_id=other_shop.id, transaction_id=txn.id, payload={"status": "FAILED"})
        with pytest.raises(NotFoundError):
            mobile.delete_transaction(shop_id=other_shop.id, transaction_id=txn.id)
        assert db_session.query(MobileService).count() == 1

    def test_delete_is_audited(self, db_session, owner, shop):
        txn = _txn(shop)
        txn_id = txn.id
        mobile.delete_transaction(shop_id=shop.id, transaction_id=txn_id, user_id=owner.id)

        assert db_session.query(MobileService).count() == 0
        entry = db_session.query(AuditLog).filter_by(table_name="MobileService", action="DELETE").one()
        assert entry.record_id == str(txn_id)
        assert entry.old_values["service_type"] == "EASYPAISA_CASHOUT"


class TestListTransactions:

    def test_filters_search_and_order(self, db_session, shop, other_shop):
        first = _txn(shop, customer_name="Ali Raza", transaction_date=datetime(2026, 10, 1, 9, 0))
        second = _txn(
            shop,
            service_type="MOBILE_LOAD",
            load_provider="JAZZ",
            amount=300,
            phone_number="03451112222",
            transaction_date=datetime(2026, 10, 3, 18, 30),
        )
        _txn(other_shop, customer_name="Ali Raza")

        result = mobile.list_transactions(shop_id=shop.id)
        assert [row["id"] for row in result["transactions"]] == [second.id, first.id]
        assert result["pagination"] == {"page": 1, "limit": 20, "total": 2, "pages": 1}

        by_type = mobile.list_transactions(shop_id=shop.id, service_type="MOBILE_LOAD")
        assert [row["id"] for row in by_type["transactions"]] == [second.id]

        by_search = mobile.list_transactions(shop_id=shop.id, search="ali")
        assert [row["id"] for row in by_search["transactions"]] == [first.id]

        by_phone = mobile.list_transactions(shop_id=shop.id, search="0345")
        assert [row["id"] for row in by_phone["transactions"]] == [second.id]

        # end date covers the whole day
        by_day = mobile.list_transactions(shop_id=shop.id, start=date(2026, 10, 3), end=date(2026, 10, 3))
        assert [row["id"] for row in by_day["transactions"]] == [second.id]

    def test_pages(self, db_session, shop):
        for day in (1, 2, 3):
            _txn(shop, transaction_date=datetime(2026, 10, day))
        page = mobile.list_transactions(shop_id=shop.id, page=2, limit=2)
        assert page["pagination"]["total"] == 3
        assert page["pagination"]["pages"] == 2
        assert len(page["transactions"]) == 1

    def test_invalid_filters(self, db_session, shop):
        with pytest.raises(ValidationError):
            mobile.list_transactions(shop_id=shop.id, service_type="CRYPTO")
        with pytest.raises(ValidationError):
            mobile.list_transactions(shop_id=shop.id, status="DONE")


class TestMobileServicesApi:

    def test_worker_records_owner_deletes(self, client, login, owner, worker, shop):
        headers = login(worker)
        response = client.post(
            "/api/mobile-services",
            json={"service_type": "JAZZCASH_CASHIN", "amount": 2000, "customer_name": "Sana"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json["message"] == "Transaction created successfully"
        txn = response.json["transaction"]
        assert txn["commission"] == 20.0
        assert txn["created_by"]["email"] == worker.email

        response = client.patch(f"/api/mobile-services/{txn['id']}", json={"discount": 5}, headers=headers)
        assert response.status_code == 200
        assert response.json["transaction"]["net_commission"] == 15.0

        listing = client.get("/api/mobile-services?search=sana", headers=headers)
        assert listing.status_code == 200
        assert listing.json["pagination"]["total"] == 1

        response = client.delete(f"/api/mobile-services/{txn['id']}", headers=headers)
        assert response.status_code == 403
        assert response.json["required_permission"] == "DELETE_MOBILE_SERVICE"

        response = client.delete(f"/api/mobile-services/{txn['id']}", headers=login(owner))
        assert response.status_code == 200

    def test_validation_and_tenancy(self, client, login, worker, other_owner, shop, other_shop):
        headers = login(worker)
        response = client.post("/api/mobile-services", json={"service_type": "MOBILE_LOAD", "amount": 100}, headers=headers)
        assert response.status_code == 400

        response = client.post(
            "/api/mobile-services",
            json={"service_type": "BILL_PAYMENT", "amount": 1500, "transaction_date": "yesterday"},
            headers=headers,
        )
        assert response.status_code == 400

        txn_id = client.post(
            "/api/mobile-services", json={"service_type": "BILL_PAYMENT", "amount": 1500}, headers=headers
        ).json["transaction"]["id"]

        foreign = login(other_owner)
        assert client.get("/api/mobile-services", headers=foreign).json["pagination"]["total"] == 0
        assert client.patch(f"/api/mobile-services/{txn_id}", json={"status": "FAILED"}, headers=foreign).status_code == 404
        assert client.delete(f"/api/mobile-services/{txn_id}", headers=foreign).status_code == 404

    def test_token_required(self, client, db_session):
        assert client.get("/api/mobile-services").status_code == 401
