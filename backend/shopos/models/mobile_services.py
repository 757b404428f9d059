from __future__ import annotations

from ..extensions import db
from shopos.time_utils import to_utc_z
from shopos.validation import money


SERVICE_EASYPAISA_CASHIN = "EASYPAISA_CASHIN"
SERVICE_EASYPAISA_CASHOUT = "EASYPAISA_CASHOUT"
SERVICE_JAZZCASH_CASHIN = "JAZZCASH_CASHIN"
SERVICE_JAZZCASH_CASHOUT = "JAZZCASH_CASHOUT"
SERVICE_BANK_TRANSFER = "BANK_TRANSFER"
SERVICE_MOBILE_LOAD = "MOBILE_LOAD"
SERVICE_BILL_PAYMENT = "BILL_PAYMENT"

VALID_SERVICE_TYPES = (
    SERVICE_EASYPAISA_CASHIN,
    SERVICE_EASYPAISA_CASHOUT,
    SERVICE_JAZZCASH_CASHIN,
    SERVICE_JAZZCASH_CASHOUT,
    SERVICE_BANK_TRANSFER,
    SERVICE_MOBILE_LOAD,
    SERVICE_BILL_PAYMENT,
)

VALID_LOAD_PROVIDERS = ("JAZZ", "TELENOR", "ZONG", "UFONE")

TRANSACTION_PENDING = "PENDING"
TRANSACTION_COMPLETED = "COMPLETED"
TRANSACTION_FAILED = "FAILED"
TRANSACTION_CANCELLED = "CANCELLED"

VALID_TRANSACTION_STATUSES = (
    TRANSACTION_PENDING,
    TRANSACTION_COMPLETED,
    TRANSACTION_FAILED,
    TRANSACTION_CANCELLED,
)


class MobileService(db.Model):
    """
    Counter transaction for a mobile-wallet, bank transfer, airtime or bill
    payment service. The shop keeps the commission, not the amount.

    commission = amount / 1000 * commission_rate
    net_commission = commission - discount
    """
    __tablename__ = "mobile_services"
    __table_args__ = (
        db.Index("ix_mobile_services_shop_date", "shop_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    service_type = db.Column(db.String(32), nullable=False, index=True)
    # Only set for MOBILE_LOAD
    load_provider = db.Column(db.String(16), nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.String(128), nullable=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    # Per 1000 of amount
    commission_rate = db.Column(db.Numeric(8, 2), nullable=False)
    commission = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    net_commission = db.Column(db.Numeric(12, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=TRANSACTION_COMPLETED, index=True)
    notes = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    created_by = db.relationship("User", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "service_type": self.service_type,
            "load_provider": self.load_provider,
            "customer_name": self.customer_name,
            "phone_number": self.phone_number,
            "reference_id": self.reference_id,
            "amount": money(self.amount),
            "commission_rate": money(self.commission_rate),
            "commission": money(self.commission),
            "discount": money(self.discount),
            "net_commission": money(self.net_commission),
            "status": self.status,
            "notes": self.notes,
            "transaction_date": to_utc_z(self.transaction_date),
            "created_by": {
                "id": self.created_by.id,
                "name": self.created_by.name,
                "email": self.created_by.email,
            } if self.created_by else None,
            "created_at": to_utc_z(self.created_at),
        }
