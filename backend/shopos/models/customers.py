from __future__ import annotations

from ..extensions import db
from shopos.time_utils import to_utc_z
from shopos.validation import money


class Customer(db.Model):
    """
    Shop customer (walk-in sales have no customer).

    total_purchases / last_purchase_at are denormalized and updated inside
    the checkout transaction.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_shop_phone", "shop_id", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    # National identity card number, required by shops for installment plans
    cnic = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)

    total_purchases = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    last_purchase_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "cnic": self.cnic,
            "address": self.address,
            "total_purchases": money(self.total_purchases),
            "last_purchase_at": to_utc_z(self.last_purchase_at),
            "created_at": to_utc_z(self.created_at),
        }
