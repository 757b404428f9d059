from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from shopos.time_utils import to_utc_z
from shopos.validation import money


SALE_PENDING = "PENDING"
SALE_COMPLETED = "COMPLETED"
SALE_CANCELLED = "CANCELLED"
SALE_RETURNED = "RETURNED"

VALID_SALE_STATUSES = (SALE_PENDING, SALE_COMPLETED, SALE_CANCELLED, SALE_RETURNED)

PAYMENT_COMPLETED = "COMPLETED"
PAYMENT_PENDING = "PENDING"
PAYMENT_FAILED = "FAILED"
PAYMENT_REFUNDED = "REFUNDED"

VALID_PAYMENT_STATUSES = (PAYMENT_COMPLETED, PAYMENT_PENDING, PAYMENT_FAILED, PAYMENT_REFUNDED)


class CartItem(db.Model):
    """
    Per-user, per-shop staging row for the POS.

    Persisted so the cart survives across requests and devices. The price is
    NOT stored here; it is read from Product until checkout snapshots it.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", "shop_id", name="uq_cart_items_user_product_shop"),
        db.CheckConstraint("quantity >= 1", name="quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    added_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        unit_price = self.product.selling_price if self.product else Decimal("0")
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "quantity": self.quantity,
            "unit_price": money(unit_price),
            "total_price": money(unit_price * self.quantity),
            "added_at": to_utc_z(self.added_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Sale(db.Model):
    """
    Completed POS transaction header.

    Invariant: total_amount = subtotal - discount_amount + tax_amount.
    Only status and notes change after creation.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "invoice_number", name="uq_sales_shop_invoice"),
        db.Index("ix_sales_shop_status_date", "shop_id", "status", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Human-readable, e.g. "INV-20261017-007"
    invoice_number = db.Column(db.String(64), nullable=False)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=SALE_COMPLETED, index=True)
    notes = db.Column(db.Text, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop")
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    seller = db.relationship("User")
    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )
    payments = db.relationship(
        "Payment",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    @property
    def paid_amount(self) -> Decimal:
        return sum(
            (p.amount for p in self.payments if p.status == PAYMENT_COMPLETED),
            Decimal("0"),
        )

    @property
    def due_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    def to_dict(self, include_items: bool = False, include_payments: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else "Walk-in Customer",
            "seller_id": self.seller_id,
            "invoice_number": self.invoice_number,
            "subtotal": money(self.subtotal),
            "discount_amount": money(self.discount_amount),
            "tax_amount": money(self.tax_amount),
            "total_amount": money(self.total_amount),
            "paid_amount": money(self.paid_amount),
            "due_amount": money(self.due_amount),
            "payment_method": self.payment_method,
            "status": self.status,
            "notes": self.notes,
            "sale_date": to_utc_z(self.sale_date),
            "items_count": len(self.items),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        if include_payments:
            data["payments"] = [p.to_dict() for p in self.payments]
        return data


class SaleItem(db.Model):
    """Line item; unit_price is a snapshot taken at checkout."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "total_price": money(self.total_price),
        }


class Payment(db.Model):
    """
    Money received against a sale.

    A sale may carry several payments (split, partial, refunded); paid and
    due amounts are derived from COMPLETED payments, never stored.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_date_method", "payment_date", "method"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    method = db.Column(db.String(32), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=PAYMENT_COMPLETED, index=True)

    transaction_id = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "amount": money(self.amount),
            "method": self.method,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "notes": self.notes,
            "payment_date": to_utc_z(self.payment_date),
        }
