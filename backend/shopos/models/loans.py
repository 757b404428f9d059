from __future__ import annotations

from ..extensions import db
from shopos.time_utils import to_utc_z
from shopos.validation import money


LOAN_ACTIVE = "ACTIVE"
LOAN_COMPLETED = "COMPLETED"
LOAN_DEFAULTED = "DEFAULTED"
LOAN_CANCELLED = "CANCELLED"

VALID_LOAN_STATUSES = (LOAN_ACTIVE, LOAN_COMPLETED, LOAN_DEFAULTED, LOAN_CANCELLED)

INSTALLMENT_PENDING = "PENDING"
INSTALLMENT_PARTIAL = "PARTIAL"
INSTALLMENT_PAID = "PAID"
INSTALLMENT_OVERDUE = "OVERDUE"


class Loan(db.Model):
    """
    Installment plan for a customer.

    paid_amount, remaining_amount and paid_installments are aggregates of the
    installment rows and are recomputed on every installment payment.
    """
    __tablename__ = "loans"
    __table_args__ = (
        db.Index("ix_loans_shop_status_due", "shop_id", "status", "next_due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    loan_number = db.Column(db.String(64), nullable=False, unique=True)

    principal_amount = db.Column(db.Numeric(12, 2), nullable=False)
    interest_rate = db.Column(db.Numeric(6, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    remaining_amount = db.Column(db.Numeric(12, 2), nullable=False)
    installment_amount = db.Column(db.Numeric(12, 2), nullable=False)

    total_installments = db.Column(db.Integer, nullable=False)
    paid_installments = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=LOAN_ACTIVE, index=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    next_due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("loans", lazy=True))
    installments = db.relationship(
        "LoanInstallment",
        backref="loan",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="LoanInstallment.installment_no",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_installments: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "loan_number": self.loan_number,
            "principal_amount": money(self.principal_amount),
            "interest_rate": money(self.interest_rate),
            "total_amount": money(self.total_amount),
            "paid_amount": money(self.paid_amount),
            "remaining_amount": money(self.remaining_amount),
            "installment_amount": money(self.installment_amount),
            "total_installments": self.total_installments,
            "paid_installments": self.paid_installments,
            "status": self.status,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "next_due_date": to_utc_z(self.next_due_date),
        }
        if include_installments:
            data["installments"] = [i.to_dict() for i in self.installments]
        return data


class LoanInstallment(db.Model):
    __tablename__ = "loan_installments"
    __table_args__ = (
        db.UniqueConstraint("loan_id", "installment_no", name="uq_loan_installments_loan_no"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey("loans.id"), nullable=False, index=True)
    installment_no = db.Column(db.Integer, nullable=False)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    paid_date = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=INSTALLMENT_PENDING)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "loan_id": self.loan_id,
            "installment_no": self.installment_no,
            "amount": money(self.amount),
            "due_date": to_utc_z(self.due_date),
            "paid_amount": money(self.paid_amount),
            "paid_date": to_utc_z(self.paid_date),
            "status": self.status,
        }
