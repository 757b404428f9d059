# Overview: Service-layer operations for loans; installment plans and their payment ledger.

"""
Loan Service

Installment plans sold against a customer. All amounts are Decimal.

INVARIANTS:
- total_amount = principal * (1 + interest_rate / 100), to the cent
- N installments of installment_amount (cent-rounded); the last installment
  absorbs the rounding remainder so they sum to total_amount exactly
- installment k is due k calendar months after start_date
- Loan paid_amount / remaining_amount / paid_installments / next_due_date are
  recomputed from installment rows on every payment, never incremented
- Loan becomes COMPLETED when every installment is PAID
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Loan, LoanInstallment
from ..models.loans import (
    INSTALLMENT_PAID,
    INSTALLMENT_PARTIAL,
    INSTALLMENT_PENDING,
    LOAN_ACTIVE,
    LOAN_COMPLETED,
    VALID_LOAN_STATUSES,
)
from ..validation import (
    CENT,
    ConflictError,
    NotFoundError,
    ValidationError,
    money,
    round_cents,
    to_decimal,
    to_positive_int,
)
from shopos.time_utils import add_months, day_bounds, utcnow
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log
from .concurrency import lock_for_update, run_in_transaction

MAX_INSTALLMENTS = 120

SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"
SEVERITY_LOW = "LOW"


def build_schedule(total: Decimal, count: int, start: datetime) -> list[dict]:
    """
    Installment rows for a plan; amounts sum to total exactly.

    The base amount is truncated to the cent so the last installment, which
    takes the remainder, is never smaller than the others.
    """
    amount = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    if amount < CENT:
        raise ValidationError(
            "Installment amount must be at least 0.01",
            details={"total_amount": money(total), "total_installments": count},
        )
    schedule = []
    for no in range(1, count + 1):
        schedule.append({
            "installment_no": no,
            "amount": amount if no < count else total - amount * (count - 1),
            "due_date": add_months(start, no),
        })
    return schedule


def _severity(days_past_due: int) -> str:
    if days_past_due > 60:
        return SEVERITY_HIGH
    if days_past_due > 30:
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


def get_loan(*, shop_id: int, loan_id: int, for_update: bool = False) -> Loan:
    q = db.session.query(Loan).filter(Loan.id == loan_id, Loan.shop_id == shop_id)
    if for_update:
        q = lock_for_update(q)
    loan = q.first()
    if not loan:
        raise NotFoundError("Loan not found", details={"loan_id": loan_id})
    return loan


def create_loan(
    *,
    shop_id: int,
    customer_id: int,
    loan_number: str,
    principal_amount,
    total_installments,
    interest_rate=0,
    start_date: datetime | None = None,
    user_id: int | None = None,
) -> Loan:
    """
    Create a loan and its full installment schedule in one transaction.

    Raises:
        ValidationError: bad amounts or installment count
        NotFoundError: customer not in this shop
        ConflictError: loan_number already used
    """
    if not loan_number or not str(loan_number).strip():
        raise ValidationError("loan_number is required")
    loan_number = str(loan_number).strip()
    principal = to_decimal(principal_amount, "principal_amount")
    if principal <= 0:
        raise ValidationError("principal_amount must be greater than 0")
    rate = to_decimal(interest_rate, "interest_rate")
    count = to_positive_int(total_installments, "total_installments")
    if count > MAX_INSTALLMENTS:
        raise ValidationError(f"total_installments cannot exceed {MAX_INSTALLMENTS}")

    start = start_date or utcnow()
    total = round_cents(principal + principal * rate / Decimal("100"))
    schedule = build_schedule(total, count, start)

    def _op():
        customer = db.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()
        if not customer:
            raise NotFoundError("Customer not found", details={"customer_id": customer_id})

        if db.session.query(Loan.id).filter_by(loan_number=loan_number).first():
            raise ConflictError("Loan with this number already exists")

        loan = Loan(
            shop_id=shop_id,
            customer_id=customer.id,
            loan_number=loan_number,
            principal_amount=principal,
            interest_rate=rate,
            total_amount=total,
            paid_amount=Decimal("0"),
            remaining_amount=total,
            installment_amount=schedule[0]["amount"],
            total_installments=count,
            paid_installments=0,
            status=LOAN_ACTIVE,
            start_date=start,
            end_date=add_months(start, count),
            next_due_date=schedule[0]["due_date"],
        )
        for row in schedule:
            loan.installments.append(LoanInstallment(status=INSTALLMENT_PENDING, **row))
        db.session.add(loan)
        try:
            db.session.flush()
        except IntegrityError:
            raise ConflictError("Loan with this number already exists")

        append_audit_log(
            action=ACTION_CREATE,
            table_name="Loan",
            record_id=loan.id,
            user_id=user_id,
            shop_id=shop_id,
            new_values={
                "loan_number": loan_number,
                "customer_id": customer.id,
                "principal_amount": principal,
                "interest_rate": rate,
                "total_amount": total,
                "total_installments": count,
            },
        )
        return loan

    return run_in_transaction(_op)


def _recompute(loan: Loan) -> None:
    installments = loan.installments
    paid = sum((i.paid_amount for i in installments), Decimal("0"))
    unpaid = [i for i in installments if i.status != INSTALLMENT_PAID]

    loan.paid_amount = paid
    loan.remaining_amount = loan.total_amount - paid
    loan.paid_installments = len(installments) - len(unpaid)
    loan.next_due_date = min((i.due_date for i in unpaid), default=None)
    if loan.paid_installments == loan.total_installments:
        loan.status = LOAN_COMPLETED


def record_installment_payment(
    *,
    shop_id: int,
    loan_id: int,
    installment_id: int,
    amount,
    paid_date: datetime | None = None,
    user_id: int | None = None,
) -> LoanInstallment:
    """
    Apply a payment to one installment.

    Partial payments accumulate on the installment (PARTIAL) until it is
    covered (PAID). Paying more than the installment's outstanding amount is
    rejected.
    """
    amount = to_decimal(amount, "amount")
    if amount <= 0:
        raise ValidationError("amount must be greater than 0")

    def _op():
        loan = get_loan(shop_id=shop_id, loan_id=loan_id, for_update=True)
        if loan.status != LOAN_ACTIVE:
            raise ConflictError(f"Cannot record payments on a {loan.status} loan")

        installment = next((i for i in loan.installments if i.id == installment_id), None)
        if installment is None:
            raise NotFoundError("Installment not found", details={"installment_id": installment_id})
        if installment.status == INSTALLMENT_PAID:
            raise ConflictError("Installment already paid")

        outstanding = installment.amount - installment.paid_amount
        if amount > outstanding:
            raise ValidationError(
                "Payment exceeds the installment's outstanding amount",
                details={"outstanding_amount": money(outstanding)},
            )

        old_values = {"status": installment.status, "paid_amount": installment.paid_amount}
        installment.paid_amount = installment.paid_amount + amount
        installment.paid_date = paid_date or utcnow()
        installment.status = INSTALLMENT_PAID if installment.paid_amount >= installment.amount else INSTALLMENT_PARTIAL

        _recompute(loan)

        append_audit_log(
            action=ACTION_UPDATE,
            table_name="LoanInstallment",
            record_id=installment.id,
            user_id=user_id,
            shop_id=shop_id,
            old_values=old_values,
            new_values={
                "status": installment.status,
                "paid_amount": installment.paid_amount,
                "loan_status": loan.status,
                "loan_remaining_amount": loan.remaining_amount,
            },
        )
        return installment

    return run_in_transaction(_op)


def list_loans(
    *,
    shop_id: int,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
    today: date | None = None,
) -> dict:
    if status and status not in VALID_LOAN_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_LOAN_STATUSES)}")

    q = db.session.query(Loan).join(Customer, Customer.id == Loan.customer_id).filter(Loan.shop_id == shop_id)
    if status:
        q = q.filter(Loan.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Loan.loan_number.ilike(like),
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
            Customer.cnic.ilike(like),
        ))

    total = q.count()
    loans = q.order_by(Loan.created_at.desc(), Loan.id.desc()).offset((page - 1) * limit).limit(limit).all()

    sums = db.session.query(
        func.count(Loan.id),
        func.coalesce(func.sum(Loan.total_amount), 0),
        func.coalesce(func.sum(Loan.paid_amount), 0),
        func.coalesce(func.sum(Loan.remaining_amount), 0),
    ).filter(Loan.shop_id == shop_id).one()

    breakdown = db.session.query(
        Loan.status, func.count(Loan.id), func.coalesce(func.sum(Loan.remaining_amount), 0)
    ).filter(Loan.shop_id == shop_id).group_by(Loan.status).all()

    cutoff = day_bounds(today or utcnow().date())[0]
    overdue_count = db.session.query(func.count(Loan.id)).filter(
        Loan.shop_id == shop_id,
        Loan.status == LOAN_ACTIVE,
        Loan.next_due_date < cutoff,
    ).scalar()

    return {
        "loans": [loan.to_dict(include_installments=True) for loan in loans],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
        "stats": {
            "total_loans": int(sums[0] or 0),
            "total_amount": float(sums[1] or 0),
            "total_paid": float(sums[2] or 0),
            "total_remaining": float(sums[3] or 0),
            "overdue_count": int(overdue_count or 0),
            "status_breakdown": [
                {"status": s, "count": int(c), "remaining_amount": float(r or 0)}
                for s, c, r in breakdown
            ],
        },
    }


def overdue_loans(*, shop_id: int, today: date | None = None) -> dict:
    """ACTIVE loans whose next due date is before today, most severe first."""
    today = today or utcnow().date()
    cutoff = day_bounds(today)[0]

    loans = db.session.query(Loan).filter(
        Loan.shop_id == shop_id,
        Loan.status == LOAN_ACTIVE,
        Loan.next_due_date < cutoff,
    ).order_by(Loan.next_due_date.asc(), Loan.id.asc()).all()

    rows = []
    for loan in loans:
        late = [i for i in loan.installments if i.status != INSTALLMENT_PAID and i.due_date < cutoff]
        overdue_amount = sum((i.amount - i.paid_amount for i in late), Decimal("0"))
        days_past_due = (today - loan.next_due_date.date()).days
        row = loan.to_dict()
        row.update({
            "overdue_installments": [i.to_dict() for i in late],
            "overdue_amount": money(overdue_amount),
            "days_past_due": days_past_due,
            "severity": _severity(days_past_due),
        })
        rows.append(row)

    order = {SEVERITY_HIGH: 0, SEVERITY_MEDIUM: 1, SEVERITY_LOW: 2}
    rows.sort(key=lambda r: order[r["severity"]])

    return {
        "overdue_loans": rows,
        "summary": {
            "total_overdue_loans": len(rows),
            "total_overdue_amount": sum(r["overdue_amount"] for r in rows),
            "high_severity": sum(1 for r in rows if r["severity"] == SEVERITY_HIGH),
            "medium_severity": sum(1 for r in rows if r["severity"] == SEVERITY_MEDIUM),
            "low_severity": sum(1 for r in rows if r["severity"] == SEVERITY_LOW),
        },
    }
