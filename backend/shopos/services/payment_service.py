# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Service

DESIGN PRINCIPLES:
- Payments are separate from sales (many-to-one relationship)
- Split and partial payments: one sale can have several payments
- paid / due are derived from COMPLETED payments, never stored
- Refunds flip a COMPLETED payment to REFUNDED; rows are never deleted here
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from ..extensions import db
from ..models import Payment, Sale
from ..models.sales import (
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_PENDING,
    PAYMENT_REFUNDED,
    SALE_CANCELLED,
    VALID_PAYMENT_STATUSES,
)
from ..validation import ConflictError, NotFoundError, ValidationError, money, to_decimal
from shopos.time_utils import day_bounds, to_utc_z, utcnow
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log
from .concurrency import lock_for_update, run_in_transaction


# =============================================================================
# PAYMENT METHODS (CONSTANTS)
# =============================================================================

METHOD_CASH = "CASH"
METHOD_CARD = "CARD"
METHOD_BANK_TRANSFER = "BANK_TRANSFER"
METHOD_EASYPAISA = "EASYPAISA"
METHOD_JAZZCASH = "JAZZCASH"

KNOWN_METHODS = (METHOD_CASH, METHOD_CARD, METHOD_BANK_TRANSFER, METHOD_EASYPAISA, METHOD_JAZZCASH)

# Reconciliation ignores sub-cent drift
RECONCILE_TOLERANCE = Decimal("0.01")


def normalize_method(method: str | None) -> str:
    """Upper-cased method name; free-form values beyond KNOWN_METHODS are allowed."""
    value = (method or "").strip().upper().replace(" ", "_")
    if not value:
        raise ValidationError("Payment method is required")
    return value


def payment_summary(sale: Sale) -> dict:
    return {
        "sale_id": sale.id,
        "total_amount": money(sale.total_amount),
        "paid_amount": money(sale.paid_amount),
        "due_amount": money(sale.due_amount),
        "payments_count": len(sale.payments),
    }


# =============================================================================
# PAYMENT CREATION / REFUND
# =============================================================================

def add_payment(
    *,
    shop_id: int,
    sale_id: int,
    amount,
    method: str,
    user_id: int | None = None,
    transaction_id: str | None = None,
    notes: str | None = None,
) -> Payment:
    """
    Record a payment against a sale in this shop.

    Raises:
        ValidationError: non-positive amount, or amount above the remaining due
        NotFoundError: sale not in this shop
        ConflictError: sale is CANCELLED
    """
    amount = to_decimal(amount, "amount")
    if amount <= 0:
        raise ValidationError("Payment amount must be positive")
    method = normalize_method(method)

    def _op():
        sale = lock_for_update(
            db.session.query(Sale).filter_by(id=sale_id, shop_id=shop_id)
        ).first()
        if not sale:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})
        if sale.status == SALE_CANCELLED:
            raise ConflictError("Cannot add payment to a CANCELLED sale")

        remaining = sale.due_amount
        if amount > remaining:
            raise ValidationError(
                "Payment amount exceeds remaining balance",
                details={"remaining_amount": money(remaining)},
            )

        payment = Payment(
            sale_id=sale.id,
            amount=amount,
            method=method,
            status=PAYMENT_COMPLETED,
            transaction_id=transaction_id,
            notes=notes,
            payment_date=utcnow(),
        )
        db.session.add(payment)
        db.session.flush()

        append_audit_log(
            action=ACTION_CREATE,
            table_name="Payment",
            record_id=payment.id,
            user_id=user_id,
            shop_id=shop_id,
            new_values={"sale_id": sale.id, "amount": amount, "method": method},
        )
        return payment

    return run_in_transaction(_op)


def refund_payment(*, shop_id: int, payment_id: int, user_id: int | None = None, reason: str | None = None) -> Payment:
    def _op():
        payment = lock_for_update(
            db.session.query(Payment)
            .join(Sale, Sale.id == Payment.sale_id)
            .filter(Payment.id == payment_id, Sale.shop_id == shop_id)
        ).first()
        if not payment:
            raise NotFoundError("Payment not found", details={"payment_id": payment_id})
        if payment.status != PAYMENT_COMPLETED:
            raise ConflictError(f"Only COMPLETED payments can be refunded (status is {payment.status})")

        payment.status = PAYMENT_REFUNDED
        if reason:
            payment.notes = f"{payment.notes}\nRefund: {reason}" if payment.notes else f"Refund: {reason}"

        append_audit_log(
            action=ACTION_UPDATE,
            table_name="Payment",
            record_id=payment.id,
            user_id=user_id,
            shop_id=shop_id,
            old_values={"status": PAYMENT_COMPLETED},
            new_values={"status": PAYMENT_REFUNDED, "reason": reason},
        )
        return payment

    return run_in_transaction(_op)


# =============================================================================
# QUERIES
# =============================================================================

def list_payments(
    *,
    shop_id: int,
    method: str | None = None,
    status: str | None = None,
    start: date | None = None,
    end: date | None = None,
    sale_id: int | None = None,
    limit: int = 100,
) -> list[Payment]:
    if status and status not in VALID_PAYMENT_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_PAYMENT_STATUSES)}")

    q = db.session.query(Payment).join(Sale, Sale.id == Payment.sale_id).filter(Sale.shop_id == shop_id)
    if method:
        q = q.filter(Payment.method == normalize_method(method))
    if status:
        q = q.filter(Payment.status == status)
    if sale_id:
        q = q.filter(Payment.sale_id == sale_id)
    if start:
        q = q.filter(Payment.payment_date >= day_bounds(start)[0])
    if end:
        q = q.filter(Payment.payment_date < day_bounds(end)[1])
    return q.order_by(Payment.payment_date.desc(), Payment.id.desc()).limit(limit).all()


def reconcile(*, shop_id: int | None, day: date) -> dict:
    """
    Daily reconciliation.

    Groups the day's payments by method and status, and lists sales dated
    that day whose COMPLETED payments differ from total_amount by more than
    RECONCILE_TOLERANCE. shop_id=None covers every shop (super admin).
    """
    start, end = day_bounds(day)

    pq = db.session.query(Payment).join(Sale, Sale.id == Payment.sale_id).filter(
        Payment.payment_date >= start,
        Payment.payment_date < end,
    )
    if shop_id is not None:
        pq = pq.filter(Sale.shop_id == shop_id)
    payments = pq.order_by(Payment.payment_date.asc(), Payment.id.asc()).all()

    by_status = {
        PAYMENT_COMPLETED: "completed",
        PAYMENT_PENDING: "pending",
        PAYMENT_FAILED: "failed",
        PAYMENT_REFUNDED: "refunded",
    }
    zero = Decimal("0")
    methods: dict[str, dict] = {}
    for p in payments:
        bucket = methods.setdefault(p.method, {
            "count": 0, "total": zero, "completed": zero,
            "pending": zero, "failed": zero, "refunded": zero,
        })
        bucket["count"] += 1
        bucket["total"] += p.amount
        key = by_status.get(p.status)
        if key:
            bucket[key] += p.amount

    sq = db.session.query(Sale).filter(Sale.sale_date >= start, Sale.sale_date < end)
    if shop_id is not None:
        sq = sq.filter(Sale.shop_id == shop_id)

    discrepancies = []
    for sale in sq.order_by(Sale.id.asc()).all():
        paid = sale.paid_amount
        difference = sale.total_amount - paid
        if abs(difference) > RECONCILE_TOLERANCE:
            discrepancies.append({
                "sale_id": sale.id,
                "invoice_number": sale.invoice_number,
                "sale_total": money(sale.total_amount),
                "total_paid": money(paid),
                "difference": money(difference),
            })

    return {
        "date": day.isoformat(),
        "summary": {
            "total_payments": len(payments),
            "total_amount": money(sum((p.amount for p in payments), zero)),
            "completed_amount": money(sum((p.amount for p in payments if p.status == PAYMENT_COMPLETED), zero)),
            "pending_amount": money(sum((p.amount for p in payments if p.status == PAYMENT_PENDING), zero)),
            "method_summary": {
                method: {k: (v if k == "count" else money(v)) for k, v in bucket.items()}
                for method, bucket in methods.items()
            },
        },
        "discrepancies": discrepancies,
        "payments": [
            {
                "id": p.id,
                "sale_invoice": p.sale.invoice_number,
                "amount": money(p.amount),
                "method": p.method,
                "status": p.status,
                "payment_date": to_utc_z(p.payment_date),
                "transaction_id": p.transaction_id,
            }
            for p in payments
        ],
    }
