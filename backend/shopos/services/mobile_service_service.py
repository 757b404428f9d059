# Overview: Service-layer operations for mobile-wallet and bill payment counter transactions.

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..models import MobileService
from ..models.mobile_services import (
    SERVICE_BANK_TRANSFER,
    SERVICE_BILL_PAYMENT,
    SERVICE_EASYPAISA_CASHIN,
    SERVICE_EASYPAISA_CASHOUT,
    SERVICE_JAZZCASH_CASHIN,
    SERVICE_JAZZCASH_CASHOUT,
    SERVICE_MOBILE_LOAD,
    TRANSACTION_COMPLETED,
    VALID_LOAD_PROVIDERS,
    VALID_SERVICE_TYPES,
    VALID_TRANSACTION_STATUSES,
)
from ..validation import NotFoundError, ValidationError, require_fields, round_cents, to_decimal
from shopos.time_utils import day_bounds, utcnow
from .audit_service import ACTION_CREATE, ACTION_DELETE, ACTION_UPDATE, append_audit_log

# Shop commission per 1000 of transaction amount
COMMISSION_RATES = {
    SERVICE_EASYPAISA_CASHIN: Decimal("10"),
    SERVICE_EASYPAISA_CASHOUT: Decimal("20"),
    SERVICE_JAZZCASH_CASHIN: Decimal("10"),
    SERVICE_JAZZCASH_CASHOUT: Decimal("20"),
    SERVICE_BANK_TRANSFER: Decimal("20"),
    SERVICE_MOBILE_LOAD: Decimal("26"),
    SERVICE_BILL_PAYMENT: Decimal("10"),
}

THOUSAND = Decimal("1000")

TEXT_FIELDS = ("customer_name", "phone_number", "reference_id", "notes")


def commission_for(amount: Decimal, rate: Decimal) -> Decimal:
    return round_cents(amount / THOUSAND * rate)


def calculate_commission(service_type: str, amount: Decimal) -> tuple[Decimal, Decimal]:
    """(rate, commission) using the default rate for service_type."""
    if service_type not in COMMISSION_RATES:
        raise ValidationError(f"Invalid service_type: {service_type}. Must be one of {list(VALID_SERVICE_TYPES)}")
    rate = COMMISSION_RATES[service_type]
    return rate, commission_for(amount, rate)


def _positive_amount(value, field: str) -> Decimal:
    amount = to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return amount


def _net(commission: Decimal, discount: Decimal) -> Decimal:
    if discount > commission:
        raise ValidationError(
            "Discount cannot exceed the commission",
            details={"commission": float(commission), "discount": float(discount)},
        )
    return commission - discount


def _text(payload: dict) -> dict:
    cleaned = {}
    for key in TEXT_FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        cleaned[key] = value.strip() if value and value.strip() else None
    return cleaned


def get_transaction(*, shop_id: int, transaction_id: int) -> MobileService:
    txn = db.session.query(MobileService).filter_by(id=transaction_id, shop_id=shop_id).first()
    if not txn:
        raise NotFoundError("Transaction not found", details={"transaction_id": transaction_id})
    return txn


def create_transaction(*, shop_id: int, payload: dict, user_id: int | None = None, transaction_date=None) -> MobileService:
    """
    Record a counter transaction with COMPLETED status.

    The commission comes from the default rate for the service type unless
    commission_rate is given. MOBILE_LOAD needs a load_provider; other
    service types never store one.
    """
    require_fields(payload, "service_type", "amount")
    service_type = payload["service_type"]
    if service_type not in VALID_SERVICE_TYPES:
        raise ValidationError(f"Invalid service_type: {service_type}. Must be one of {list(VALID_SERVICE_TYPES)}")

    load_provider = None
    if service_type == SERVICE_MOBILE_LOAD:
        load_provider = payload.get("load_provider")
        if not load_provider:
            raise ValidationError("Load provider is required for mobile load service")
        if load_provider not in VALID_LOAD_PROVIDERS:
            raise ValidationError(f"Invalid load_provider: {load_provider}. Must be one of {list(VALID_LOAD_PROVIDERS)}")

    amount = _positive_amount(payload["amount"], "amount")
    if payload.get("commission_rate") is not None:
        rate = to_decimal(payload["commission_rate"], "commission_rate")
        commission = commission_for(amount, rate)
    else:
        rate, commission = calculate_commission(service_type, amount)
    discount = to_decimal(payload.get("discount") or 0, "discount")

    txn = MobileService(
        shop_id=shop_id,
        service_type=service_type,
        load_provider=load_provider,
        amount=amount,
        commission_rate=rate,
        commission=commission,
        discount=discount,
        net_commission=_net(commission, discount),
        status=TRANSACTION_COMPLETED,
        transaction_date=transaction_date or utcnow(),
        created_by_user_id=user_id,
        **_text(payload),
    )
    db.session.add(txn)
    db.session.flush()
    append_audit_log(
        action=ACTION_CREATE,
        table_name="MobileService",
        record_id=txn.id,
        user_id=user_id,
        shop_id=shop_id,
        new_values={
            "service_type": service_type,
            "amount": amount,
            "commission": commission,
            "net_commission": txn.net_commission,
        },
    )
    db.session.commit()
    return txn


def update_transaction(*, shop_id: int, transaction_id: int, payload: dict, user_id: int | None = None) -> MobileService:
    """Edit amounts, status or text fields; commission is recomputed at the stored rate."""
    txn = get_transaction(shop_id=shop_id, transaction_id=transaction_id)

    patch = _text(payload)
    if payload.get("status") is not None:
        if payload["status"] not in VALID_TRANSACTION_STATUSES:
            raise ValidationError(
                f"Invalid status: {payload['status']}. Must be one of {list(VALID_TRANSACTION_STATUSES)}"
            )
        patch["status"] = payload["status"]

    amount = _positive_amount(payload["amount"], "amount") if payload.get("amount") is not None else txn.amount
    discount = to_decimal(payload["discount"], "discount") if payload.get("discount") is not None else txn.discount
    if amount != txn.amount or discount != txn.discount:
        commission = commission_for(amount, txn.commission_rate)
        patch.update({
            "amount": amount,
            "discount": discount,
            "commission": commission,
            "net_commission": _net(commission, discount),
        })
    if not patch:
        raise ValidationError("No updatable fields provided")

    old_values = {key: getattr(txn, key) for key in patch}
    for key, value in patch.items():
        setattr(txn, key, value)

    append_audit_log(
        action=ACTION_UPDATE,
        table_name="MobileService",
        record_id=txn.id,
        user_id=user_id,
        shop_id=shop_id,
        old_values=old_values,
        new_values=patch,
    )
    db.session.commit()
    return txn


def delete_transaction(*, shop_id: int, transaction_id: int, user_id: int | None = None) -> None:
    txn = get_transaction(shop_id=shop_id, transaction_id=transaction_id)
    snapshot = {
        "service_type": txn.service_type,
        "amount": txn.amount,
        "net_commission": txn.net_commission,
        "status": txn.status,
    }
    db.session.delete(txn)
    append_audit_log(
        action=ACTION_DELETE,
        table_name="MobileService",
        record_id=transaction_id,
        user_id=user_id,
        shop_id=shop_id,
        old_values=snapshot,
    )
    db.session.commit()


def list_transactions(
    *,
    shop_id: int,
    service_type: str | None = None,
    status: str | None = None,
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Newest first. end is inclusive of the whole day."""
    if service_type and service_type not in VALID_SERVICE_TYPES:
        raise ValidationError(f"Invalid service_type: {service_type}. Must be one of {list(VALID_SERVICE_TYPES)}")
    if status and status not in VALID_TRANSACTION_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {list(VALID_TRANSACTION_STATUSES)}")

    q = db.session.query(MobileService).filter(MobileService.shop_id == shop_id)
    if service_type:
        q = q.filter(MobileService.service_type == service_type)
    if status:
        q = q.filter(MobileService.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            MobileService.customer_name.ilike(like),
            MobileService.phone_number.ilike(like),
            MobileService.reference_id.ilike(like),
        ))
    if start:
        q = q.filter(MobileService.transaction_date >= day_bounds(start)[0])
    if end:
        q = q.filter(MobileService.transaction_date < day_bounds(end)[1])

    total = q.count()
    rows = (
        q.order_by(MobileService.transaction_date.desc(), MobileService.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "transactions": [t.to_dict() for t in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }
