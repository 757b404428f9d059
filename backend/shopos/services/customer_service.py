# Overview: Service-layer operations for customers.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer
from ..validation import NotFoundError, ValidationError, require_fields
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log

CUSTOMER_MUTABLE_FIELDS = {"name", "phone", "email", "cnic", "address"}


def _clean(payload: dict) -> dict:
    patch = {}
    for key, value in payload.items():
        if key not in CUSTOMER_MUTABLE_FIELDS:
            continue
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        value = value.strip() if value else None
        if key == "name" and not value:
            raise ValidationError("name cannot be empty")
        if key == "email" and value and "@" not in value:
            raise ValidationError("email is not valid")
        patch[key] = value
    return patch


def get_customer(*, shop_id: int, customer_id: int) -> Customer:
    customer = db.session.query(Customer).filter_by(id=customer_id, shop_id=shop_id).first()
    if not customer:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer


def create_customer(*, shop_id: int, payload: dict, user_id: int | None = None) -> Customer:
    require_fields(payload, "name")
    patch = _clean(payload)

    customer = Customer(shop_id=shop_id, **patch)
    db.session.add(customer)
    db.session.flush()
    append_audit_log(
        action=ACTION_CREATE,
        table_name="Customer",
        record_id=customer.id,
        user_id=user_id,
        shop_id=shop_id,
        new_values=patch,
    )
    db.session.commit()
    return customer


def update_customer(*, shop_id: int, customer_id: int, payload: dict, user_id: int | None = None) -> Customer:
    customer = get_customer(shop_id=shop_id, customer_id=customer_id)
    patch = _clean(payload)
    if not patch:
        raise ValidationError("No updatable fields provided")

    old_values = {key: getattr(customer, key) for key in patch}
    for key, value in patch.items():
        setattr(customer, key, value)

    append_audit_log(
        action=ACTION_UPDATE,
        table_name="Customer",
        record_id=customer.id,
        user_id=user_id,
        shop_id=shop_id,
        old_values=old_values,
        new_values=patch,
    )
    db.session.commit()
    return customer


def list_customers(*, shop_id: int, search: str | None = None, limit: int = 50, offset: int = 0) -> list[Customer]:
    q = db.session.query(Customer).filter(Customer.shop_id == shop_id)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
            Customer.cnic.ilike(like),
        ))
    return q.order_by(Customer.name.asc(), Customer.id.asc()).offset(offset).limit(limit).all()
