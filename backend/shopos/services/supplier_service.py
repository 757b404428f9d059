# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

Suppliers are scoped to a shop. Every purchase names exactly one supplier,
and units received from a purchase carry its supplier_id.

Suppliers are never hard-deleted; deactivating one keeps purchase history
intact and hides it from new purchases.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from ..validation import NotFoundError, ValidationError
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log


def get_supplier(*, shop_id: int, supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, shop_id=shop_id).first()
    if not supplier:
        raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
    return supplier


def create_supplier(
    *,
    shop_id: int,
    name: str,
    contact_person: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    address: str | None = None,
    user_id: int | None = None,
) -> Supplier:
    if not name or not name.strip():
        raise ValidationError("Supplier name is required")

    supplier = Supplier(
        shop_id=shop_id,
        name=name.strip(),
        contact_person=contact_person,
        phone=phone,
        email=email,
        address=address,
        is_active=True,
    )
    db.session.add(supplier)
    db.session.flush()

    append_audit_log(
        action=ACTION_CREATE,
        table_name="Supplier",
        record_id=supplier.id,
        user_id=user_id,
        shop_id=shop_id,
        new_values={"name": supplier.name},
    )
    db.session.commit()
    return supplier


def update_supplier(
    *,
    shop_id: int,
    supplier_id: int,
    name: str | None = None,
    contact_person: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    address: str | None = None,
    is_active: bool | None = None,
    user_id: int | None = None,
) -> Supplier:
    supplier = get_supplier(shop_id=shop_id, supplier_id=supplier_id)
    changes = {}

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Supplier name cannot be empty")
        changes["name"] = name
    if contact_person is not None:
        changes["contact_person"] = contact_person
    if phone is not None:
        changes["phone"] = phone
    if email is not None:
        changes["email"] = email
    if address is not None:
        changes["address"] = address
    if is_active is not None:
        changes["is_active"] = bool(is_active)

    if not changes:
        raise ValidationError("No updatable fields provided")

    old_values = {key: getattr(supplier, key) for key in changes}
    for key, value in changes.items():
        setattr(supplier, key, value)

    append_audit_log(
        action=ACTION_UPDATE,
        table_name="Supplier",
        record_id=supplier.id,
        user_id=user_id,
        shop_id=shop_id,
        old_values=old_values,
        new_values=changes,
    )
    db.session.commit()
    return supplier


def list_suppliers(*, shop_id: int, include_inactive: bool = False) -> list[Supplier]:
    q = db.session.query(Supplier).filter(Supplier.shop_id == shop_id)
    if not include_inactive:
        q = q.filter(Supplier.is_active.is_(True))
    return q.order_by(Supplier.name.asc(), Supplier.id.asc()).all()
