# Overview: Service-layer operations for shops and worker assignments.

from __future__ import annotations

from ..extensions import db
from ..models import Shop, ShopWorker, User
from ..models.auth import ROLE_SHOP_OWNER, ROLE_SHOP_WORKER
from ..validation import ConflictError, NotFoundError, ValidationError


def create_shop(
    *,
    name: str,
    code: str,
    owner_id: int,
    address: str | None = None,
    phone: str | None = None,
) -> Shop:
    if not name or not name.strip():
        raise ValidationError("Shop name is required")
    if not code or not code.strip():
        raise ValidationError("Shop code is required")
    code = code.strip().upper()

    owner = db.session.get(User, owner_id)
    if not owner:
        raise NotFoundError("Owner not found")
    if owner.role != ROLE_SHOP_OWNER:
        raise ValidationError("Shop owner must have the SHOP_OWNER role")
    if db.session.query(Shop.id).filter_by(code=code).first():
        raise ConflictError(f"Shop code '{code}' already exists")

    shop = Shop(
        name=name.strip(),
        code=code,
        owner_id=owner.id,
        status="ACTIVE",
        address=address,
        phone=phone,
    )
    db.session.add(shop)
    db.session.commit()
    return shop


def add_worker(*, shop_id: int, user_id: int) -> ShopWorker:
    """Attach a SHOP_WORKER to a shop; re-activates an existing assignment."""
    shop = db.session.get(Shop, shop_id)
    if not shop:
        raise NotFoundError("Shop not found")
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.role != ROLE_SHOP_WORKER:
        raise ValidationError("Only SHOP_WORKER users can be assigned to a shop")

    assignment = db.session.query(ShopWorker).filter_by(shop_id=shop.id, user_id=user.id).first()
    if assignment:
        assignment.is_active = True
    else:
        assignment = ShopWorker(shop_id=shop.id, user_id=user.id, is_active=True)
        db.session.add(assignment)
    db.session.commit()
    return assignment
