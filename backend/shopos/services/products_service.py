# backend/shopos/services/products_service.py
"""
Products Service

MULTI-TENANT: Every operation takes shop_id; a product id from another shop
behaves exactly like a missing product (NotFoundError).

Prices on Product are current prices only. Changing selling_price never
touches SaleItem rows, which keep the price captured at checkout.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError, require_fields, to_decimal
from .audit_service import ACTION_CREATE, ACTION_UPDATE, append_audit_log
from .inventory_service import ensure_product_in_shop, stock_levels

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "brand", "category", "description",
    "selling_price", "cost_price", "status", "low_stock_threshold",
}
PRODUCT_STATUSES = ("ACTIVE", "INACTIVE")


def _clean_patch(payload: dict) -> dict:
    patch = {}
    for key, value in payload.items():
        if key not in PRODUCT_MUTABLE_FIELDS:
            continue
        if key in ("selling_price", "cost_price"):
            value = to_decimal(value, key)
        elif key == "status":
            if value not in PRODUCT_STATUSES:
                raise ValidationError(f"Invalid status: {value}. Must be one of {list(PRODUCT_STATUSES)}")
        elif key == "low_stock_threshold":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError("low_stock_threshold must be a non-negative integer")
        elif key in ("name", "sku"):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{key} cannot be empty")
            value = value.strip()
        patch[key] = value
    return patch


def _sku_taken(shop_id: int, sku: str, exclude_id: int | None = None) -> bool:
    q = db.session.query(Product.id).filter(Product.shop_id == shop_id, Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def create_product(*, shop_id: int, payload: dict, user_id: int | None = None) -> Product:
    require_fields(payload, "name", "sku", "selling_price")
    patch = _clean_patch(payload)

    if _sku_taken(shop_id, patch["sku"]):
        raise ConflictError(f"SKU '{patch['sku']}' already exists")

    product = Product(shop_id=shop_id, **patch)
    db.session.add(product)
    try:
        db.session.flush()
        append_audit_log(
            action=ACTION_CREATE,
            table_name="Product",
            record_id=product.id,
            user_id=user_id,
            shop_id=shop_id,
            new_values=patch,
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"SKU '{patch['sku']}' already exists")
    return product


def update_product(*, shop_id: int, product_id: int, payload: dict, user_id: int | None = None) -> Product:
    product = ensure_product_in_shop(shop_id, product_id)
    patch = _clean_patch(payload)
    if not patch:
        raise ValidationError("No updatable fields provided")

    if "sku" in patch and _sku_taken(shop_id, patch["sku"], exclude_id=product.id):
        raise ConflictError(f"SKU '{patch['sku']}' already exists")

    old_values = {key: getattr(product, key) for key in patch}
    for key, value in patch.items():
        setattr(product, key, value)

    append_audit_log(
        action=ACTION_UPDATE,
        table_name="Product",
        record_id=product.id,
        user_id=user_id,
        shop_id=shop_id,
        old_values=old_values,
        new_values=patch,
    )
    db.session.commit()
    return product


def get_product(*, shop_id: int, product_id: int) -> dict:
    product = ensure_product_in_shop(shop_id, product_id)
    data = product.to_dict()
    data["in_stock"] = stock_levels(shop_id, [product.id]).get(product.id, 0)
    return data


def list_products(
    *,
    shop_id: int,
    search: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    q = db.session.query(Product).filter(Product.shop_id == shop_id)
    if status:
        q = q.filter(Product.status == status)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.brand.ilike(like),
        ))

    total = q.count()
    products = q.order_by(Product.name.asc(), Product.id.asc()).offset((page - 1) * limit).limit(limit).all()
    levels = stock_levels(shop_id, [p.id for p in products])

    items = []
    for product in products:
        row = product.to_dict()
        row["in_stock"] = levels.get(product.id, 0)
        items.append(row)

    return {
        "items": items,
        "count": len(items),
        "page": page,
        "limit": limit,
        "total": total,
    }
