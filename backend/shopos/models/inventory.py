from __future__ import annotations

from ..extensions import db
from shopos.time_utils import to_utc_z
from shopos.validation import money


ITEM_IN_STOCK = "IN_STOCK"
ITEM_OUT_OF_STOCK = "OUT_OF_STOCK"
ITEM_DAMAGED = "DAMAGED"
ITEM_RETURNED = "RETURNED"

VALID_ITEM_STATUSES = (ITEM_IN_STOCK, ITEM_OUT_OF_STOCK, ITEM_DAMAGED, ITEM_RETURNED)


class Product(db.Model):
    """
    Catalog entry for a shop.

    Prices here are current prices only; sales snapshot the price on SaleItem.
    Stock is never stored on the product, it is counted from InventoryItem rows.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "sku", name="uq_products_shop_sku"),
        db.Index("ix_products_shop_status", "shop_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    brand = db.Column(db.String(120), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=True)

    selling_price = db.Column(db.Numeric(12, 2), nullable=False)
    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # ACTIVE, INACTIVE
    status = db.Column(db.String(16), nullable=False, default="ACTIVE")
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "sku": self.sku,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
            "selling_price": money(self.selling_price),
            "cost_price": money(self.cost_price),
            "status": self.status,
            "low_stock_threshold": self.low_stock_threshold,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryItem(db.Model):
    """
    One physical stock unit (a handset, a charger, ...).

    Stock level = COUNT(*) WHERE status = 'IN_STOCK'. Units are consumed
    oldest-first by purchase_date; sale_id points at the sale that consumed
    the unit so a sale reversal restores exactly those units.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_stock", "shop_id", "product_id", "status", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=ITEM_IN_STOCK, index=True)

    imei = db.Column(db.String(32), nullable=True, index=True)
    serial_number = db.Column(db.String(64), nullable=True)
    batch_number = db.Column(db.String(64), nullable=True)
    cost_price = db.Column(db.Numeric(12, 2), nullable=True)

    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    product = db.relationship("Product", backref=db.backref("inventory_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "product_id": self.product_id,
            "status": self.status,
            "imei": self.imei,
            "serial_number": self.serial_number,
            "batch_number": self.batch_number,
            "cost_price": money(self.cost_price),
            "purchase_date": to_utc_z(self.purchase_date),
            "purchase_id": self.purchase_id,
            "supplier_id": self.supplier_id,
            "sale_id": self.sale_id,
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_shop_active", "shop_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "name": self.name,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Purchase(db.Model):
    """
    Purchase order from a supplier.

    Receiving a purchase creates InventoryItem rows; until then the stock
    does not exist for the POS.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "invoice_number", name="uq_purchases_shop_invoice"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False)

    # PENDING, PARTIAL, RECEIVED, CANCELLED
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    due_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False)
    received_date = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))
    items = db.relationship(
        "PurchaseItem",
        backref="purchase",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "supplier_id": self.supplier_id,
            "invoice_number": self.invoice_number,
            "status": self.status,
            "total_amount": money(self.total_amount),
            "paid_amount": money(self.paid_amount),
            "due_amount": money(self.due_amount),
            "notes": self.notes,
            "purchase_date": to_utc_z(self.purchase_date),
            "received_date": to_utc_z(self.received_date),
            "created_by_user_id": self.created_by_user_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_cost = db.Column(db.Numeric(12, 2), nullable=False)
    total_cost = db.Column(db.Numeric(12, 2), nullable=False)
    received_quantity = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_id": self.purchase_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_cost": money(self.unit_cost),
            "total_cost": money(self.total_cost),
            "received_quantity": self.received_quantity,
        }
