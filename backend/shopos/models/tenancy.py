from __future__ import annotations

from ..extensions import db
from shopos.time_utils import to_utc_z


class Shop(db.Model):
    """
    Shop within the chain.

    MULTI-TENANT: Every product, unit, sale, customer and loan carries shop_id.
    A shop has exactly one owner; workers are attached through ShopWorker.
    """
    __tablename__ = "shops"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # ACTIVE, INACTIVE
    status = db.Column(db.String(16), nullable=False, default="ACTIVE", index=True)

    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    owner = db.relationship("User", backref=db.backref("owned_shops", lazy=True, order_by="Shop.id"))

    def __repr__(self) -> str:
        return f"<Shop id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "owner_id": self.owner_id,
            "status": self.status,
            "address": self.address,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
        }


class ShopWorker(db.Model):
    """Assignment of a SHOP_WORKER user to a shop."""
    __tablename__ = "shop_workers"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "user_id", name="uq_shop_workers_shop_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shop = db.relationship("Shop", backref=db.backref("workers", lazy=True))
    user = db.relationship("User", backref=db.backref("worker_assignments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "user_id": self.user_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
