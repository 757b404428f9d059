# Overview: Flask API routes for payments operations; parses input and returns JSON responses.

# backend/shopos/routes/payments.py
"""
Payment API routes

- GET  /api/payments               list (method, status, start_date, end_date, sale_id)
- POST /api/payments               add a payment to a sale
- POST /api/payments/<id>/refund   COMPLETED -> REFUNDED
- POST /api/payments/reconcile     daily reconciliation {date}
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models.auth import ROLE_SUPER_ADMIN
from ..services import payment_service
from ..validation import (
    ShopError,
    ShopResolutionError,
    ValidationError,
    optional_int,
    to_positive_int,
)
from shopos.time_utils import parse_iso_date


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _require_shop_id() -> int:
    if not g.shop_id:
        raise ShopResolutionError("No shop assigned")
    return g.shop_id


def _parse_date(value, field: str):
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)")


@payments_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_payments_route():
    try:
        payments = payment_service.list_payments(
            shop_id=_require_shop_id(),
            method=request.args.get("method"),
            status=request.args.get("status"),
            start=_parse_date(request.args.get("start_date"), "start_date"),
            end=_parse_date(request.args.get("end_date"), "end_date"),
            sale_id=optional_int(request.args.get("sale_id"), "sale_id"),
            limit=max(1, min(request.args.get("limit", default=100, type=int) or 100, 500)),
        )
        return jsonify({"payments": [p.to_dict() for p in payments], "count": len(payments)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list payments")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("")
@require_auth
@require_permission("RECORD_PAYMENT")
def add_payment_route():
    """
    Body:
    {
        "sale_id": 1,
        "amount": 500,
        "method": "CARD",
        "transaction_id": "...",   // optional
        "notes": "..."             // optional
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        if data.get("amount") is None or not data.get("method"):
            raise ValidationError("sale_id, amount and method are required")

        payment = payment_service.add_payment(
            shop_id=_require_shop_id(),
            sale_id=to_positive_int(data.get("sale_id"), "sale_id"),
            amount=data.get("amount"),
            method=data.get("method"),
            user_id=g.current_user.id,
            transaction_id=data.get("transaction_id"),
            notes=data.get("notes"),
        )
        summary = payment_service.payment_summary(payment.sale)
        return jsonify({"payment": payment.to_dict(), "summary": summary}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/<int:payment_id>/refund")
@require_auth
@require_permission("REFUND_PAYMENT")
def refund_payment_route(payment_id: int):
    try:
        data = request.get_json(silent=True) or {}
        payment = payment_service.refund_payment(
            shop_id=_require_shop_id(),
            payment_id=payment_id,
            user_id=g.current_user.id,
            reason=data.get("reason"),
        )
        summary = payment_service.payment_summary(payment.sale)
        return jsonify({"payment": payment.to_dict(), "summary": summary}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to refund payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/reconcile")
@require_auth
@require_permission("RECONCILE_PAYMENTS")
def reconcile_route():
    """
    Body: {"date": "YYYY-MM-DD"}

    Shop owners reconcile their own shop; super admins reconcile every shop.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("date"):
            raise ValidationError("Date is required")
        day = _parse_date(data.get("date"), "date")

        shop_id = None if g.role == ROLE_SUPER_ADMIN else _require_shop_id()
        result = payment_service.reconcile(shop_id=shop_id, day=day)
        return jsonify(result), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reconcile payments")
        return jsonify({"error": "Internal server error"}), 500
