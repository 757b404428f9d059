# Overview: Flask API routes for mobile-wallet and bill payment transactions; parses input and returns JSON responses.

"""
Mobile service routes.

Workers record and edit counter transactions (wallet cash-in/cash-out, bank
transfers, airtime loads, bill payments); only owners may delete them.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import mobile_service_service
from ..validation import ShopError, ValidationError, page_args
from shopos.time_utils import parse_iso_date, parse_iso_datetime

mobile_services_bp = Blueprint("mobile_services", __name__, url_prefix="/api/mobile-services")


def _date_arg(name: str):
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")


@mobile_services_bp.get("")
@require_auth
@require_shop
@require_permission("USE_MOBILE_SERVICES")
def list_transactions_route():
    """
    Query params: service_type, status, search (customer name / phone /
    reference), start_date, end_date (YYYY-MM-DD, inclusive), page, limit.
    """
    try:
        page, limit = page_args(request.args)
        result = mobile_service_service.list_transactions(
            shop_id=g.shop_id,
            service_type=request.args.get("service_type"),
            status=request.args.get("status"),
            search=request.args.get("search"),
            start=_date_arg("start_date"),
            end=_date_arg("end_date"),
            page=page,
            limit=limit,
        )
        return jsonify(result), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list mobile service transactions")
        return jsonify({"error": "Internal server error"}), 500


@mobile_services_bp.post("")
@require_auth
@require_shop
@require_permission("USE_MOBILE_SERVICES")
def create_transaction_route():
    """
    Body:
    {
        "service_type": "MOBILE_LOAD",
        "load_provider": "JAZZ",        // MOBILE_LOAD only
        "amount": 500,
        "discount": 0,                  // optional, taken off the commission
        "commission_rate": 26,          // optional, per 1000
        "customer_name": "...", "phone_number": "...", "reference_id": "...",
        "notes": "...",
        "transaction_date": "2026-10-15T09:30:00Z"   // optional
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        try:
            transaction_date = parse_iso_datetime(data.get("transaction_date"))
        except (TypeError, ValueError, AttributeError):
            raise ValidationError("transaction_date must be an ISO-8601 date")

        txn = mobile_service_service.create_transaction(
            shop_id=g.shop_id,
            payload=data,
            user_id=g.current_user.id,
            transaction_date=transaction_date,
        )
        current_app.logger.info(
            "Mobile service recorded: shop=%s type=%s amount=%s commission=%s",
            g.shop_id, txn.service_type, txn.amount, txn.net_commission,
        )
        return jsonify({"transaction": txn.to_dict(), "message": "Transaction created successfully"}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create mobile service transaction")
        return jsonify({"error": "Internal server error"}), 500


@mobile_services_bp.patch("/<int:transaction_id>")
@require_auth
@require_shop
@require_permission("USE_MOBILE_SERVICES")
def update_transaction_route(transaction_id: int):
    try:
        txn = mobile_service_service.update_transaction(
            shop_id=g.shop_id,
            transaction_id=transaction_id,
            payload=request.get_json(silent=True) or {},
            user_id=g.current_user.id,
        )
        return jsonify({"transaction": txn.to_dict()}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update mobile service transaction")
        return jsonify({"error": "Internal server error"}), 500


@mobile_services_bp.delete("/<int:transaction_id>")
@require_auth
@require_shop
@require_permission("DELETE_MOBILE_SERVICE")
def delete_transaction_route(transaction_id: int):
    try:
        mobile_service_service.delete_transaction(
            shop_id=g.shop_id,
            transaction_id=transaction_id,
            user_id=g.current_user.id,
        )
        return jsonify({"message": "Transaction deleted successfully"}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete mobile service transaction")
        return jsonify({"error": "Internal server error"}), 500
