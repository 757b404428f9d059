# Overview: Flask API routes for loans operations; parses input and returns JSON responses.

# backend/shopos/routes/loans.py
"""
Installment plan (loan) routes.

Owners create plans; workers may view them and record installment payments.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission, require_shop
from ..services import loan_service
from ..validation import ShopError, ValidationError, page_args, require_fields, to_positive_int
from shopos.time_utils import parse_iso_datetime

loans_bp = Blueprint("loans", __name__, url_prefix="/api/loans")


def _datetime_field(data: dict, field: str):
    try:
        return parse_iso_datetime(data.get(field))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{field} must be an ISO-8601 date")


@loans_bp.get("")
@require_auth
@require_shop
@require_permission("VIEW_LOANS")
def list_loans_route():
    try:
        page, limit = page_args(request.args)
        result = loan_service.list_loans(
            shop_id=g.shop_id,
            status=request.args.get("status"),
            search=request.args.get("search"),
            page=page,
            limit=limit,
        )
        return jsonify(result), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list loans")
        return jsonify({"error": "Internal server error"}), 500


@loans_bp.get("/overdue")
@require_auth
@require_shop
@require_permission("VIEW_LOANS")
def overdue_loans_route():
    try:
        return jsonify(loan_service.overdue_loans(shop_id=g.shop_id)), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list overdue loans")
        return jsonify({"error": "Internal server error"}), 500


@loans_bp.post("")
@require_auth
@require_shop
@require_permission("MANAGE_LOANS")
def create_loan_route():
    """
    Body:
    {
        "customer_id": 3,
        "loan_number": "LN-0001",
        "principal_amount": 60000,
        "interest_rate": 10,          // percent, optional
        "total_installments": 6,
        "start_date": "2026-01-15"    // optional, defaults to now
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "customer_id", "loan_number", "principal_amount", "total_installments")
        loan = loan_service.create_loan(
            shop_id=g.shop_id,
            customer_id=to_positive_int(data.get("customer_id"), "customer_id"),
            loan_number=data.get("loan_number"),
            principal_amount=data.get("principal_amount"),
            interest_rate=data.get("interest_rate", 0),
            total_installments=data.get("total_installments"),
            start_date=_datetime_field(data, "start_date"),
            user_id=g.current_user.id,
        )
        return jsonify({"loan": loan.to_dict(include_installments=True)}), 201
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create loan")
        return jsonify({"error": "Internal server error"}), 500


@loans_bp.get("/<int:loan_id>")
@require_auth
@require_shop
@require_permission("VIEW_LOANS")
def get_loan_route(loan_id: int):
    try:
        loan = loan_service.get_loan(shop_id=g.shop_id, loan_id=loan_id)
        return jsonify({"loan": loan.to_dict(include_installments=True)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get loan")
        return jsonify({"error": "Internal server error"}), 500


@loans_bp.get("/<int:loan_id>/installments")
@require_auth
@require_shop
@require_permission("VIEW_LOANS")
def list_installments_route(loan_id: int):
    try:
        loan = loan_service.get_loan(shop_id=g.shop_id, loan_id=loan_id)
        return jsonify({
            "loan_id": loan.id,
            "installments": [i.to_dict() for i in loan.installments],
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list installments")
        return jsonify({"error": "Internal server error"}), 500


@loans_bp.post("/<int:loan_id>/installments")
@require_auth
@require_shop
@require_permission("RECORD_INSTALLMENT")
def record_installment_route(loan_id: int):
    """Body: {installment_id, amount, paid_date?}"""
    try:
        data = request.get_json(silent=True) or {}
        require_fields(data, "installment_id", "amount")
        installment = loan_service.record_installment_payment(
            shop_id=g.shop_id,
            loan_id=loan_id,
            installment_id=to_positive_int(data.get("installment_id"), "installment_id"),
            amount=data.get("amount"),
            paid_date=_datetime_field(data, "paid_date"),
            user_id=g.current_user.id,
        )
        loan = installment.loan
        return jsonify({
            "installment": installment.to_dict(),
            "loan": loan.to_dict(),
            "message": "Installment payment recorded successfully",
        }), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record installment payment")
        return jsonify({"error": "Internal server error"}), 500
