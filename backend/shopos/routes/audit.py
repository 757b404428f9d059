# Overview: Flask API route for reading the audit log.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models.auth import ROLE_SUPER_ADMIN
from ..services.audit_service import list_audit_logs
from ..validation import ShopError, ShopResolutionError

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit-logs")


@audit_bp.get("")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_audit_logs_route():
    """
    Query params: table_name, record_id, limit (max 500).

    Owners see their shop's entries; super admins see everything.
    """
    try:
        if g.role == ROLE_SUPER_ADMIN:
            shop_id = None
        elif not g.shop_id:
            raise ShopResolutionError("No shop assigned")
        else:
            shop_id = g.shop_id

        limit = max(1, min(request.args.get("limit", default=100, type=int) or 100, 500))
        entries = list_audit_logs(
            shop_id=shop_id,
            table_name=request.args.get("table_name"),
            record_id=request.args.get("record_id"),
            limit=limit,
        )
        return jsonify({"audit_logs": [e.to_dict() for e in entries], "count": len(entries)}), 200
    except ShopError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list audit logs")
        return jsonify({"error": "Internal server error"}), 500
