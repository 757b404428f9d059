# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .permissions import role_has_permission
from .services import session_service
from .validation import ShopResolutionError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'auth_context')


def require_auth(f):
    """
    Require a bearer token and establish the request's identity.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: The user's role
    - g.shop_id: The resolved shop (may be None, see require_shop)
    - g.auth_context: The full AuthContext object
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.role = context.role
        g.shop_id = context.shop_id
        g.auth_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a permission granted to the caller's role."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not role_has_permission(g.role, permission_code):
                current_app.logger.warning(
                    "Permission denied: user=%s role=%s permission=%s path=%s",
                    g.current_user.id, g.role, permission_code, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_shop(f):
    """Require that the caller resolved to a shop (owner or assigned worker)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        if not g.shop_id:
            current_app.logger.warning("No shop assigned: user=%s path=%s", g.current_user.id, request.path)
            err = ShopResolutionError("No shop assigned")
            return jsonify(err.to_dict()), err.status_code

        return f(*args, **kwargs)

    return decorated_function
