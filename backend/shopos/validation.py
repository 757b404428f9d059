from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Upper bound on any single monetary amount (whole currency units)
MAX_AMOUNT = Decimal("9999999999.99")

WHOLE_UNIT = Decimal("1")
CENT = Decimal("0.01")


class ShopError(Exception):
    """Base class for domain errors mapped to JSON responses."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ShopError):
    """400-level input problem."""


class AuthenticationError(ShopError):
    """No valid session."""
    status_code = 401


class PermissionDeniedError(ShopError):
    status_code = 403


class NotFoundError(ShopError):
    status_code = 404


class ConflictError(ShopError):
    """409-level business rule conflict (e.g., duplicate SKU)."""
    status_code = 409


class ShopResolutionError(ShopError):
    """Authenticated user has no shop assigned."""


class EmptyCartError(ShopError):
    """Checkout attempted with no cart items."""


class OversellError(ConflictError):
    """Fewer IN_STOCK units than requested."""


class PersistenceError(ShopError):
    """Underlying store failure inside a unit of work."""
    status_code = 500


def round_currency(value: Decimal) -> Decimal:
    """Round to whole currency units, half away from zero."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str, *, allow_negative: bool = False) -> Decimal:
    """
    Coerce JSON input to Decimal.

    Accepts int, float (via str to avoid binary artefacts) and numeric strings.
    Rejects bools, NaN/Infinity and values beyond MAX_AMOUNT.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        if isinstance(value, float):
            result = Decimal(str(value))
        elif isinstance(value, (int, Decimal)):
            result = Decimal(value)
        elif isinstance(value, str) and value.strip():
            result = Decimal(value.strip())
        else:
            raise ValidationError(f"{field} must be a number")
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if not allow_negative and result < 0:
        raise ValidationError(f"{field} cannot be negative")
    if abs(result) > MAX_AMOUNT:
        raise ValidationError(f"{field} is too large")
    return result


def to_positive_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        # Reject decimals and scientific notation (e.g., "1.5", "1e3")
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be an integer")
        result = int(stripped)
    else:
        raise ValidationError(f"{field} must be an integer")

    if result <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return result


def optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return to_positive_int(value, field)


def require_fields(data: dict, *fields: str) -> None:
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing": missing},
        )


def money(value: Decimal | None) -> float | None:
    """JSON representation of a stored amount."""
    if value is None:
        return None
    return float(value)


def page_args(args, *, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """(page, limit) from query args, clamped to sane bounds."""
    page = args.get("page", default=1, type=int) or 1
    limit = args.get("limit", default=default_limit, type=int) or default_limit
    return max(page, 1), max(1, min(limit, max_limit))
