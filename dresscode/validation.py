from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from .errors import BadRequest


# Maximum price: 9,999,999.99 (999,999,999 paise)
MAX_PRICE_CENTS = 999_999_999


def require_fields(data: dict | None, fields: Iterable[str]) -> dict:
    """Raise BadRequest naming the first missing or blank field."""
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise BadRequest(f"Missing required field: {field}")
    return data


def parse_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False) -> int:
    """
    Strict positive integer parsing.

    Accepts ints and plain digit strings. Rejects bools, floats, decimals and
    scientific notation.
    """
    if isinstance(value, bool):
        raise BadRequest(f"{field} must be an integer")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or not stripped.lstrip("-").isdigit():
            raise BadRequest(f"{field} must be an integer")
        qty = int(stripped)
    else:
        raise BadRequest(f"{field} must be an integer")

    if qty < 0 or (qty == 0 and not allow_zero):
        raise BadRequest(f"{field} must be positive")
    return qty


def parse_money_cents(value: Any, field: str = "price") -> int:
    """
    Parse a major-unit amount ("500", "499.50", 12.5) into minor units.

    Rounds half-up to the nearest paisa.
    """
    if isinstance(value, bool) or value is None:
        raise BadRequest(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise BadRequest(f"{field} must be a number")
    if not amount.is_finite() or amount < 0:
        raise BadRequest(f"{field} must be a non-negative number")

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents > MAX_PRICE_CENTS:
        raise BadRequest(f"{field} exceeds maximum allowed")
    return cents


def parse_percentage(value: Any, field: str = "discount_percentage", *, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise BadRequest(f"{field} must be an integer")
    try:
        pct = int(value)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be an integer")
    if isinstance(value, float) and value != pct:
        raise BadRequest(f"{field} must be an integer")
    if pct < minimum or pct > 100:
        raise BadRequest(f"{field} must be between {minimum} and 100")
    return pct


def percent_of(amount_cents: int, percentage: int) -> int:
    """percentage% of amount_cents, rounded half-up to a whole paisa."""
    value = Decimal(amount_cents) * Decimal(percentage) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
