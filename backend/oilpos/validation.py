# Overview: Input validation, typed service errors, and payload normalization for catalogue writes.

"""
Validation layer.

Every amount that reaches the database is an integer (cents or bps), so the
integer coercion here is strict: "12.5", 12.5, "1e3" and True are all
rejected instead of being truncated into a different amount of money.

Errors map onto HTTP status codes in routes/__init__.py:
- ValidationError -> 400
- NotFoundError   -> 404
- ConflictError   -> 409
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import Boolean, DateTime, Integer, String

from oilpos.time_utils import parse_iso_datetime

# 9,999,999.99 in cents
MAX_PRICE_CENTS = 999_999_999

# 100% in basis points
MAX_RATE_BPS = 10_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (duplicate name, not enough stock)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(LookupError):
    """404-level reference to a row that does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which must be present on create.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


# =============================================================================
# SCALARS
# =============================================================================

def coerce_int(value: Any, name: str) -> int:
    """Accept an int or a string of digits; reject everything else."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an integer")

    text = value.strip()
    if "e" in text.lower():
        raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
    if "." in text:
        raise ValidationError(f"{name} must be an integer (no decimals)")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def require_positive_int(value: Any, name: str) -> int:
    number = coerce_int(value, name)
    if number <= 0:
        raise ValidationError(f"{name} must be > 0")
    return number


def require_non_negative_int(value: Any, name: str) -> int:
    number = coerce_int(value, name)
    if number < 0:
        raise ValidationError(f"{name} must be >= 0")
    return number


def optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, name)


def require_rate_bps(value: Any, name: str) -> int:
    """A tax rate in basis points, 0 to 100%."""
    rate = coerce_int(value, name)
    if rate < 0 or rate > MAX_RATE_BPS:
        raise ValidationError(f"{name} must be between 0 and {MAX_RATE_BPS} bps")
    return rate


# =============================================================================
# MODEL PAYLOADS
# =============================================================================

def _to_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "yes"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "no"}:
        return False
    raise ValidationError(f"{name} must be a boolean")


def _to_datetime(value: Any, name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _to_text(value: Any, name: str) -> str:
    return str(value).strip()


_COERCERS: tuple[tuple[type, Callable[[Any, str], Any]], ...] = (
    (Boolean, _to_bool),
    (Integer, coerce_int),
    (DateTime, _to_datetime),
    (String, _to_text),
)


def _coerce_column(column, value: Any) -> Any:
    for column_type, coercer in _COERCERS:
        if isinstance(column.type, column_type):
            return coercer(value, column.key)
    return value


def _check_text_limits(column, value: Any) -> None:
    if not isinstance(value, str):
        return
    if value == "" and not column.nullable:
        raise ValidationError(f"{column.key} cannot be blank")
    length = getattr(column.type, "length", None)
    if length and len(value) > length:
        raise ValidationError(f"{column.key} exceeds max length {length}")


def validate_payload(
    *,
    model,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Normalize a JSON body into a column patch for `model`.

    - keys outside policy.writable_fields are rejected
    - on create (partial=False) policy.required_on_create must be present
    - values are coerced by column type; NOT NULL, blank and length rules
      come from the column definitions
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {column.key: column for column in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce_column(column, raw)
        _check_text_limits(column, value)
        patch[key] = value

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Price, cost and stock rules the column types cannot express."""
    for name in ("price_cents", "unit_cost_cents"):
        amount = patch.get(name)
        if amount is None:
            continue
        if amount < 0:
            raise ValidationError(f"{name} must be >= 0")
        if amount > MAX_PRICE_CENTS:
            raise ValidationError(f"{name} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")

    quantity = patch.get("quantity")
    if quantity is not None and quantity < 0:
        raise ValidationError("quantity must be >= 0")


def enforce_rules_employee(patch: dict) -> None:
    salary = patch.get("salary_cents")
    if salary is not None and salary < 0:
        raise ValidationError("salary_cents must be >= 0")
