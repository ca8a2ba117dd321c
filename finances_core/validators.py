"""Validation helpers shared across the finances services and surfaces."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError


def parse_amount(raw: object, field: str = "amount") -> Decimal:
    """Convert raw input to an exact Decimal. Sign is free; no rounding is applied."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"{field} is required", field)
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value", field)
    try:
        amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a numeric value", field) from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field)
    return amount


def validate_required_str(value: object, field: str) -> str:
    if value is None:
        raise ValidationError(f"{field} cannot be empty", field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field)
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty", field)
    return trimmed


def validate_category(value: object) -> str:
    category = validate_required_str(value, "category")
    if "\n" in category or "\r" in category:
        raise ValidationError("category must be a single line", "category")
    try:
        category.encode("utf-8")
    except UnicodeEncodeError as exc:
        # Lone surrogates survive JSON decoding but cannot be written to the file.
        raise ValidationError("category contains characters that cannot be stored", "category") from exc
    return category


def parse_transaction_id(raw: object) -> int:
    """Accept an int or a string of digits and return a positive identifier."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("id is required", "id")
    if isinstance(raw, bool):
        raise ValidationError("id must be an integer", "id")
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError as exc:
            raise ValidationError(f"id must be an integer, got {raw!r}", "id") from exc
    if value <= 0:
        raise ValidationError("id must be a positive integer", "id")
    return value
