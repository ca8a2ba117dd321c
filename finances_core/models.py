"""Data models for the finances domain."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Sequence

__all__ = ["CSV_HEADER", "Transaction", "format_timestamp", "parse_timestamp"]

CSV_HEADER = ("id", "amount", "category", "date")

_FRACTION_PATTERN = re.compile(r"^(?P<head>[^.]+)\.(?P<fraction>[0-9]+)$")


def format_timestamp(dt: datetime) -> str:
    """Render a local date-time as ISO 8601 without fractional seconds."""
    return dt.isoformat(timespec="seconds")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 local date-time; offsets are rejected."""
    text = value.strip()
    match = _FRACTION_PATTERN.match(text)
    if match:
        # fromisoformat before 3.11 only takes 3 or 6 fractional digits.
        fraction = match.group("fraction")[:6].ljust(6, "0")
        text = f"{match.group('head')}.{fraction}"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        raise ValueError(f"Timestamp must not carry a timezone: {value!r}")
    return dt


@dataclass(frozen=True)
class Transaction:
    """A single recorded transaction. Two transactions are equal when their ids match."""

    id: int
    amount: Decimal = field(compare=False)
    category: str = field(compare=False)
    created_at: datetime = field(compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise ValueError("id must be a positive integer")
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise ValueError("amount must be a finite Decimal")
        if not isinstance(self.category, str) or not self.category.strip():
            raise ValueError("category cannot be empty")
        if not isinstance(self.created_at, datetime):
            raise ValueError("created_at must be a datetime")
        # Frozen dataclass: bypass __setattr__ to store the trimmed form.
        object.__setattr__(self, "category", self.category.strip())

    def to_row(self) -> List[str]:
        """Serialise the transaction to the CSV column order."""
        return [
            str(self.id),
            str(self.amount),
            self.category,
            format_timestamp(self.created_at),
        ]

    @classmethod
    def from_row(cls, fields: Sequence[str]) -> "Transaction":
        """Hydrate a Transaction from one CSV row."""
        if len(fields) != len(CSV_HEADER):
            raise ValueError(
                f"expected {len(CSV_HEADER)} fields, got {len(fields)}"
            )
        raw_id, raw_amount, category, raw_date = fields
        try:
            amount = Decimal(raw_amount.strip())
        except InvalidOperation as exc:
            raise ValueError(f"invalid amount {raw_amount!r}") from exc
        return cls(
            id=int(raw_id.strip()),
            amount=amount,
            category=category,
            created_at=parse_timestamp(raw_date),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "id": self.id,
            "amount": str(self.amount),
            "category": self.category,
            "date": format_timestamp(self.created_at),
        }
