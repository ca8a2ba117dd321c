"""Domain-specific exceptions for the finances core services."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ValidationError(ValueError):
    """Raised when caller input does not meet validation requirements.

    ``field`` names the offending input (``amount``, ``category`` or ``id``)
    so surfaces can point the user at it.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class RecordNotFoundError(LookupError):
    """Raised when no transaction carries the requested identifier."""

    def __init__(self, transaction_id: int) -> None:
        super().__init__(f"Transaction with ID {transaction_id} not found")
        self.transaction_id = transaction_id


class PersistenceError(IOError):
    """Raised when the transactions file cannot be read or written."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path
