"""Core business logic package for the finances tracker."""

from .models import Transaction
from .services import TransactionService
from .storage import CSVTransactionStore
from .exceptions import PersistenceError, ValidationError, RecordNotFoundError

__all__ = [
    "Transaction",
    "TransactionService",
    "CSVTransactionStore",
    "PersistenceError",
    "ValidationError",
    "RecordNotFoundError",
]
