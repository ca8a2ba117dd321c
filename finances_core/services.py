"""Framework-agnostic business services for the finances tracker."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import MAX_PREC, Decimal, localcontext
from typing import Callable, Iterable, List

from .exceptions import PersistenceError, RecordNotFoundError
from .models import Transaction
from .storage import CSVTransactionStore
from .validators import parse_amount, parse_transaction_id, validate_category

logger = logging.getLogger(__name__)


class TransactionService:
    """Validates caller input and mediates access to the transaction store."""

    def __init__(self, store: CSVTransactionStore) -> None:
        if store is None:
            raise ValueError("store is required")
        self._store = store

    # Public API -----------------------------------------------------------
    def add_transaction(self, amount: object, category: object) -> Transaction:
        """Record a new transaction stamped with the current local time."""
        clean_category = validate_category(category)
        clean_amount = parse_amount(amount, "amount")

        transaction = Transaction(
            id=self._store.next_id(),
            amount=clean_amount,
            category=clean_category,
            created_at=_now(),
        )
        self._persist(lambda: self._store.add(transaction))
        logger.info("Added transaction %s (%s, %s)", transaction.id, transaction.amount, transaction.category)
        return transaction

    def get_all_transactions(self) -> List[Transaction]:
        return self._store.get_all()

    def get_transaction(self, transaction_id: object) -> Transaction:
        """Return a transaction or raise if it does not exist."""
        return self._get_or_raise(parse_transaction_id(transaction_id))

    def get_total_sum(self) -> Decimal:
        return _sum_amounts(self._store.get_all())

    def get_transactions_by_category(self, category: object) -> List[Transaction]:
        return self._store.find_by_category(validate_category(category))

    def get_category_total(self, category: object) -> Decimal:
        return _sum_amounts(self.get_transactions_by_category(category))

    def delete_transaction(self, transaction_id: object) -> None:
        existing = self._get_or_raise(parse_transaction_id(transaction_id))
        self._persist(lambda: self._store.remove(existing))
        logger.info("Deleted transaction %s", existing.id)

    def refresh(self) -> None:
        """Discard cached state so the next call re-reads the file."""
        self._store.reload()

    # Internal helpers -----------------------------------------------------
    def _get_or_raise(self, transaction_id: int) -> Transaction:
        transaction = self._store.find_by_id(transaction_id)
        if transaction is None:
            raise RecordNotFoundError(transaction_id)
        return transaction

    @staticmethod
    def _persist(operation: Callable[[], object]) -> None:
        try:
            operation()
        except PersistenceError:
            raise
        except OSError as exc:
            raise PersistenceError("Unexpected error while saving transactions") from exc


def _now() -> datetime:
    # The file format has whole-second precision; match it in memory.
    return datetime.now().replace(microsecond=0)


def _sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    # Amounts carry arbitrary precision; the default 28-digit context would round wide totals.
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        return sum((t.amount for t in transactions), start=Decimal("0"))
