"""Persistence utilities for the finances core services."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import List, Optional

from .exceptions import PersistenceError
from .models import CSV_HEADER, Transaction

logger = logging.getLogger(__name__)


class CSVTransactionStore:
    """File-backed transaction store that rewrites the whole CSV file on every change.

    The file is read lazily on first access. Malformed rows are skipped with a
    warning so that one bad line never hides the rest of the ledger.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._transactions: List[Transaction] = []
        self._loaded = False
        self._next_id = 1

    # Public API -----------------------------------------------------------
    def load_if_needed(self) -> None:
        if self._loaded:
            return
        self._transactions = self._read()
        self._loaded = True
        self._next_id = max((t.id for t in self._transactions), default=0) + 1

    def reload(self) -> None:
        """Forget the in-memory snapshot; the next access re-reads the file."""
        self._transactions = []
        self._loaded = False
        self._next_id = 1

    def get_all(self) -> List[Transaction]:
        self.load_if_needed()
        return list(self._transactions)

    def add(self, transaction: Transaction) -> Transaction:
        self.load_if_needed()
        if self.find_by_id(transaction.id) is not None:
            raise ValueError(f"Transaction id {transaction.id} is already in use")
        self._transactions.append(transaction)
        self._next_id = max(self._next_id, transaction.id + 1)
        self._save()
        return transaction

    def remove(self, transaction: Transaction) -> None:
        self.load_if_needed()
        for index, existing in enumerate(self._transactions):
            if existing.id == transaction.id:
                del self._transactions[index]
                self._save()
                return

    def find_by_id(self, transaction_id: int) -> Optional[Transaction]:
        self.load_if_needed()
        return next((t for t in self._transactions if t.id == transaction_id), None)

    def find_by_category(self, category: str) -> List[Transaction]:
        self.load_if_needed()
        canonical = category.strip().lower()
        return [t for t in self._transactions if t.category.lower() == canonical]

    def next_id(self) -> int:
        """Hand out the next free identifier and advance the counter past it."""
        self.load_if_needed()
        in_use = {t.id for t in self._transactions}
        candidate = self._next_id
        while candidate in in_use:
            candidate += 1
        self._next_id = candidate + 1
        return candidate

    @property
    def path(self) -> Path:
        return self._path

    # Internal helpers -----------------------------------------------------
    def _read(self) -> List[Transaction]:
        if not self._path.exists():
            return []

        transactions: List[Transaction] = []
        seen_ids = set()
        first_row = True
        try:
            with self._path.open("r", encoding="utf-8", newline="") as handle:
                # One csv.reader per line: an unbalanced quote must not swallow the rows after it.
                for line_num, line in enumerate(handle, 1):
                    if not line.strip():
                        continue
                    try:
                        row = next(csv.reader([line]), [])
                    except csv.Error as exc:
                        self._skip(line_num, exc)
                        continue
                    if first_row:
                        first_row = False
                        if _is_header(row):
                            continue
                    try:
                        transaction = Transaction.from_row(row)
                    except ValueError as exc:
                        self._skip(line_num, exc)
                        continue
                    if transaction.id in seen_ids:
                        self._skip(line_num, f"duplicate id {transaction.id}")
                        continue
                    seen_ids.add(transaction.id)
                    transactions.append(transaction)
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"Corrupted CSV data in {self._path}", path=self._path) from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {self._path}", path=self._path) from exc

        logger.debug("Loaded %d transactions from %s", len(transactions), self._path)
        return transactions

    def _skip(self, line_num: int, reason: object) -> None:
        logger.warning("Skipping invalid line %s in %s: %s", line_num, self._path, reason)

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Unable to create directory for {self._path}", path=self._path
            ) from exc

        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8", newline="") as handle:
                writer = csv.writer(handle, lineterminator="\n")
                writer.writerow(CSV_HEADER)
                writer.writerows(t.to_row() for t in self._transactions)
                handle.flush()
            # replace() is atomic on POSIX.
            temp_path.replace(self._path)
        except (OSError, UnicodeError) as exc:
            raise PersistenceError(f"Unable to write to {self._path}", path=self._path) from exc
        finally:
            if temp_path.exists():
                temp_path.unlink()


def _is_header(row: List[str]) -> bool:
    return [field.strip().lower() for field in row] == list(CSV_HEADER)
