"""Shared fixtures: every test gets its own CSV file under tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

from finances_core.services import TransactionService
from finances_core.storage import CSVTransactionStore


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "transactions.csv"


@pytest.fixture
def store(data_file: Path) -> CSVTransactionStore:
    return CSVTransactionStore(data_file)


@pytest.fixture
def service(store: CSVTransactionStore) -> TransactionService:
    return TransactionService(store)


@pytest.fixture
def write_csv(data_file: Path):
    """Write raw text to the data file, creating its directory."""

    def _write(text: str) -> Path:
        data_file.parent.mkdir(parents=True, exist_ok=True)
        data_file.write_text(text, encoding="utf-8")
        return data_file

    return _write
