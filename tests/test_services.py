from datetime import datetime
from decimal import Decimal

import pytest

from finances_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from finances_core.services import TransactionService
from finances_core.storage import CSVTransactionStore


def test_add_transaction_assigns_id_and_timestamp(service):
    before = datetime.now().replace(microsecond=0)
    transaction = service.add_transaction(Decimal("1500.50"), "  Groceries ")
    after = datetime.now()

    assert transaction.id == 1
    assert transaction.amount == Decimal("1500.50")
    assert transaction.category == "Groceries"
    assert before <= transaction.created_at <= after
    assert transaction.created_at.microsecond == 0


def test_add_transaction_persists(service, data_file):
    added = service.add_transaction("-42.10", "Rent")
    reloaded = TransactionService(CSVTransactionStore(data_file)).get_all_transactions()
    assert len(reloaded) == 1
    assert reloaded[0].id == added.id
    assert reloaded[0].amount == Decimal("-42.10")
    assert reloaded[0].created_at == added.created_at


@pytest.mark.parametrize("category", [None, "", "   ", "two\nlines", "\ud800", 12])
def test_add_transaction_rejects_bad_category(service, data_file, category):
    with pytest.raises(ValidationError):
        service.add_transaction(Decimal("1"), category)
    assert not data_file.exists()


@pytest.mark.parametrize("amount", [None, "", "abc", "NaN", "Infinity", True])
def test_add_transaction_rejects_bad_amount(service, data_file, amount):
    with pytest.raises(ValidationError):
        service.add_transaction(amount, "Food")
    assert not data_file.exists()


def test_amount_accepts_numbers_and_zero(service):
    assert service.add_transaction(0, "Misc").amount == Decimal("0")
    assert service.add_transaction(12, "Misc").amount == Decimal("12")
    assert service.add_transaction(0.1, "Misc").amount == Decimal("0.1")


def test_total_sum_is_exact(service):
    for amount in ("10.50", "-3.25", "0.75"):
        service.add_transaction(amount, "Misc")
    total = service.get_total_sum()
    assert total == Decimal("8.00")
    assert isinstance(total, Decimal)


def test_total_sum_of_nothing_is_zero(service):
    assert service.get_total_sum() == Decimal("0")


def test_category_lookup_is_case_insensitive(service):
    food = service.add_transaction("5", "Food")
    service.add_transaction("7", "Rent")
    for query in ("food", "FOOD", " Food "):
        assert service.get_transactions_by_category(query) == [food]


def test_category_lookup_requires_category(service):
    with pytest.raises(ValidationError):
        service.get_transactions_by_category("  ")


def test_category_total(service):
    service.add_transaction("5.10", "Food")
    service.add_transaction("2.00", "food")
    service.add_transaction("100", "Rent")
    assert service.get_category_total("FOOD") == Decimal("7.10")
    assert service.get_category_total("Travel") == Decimal("0")


def test_delete_transaction(service, data_file):
    first = service.add_transaction("1", "A")
    second = service.add_transaction("2", "B")
    service.delete_transaction(first.id)
    assert service.get_all_transactions() == [second]
    assert [t.id for t in CSVTransactionStore(data_file).get_all()] == [second.id]


def test_delete_accepts_string_id(service):
    added = service.add_transaction("1", "A")
    service.delete_transaction(str(added.id))
    assert service.get_all_transactions() == []


def test_delete_absent_id_raises_and_keeps_count(service):
    service.add_transaction("1", "A")
    service.add_transaction("2", "B")
    with pytest.raises(RecordNotFoundError, match="Transaction with ID 99 not found"):
        service.delete_transaction(99)
    assert len(service.get_all_transactions()) == 2


@pytest.mark.parametrize("raw_id", [None, "", "abc", 0, -1, "1.5"])
def test_delete_rejects_invalid_id(service, raw_id):
    with pytest.raises(ValidationError):
        service.delete_transaction(raw_id)


def test_get_transaction(service):
    added = service.add_transaction("3", "C")
    assert service.get_transaction(added.id).category == "C"
    with pytest.raises(RecordNotFoundError):
        service.get_transaction(123)


def test_ids_stay_unique_across_adds_and_deletes(service):
    seen = []
    for round_number in range(5):
        seen.append(service.add_transaction(str(round_number), "Loop").id)
        if round_number % 2:
            service.delete_transaction(seen[-1])
    seen.append(service.add_transaction("9", "Loop").id)

    ids = [t.id for t in service.get_all_transactions()]
    assert len(ids) == len(set(ids))
    assert len(seen) == len(set(seen))


def test_ids_continue_after_restart(service, data_file):
    service.add_transaction("1", "A")
    service.add_transaction("2", "B")
    service.delete_transaction(2)

    restarted = TransactionService(CSVTransactionStore(data_file))
    assert restarted.add_transaction("3", "C").id == 2


def test_refresh_rereads_file(service, write_csv):
    service.add_transaction("1", "A")
    write_csv("id,amount,category,date\n5,9,Z,2024-01-15T10:30:00\n")
    assert [t.id for t in service.get_all_transactions()] == [1]
    service.refresh()
    assert [t.id for t in service.get_all_transactions()] == [5]


def test_malformed_file_loads_remaining_rows(service, write_csv):
    write_csv(
        "id,amount,category,date\n"
        "1,not-a-number,Food,2024-01-15T10:30:00\n"
        "2,10.50,Food,2024-01-15T10:30:00\n"
        "3,-3.25,Food,2024-01-15T10:30:00\n"
    )
    assert len(service.get_all_transactions()) == 2


def test_write_failure_surfaces_persistence_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    service = TransactionService(CSVTransactionStore(blocker / "transactions.csv"))
    with pytest.raises(PersistenceError):
        service.add_transaction("1", "A")


def test_service_requires_store():
    with pytest.raises(ValueError):
        TransactionService(None)


def test_long_category_is_accepted(service):
    category = "x" * 60
    assert service.add_transaction("1", category).category == category


def test_unencodable_category_leaves_store_usable(service, data_file):
    with pytest.raises(ValidationError) as excinfo:
        service.add_transaction("1", "Food \ud800")
    assert excinfo.value.field == "category"

    added = service.add_transaction("2", "Food")
    assert [t.id for t in service.get_all_transactions()] == [added.id]
    assert sorted(p.name for p in data_file.parent.iterdir()) == ["transactions.csv"]


def test_wide_amounts_sum_exactly(service):
    service.add_transaction("1e20", "Wide")
    service.add_transaction("0.0000000001", "Wide")
    expected = Decimal("100000000000000000000.0000000001")
    assert service.get_total_sum() == expected
    assert service.get_category_total("wide") == expected


def test_not_found_error_carries_id(service):
    with pytest.raises(RecordNotFoundError) as excinfo:
        service.delete_transaction("7")
    assert excinfo.value.transaction_id == 7
