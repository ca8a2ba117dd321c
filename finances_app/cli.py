"""Console interface for the finances tracker."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from decimal import MAX_PREC, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from finances_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from finances_core.models import Transaction
from finances_core.services import TransactionService
from finances_core.storage import CSVTransactionStore
from finances_core.validators import parse_transaction_id

DEFAULT_DATA_FILE = "data/transactions.csv"
DISPLAY_DATETIME_FORMAT = "%Y-%m-%d %H:%M"
RULE = "-" * 56

MENU = """
=== FinancesApp ===
1. Add transaction
2. View all transactions
3. Total sum of transactions
4. Find transactions by category
5. Delete transaction
0. Exit"""


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a finite number")
    return value


def _load_service(data_file: Path) -> TransactionService:
    return TransactionService(CSVTransactionStore(data_file))


def format_amount(amount: Decimal) -> str:
    """Two decimals, half-up, with an explicit sign for non-zero values."""
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        rounded = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if rounded > 0:
        return f"+{rounded}"
    if rounded < 0:
        return str(rounded)
    return "0.00"


def format_table(transactions: Sequence[Transaction]) -> str:
    lines = [RULE, f"{'ID':<4} | {'Amount':<12} | {'Category':<15} | Date", RULE]
    for transaction in transactions:
        lines.append(
            f"{transaction.id:<4} | {format_amount(transaction.amount):<12} | "
            f"{transaction.category:<15} | {transaction.created_at.strftime(DISPLAY_DATETIME_FORMAT)}"
        )
    lines.append(RULE)
    return "\n".join(lines)


def _format_added(transaction: Transaction) -> str:
    return (
        f"Transaction added:\n"
        f"  ID: {transaction.id}\n"
        f"  Amount: {format_amount(transaction.amount)}\n"
        f"  Category: {transaction.category}\n"
        f"  Date: {transaction.created_at.strftime(DISPLAY_DATETIME_FORMAT)}"
    )


# Subcommands ----------------------------------------------------------------
def handle_add(args: argparse.Namespace, service: TransactionService) -> None:
    transaction = service.add_transaction(args.amount, args.category)
    print(_format_added(transaction))


def handle_list(args: argparse.Namespace, service: TransactionService) -> None:
    if args.category is not None:
        transactions = service.get_transactions_by_category(args.category)
    else:
        transactions = service.get_all_transactions()
    if not transactions:
        print("No transactions found.")
        return
    print(format_table(transactions))
    print(f"Found {len(transactions)} transactions.")


def handle_total(args: argparse.Namespace, service: TransactionService) -> None:
    if args.category is not None:
        total = service.get_category_total(args.category)
        print(f"Total for category \"{args.category.strip()}\": {format_amount(total)}")
    else:
        print(f"Total sum of all transactions: {format_amount(service.get_total_sum())}")


def handle_delete(args: argparse.Namespace, service: TransactionService) -> None:
    transaction_id = parse_transaction_id(args.id)
    service.delete_transaction(transaction_id)
    print(f"Transaction {transaction_id} deleted.")


# Interactive menu -----------------------------------------------------------
class ConsoleMenu:
    """Numbered menu loop; every error is reported and the loop carries on."""

    def __init__(self, service: TransactionService, prompt: Callable[[str], str] = input) -> None:
        self._service = service
        self._prompt = prompt
        self._actions: Dict[str, Callable[[], None]] = {
            "1": self._add,
            "2": self._view_all,
            "3": self._total,
            "4": self._by_category,
            "5": self._delete,
        }

    def run(self) -> None:
        print("Welcome to FinancesApp!")
        while True:
            print(MENU)
            try:
                choice = self._prompt("Select action: ").strip()
            except EOFError:
                break
            if choice == "0":
                break
            action = self._actions.get(choice)
            if action is None:
                print("Error: invalid choice. Please select an action from the menu.")
                continue
            try:
                action()
            except EOFError:
                break
            except (ValidationError, RecordNotFoundError) as exc:
                print(f"Error: {exc}")
            except PersistenceError as exc:
                print(f"Storage error: {exc}")
                print("Please check file access permissions.")
        print("Thank you for using FinancesApp! Goodbye!")

    def _add(self) -> None:
        amount = self._read_amount()
        category = self._read_text("Enter transaction category: ", "category")
        print(_format_added(self._service.add_transaction(amount, category)))

    def _view_all(self) -> None:
        transactions = self._service.get_all_transactions()
        if not transactions:
            print("No transactions yet. Add your first transaction through the menu.")
            return
        print(format_table(transactions))

    def _total(self) -> None:
        print(f"Total sum of all transactions: {format_amount(self._service.get_total_sum())}")

    def _by_category(self) -> None:
        category = self._read_text("Enter transaction category: ", "category")
        transactions = self._service.get_transactions_by_category(category)
        if not transactions:
            print(f"No transactions found for category \"{category}\".")
            return
        print(f"Transactions in category \"{category}\":")
        print(format_table(transactions))
        print(f"Found transactions: {len(transactions)}")

    def _delete(self) -> None:
        transactions = self._service.get_all_transactions()
        if not transactions:
            print("No transactions to delete.")
            return
        print(format_table(transactions))
        transaction_id = self._read_id()
        self._service.delete_transaction(transaction_id)
        print(f"Transaction with ID {transaction_id} deleted.")

    def _read_text(self, message: str, field: str) -> str:
        while True:
            value = self._prompt(message).strip()
            if value:
                return value
            print(f"Error: {field} cannot be empty.")

    def _read_amount(self) -> Decimal:
        while True:
            raw = self._read_text(
                "Enter transaction amount (can be positive or negative): ", "amount"
            )
            try:
                amount = Decimal(raw)
            except InvalidOperation:
                amount = None
            if amount is not None and amount.is_finite():
                return amount
            print("Error: invalid number format. Please enter a number (e.g. 1500.50 or -500.00).")

    def _read_id(self) -> int:
        while True:
            raw = self._read_text("Enter transaction ID to delete: ", "ID")
            if raw.isdecimal():
                return int(raw)
            print("Error: invalid ID format. Please enter a number.")


def handle_menu(args: argparse.Namespace, service: TransactionService) -> None:
    ConsoleMenu(service).run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="FinancesApp personal transaction tracker")
    parser.add_argument(
        "--data-file",
        default=Path(os.getenv("FINANCES_DATA_FILE", DEFAULT_DATA_FILE)),
        type=Path,
        help=f"CSV file holding transactions (default: ./{DEFAULT_DATA_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("FINANCES_LOG_LEVEL", "WARNING"),
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser("add", help="Record a new transaction")
    add_parser.add_argument("amount", type=_parse_amount)
    add_parser.add_argument("category")
    add_parser.set_defaults(handler=handle_add)

    list_parser = subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("--category")
    list_parser.set_defaults(handler=handle_list)

    total_parser = subparsers.add_parser("total", help="Sum transaction amounts")
    total_parser.add_argument("--category")
    total_parser.set_defaults(handler=handle_total)

    delete_parser = subparsers.add_parser("delete", help="Delete a transaction")
    delete_parser.add_argument("id")
    delete_parser.set_defaults(handler=handle_delete)

    menu_parser = subparsers.add_parser("menu", help="Start the interactive menu (default)")
    menu_parser.set_defaults(handler=handle_menu)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    service = _load_service(args.data_file)

    try:
        handler = getattr(args, "handler", handle_menu)
        handler(args, service)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
