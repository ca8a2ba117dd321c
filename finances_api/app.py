"""Flask REST API exposing the finances tracker services."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from flask import Flask, jsonify, request
from flask_cors import CORS

from finances_core.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from finances_core.models import Transaction
from finances_core.services import TransactionService
from finances_core.storage import CSVTransactionStore

DEFAULT_DATA_FILE = "data/transactions.csv"


def _cors_origins() -> Optional[Union[str, List[str]]]:
    """Origins allowed by FINANCES_ENV / FINANCES_ALLOWED_ORIGINS; None keeps flask-cors defaults."""
    if os.getenv("FINANCES_ENV", "prod").lower() in {"dev", "development"}:
        return "*"
    allowed = os.getenv("FINANCES_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in allowed.split(",") if origin.strip()]
    return origins or None


def _ledger_payload(transactions: List[Transaction], total: Decimal) -> Dict[str, Any]:
    return {
        "items": [transaction.to_dict() for transaction in transactions],
        "count": len(transactions),
        "total": str(total),
    }


def create_app(data_file: Optional[Path] = None) -> Flask:
    app = Flask(__name__)

    origins = _cors_origins()
    if origins is None:
        CORS(app)
    else:
        CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)

    path = data_file or os.getenv("FINANCES_DATA_FILE", DEFAULT_DATA_FILE)
    service = TransactionService(CSVTransactionStore(Path(path)))

    @app.errorhandler(ValidationError)
    def handle_invalid_transaction(exc: ValidationError):
        app.logger.info("Rejected transaction input (%s): %s", exc.field, exc)
        return jsonify({"error": "invalid_transaction", "field": exc.field, "message": str(exc)}), 400

    @app.errorhandler(RecordNotFoundError)
    def handle_unknown_transaction(exc: RecordNotFoundError):
        app.logger.info("Unknown transaction %s", exc.transaction_id)
        return jsonify({"error": "transaction_not_found", "id": exc.transaction_id, "message": str(exc)}), 404

    @app.errorhandler(PersistenceError)
    def handle_ledger_unavailable(exc: PersistenceError):
        app.logger.error("Transactions file %s unavailable: %s", exc.path, exc)
        return jsonify({"error": "ledger_unavailable", "message": str(exc)}), 500

    def _amount_and_category() -> Tuple[Any, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Body must be a JSON object with amount and category")
        return data.get("amount"), data.get("category")

    @app.get("/transactions")
    def list_transactions():
        category = request.args.get("category")
        if category is None:
            return jsonify(_ledger_payload(service.get_all_transactions(), service.get_total_sum()))
        return jsonify(_ledger_payload(
            service.get_transactions_by_category(category),
            service.get_category_total(category),
        ))

    @app.post("/transactions")
    def create_transaction():
        amount, category = _amount_and_category()
        transaction = service.add_transaction(amount, category)
        return jsonify(transaction.to_dict()), 201

    @app.get("/transactions/<transaction_id>")
    def get_transaction(transaction_id: str):
        return jsonify(service.get_transaction(transaction_id).to_dict())

    @app.delete("/transactions/<transaction_id>")
    def delete_transaction(transaction_id: str):
        service.delete_transaction(transaction_id)
        return "", 204

    @app.get("/summary")
    def summary():
        return jsonify({
            "total": str(service.get_total_sum()),
            "count": len(service.get_all_transactions()),
        })

    return app
