import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from flask import Flask, jsonify, request, session

from loan_ledger.config import Settings, setup_logging
from loan_ledger.data_models import LOAN_STATUSES, Borrower, LoanTerms
from loan_ledger.engine import compute_accrual
from loan_ledger.utils import InvalidInput
from loan_ledger_web.loan_store import LoanStore, create_store_from_env

logger = logging.getLogger(__name__)

REQUIRED_LOAN_FIELDS = (
    "borrowerName",
    "borrowerPhoneNumber",
    "borrowerAddress",
    "lenderName",
    "principal",
    "ratePerUnit",
    "period",
    "periodType",
    "startDate",
)
TERM_FIELDS = (
    "principal",
    "ratePerUnit",
    "period",
    "periodType",
    "startDate",
    "partialPayment",
    "interestPeriodType",
)


def _ensure_owner_id() -> str:
    token = session.get("owner_id")
    if not token:
        token = uuid4().hex
        session["owner_id"] = token
        session.modified = True
    return token


def _failure(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _json_body() -> dict:
    """Return the request JSON object, or an empty dict when there is no body."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidInput("body", body, "must be a JSON object")
    return body


def _terms_from_body(body: dict) -> LoanTerms:
    # Later clients send paymentPeriodType for the same field
    interest_period_type = body.get("interestPeriodType") or body.get("paymentPeriodType") or "month"
    return LoanTerms(
        principal=body.get("principal"),
        rate_per_unit=body.get("ratePerUnit"),
        period=body.get("period"),
        period_type=body.get("periodType") or "month",
        start_date=body.get("startDate"),
        partial_payment=body.get("partialPayment"),
        interest_period_type=interest_period_type,
    )


def _merge_terms(stored: dict, body: dict) -> LoanTerms:
    """Overlay the term fields present in ``body`` onto a stored loan."""
    merged = {field: stored[field] for field in TERM_FIELDS}
    for field in TERM_FIELDS:
        if body.get(field) is not None:
            merged[field] = body[field]
    if body.get("paymentPeriodType") and not body.get("interestPeriodType"):
        merged["interestPeriodType"] = body["paymentPeriodType"]
    return _terms_from_body(merged)


def create_app(settings: Optional[Settings] = None, store: Optional[LoanStore] = None) -> Flask:
    """Create the JSON loan ledger application.

    The caller's identity is an opaque token kept in the Flask session; every
    loan is scoped to it. The clock is read once per request and passed to the
    calculator.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["LEDGER_SETTINGS"] = settings
    loan_store = store or create_store_from_env(settings.database_url)

    @app.errorhandler(InvalidInput)
    def invalid_input(exc: InvalidInput):
        logger.warning("Rejected loan terms: %s", exc)
        return _failure(str(exc), 400)

    @app.post("/accrual")
    def accrual():
        body = _json_body()
        result = compute_accrual(_terms_from_body(body), datetime.now(timezone.utc))
        return jsonify({"success": True, "accrual": result.to_dict()})

    @app.post("/create-loan")
    def create_loan():
        body = _json_body()
        missing = [field for field in REQUIRED_LOAN_FIELDS if body.get(field) in (None, "")]
        if missing:
            return _failure(f"Missing required parameters: {', '.join(missing)}", 400)
        owner_id = _ensure_owner_id()
        terms = _terms_from_body(body)
        result = compute_accrual(terms, datetime.now(timezone.utc))
        borrower = Borrower(
            name=body["borrowerName"],
            phone_number=body["borrowerPhoneNumber"],
            address=body["borrowerAddress"],
            alternative_number=body.get("borrowerAlternativeNumber"),
            loan_document=body.get("borrowerLoanDocument"),
        )
        loan = loan_store.create_loan(owner_id, borrower, body["lenderName"], terms, result)
        return jsonify(
            {"success": True, "message": "Loan created and interest calculated successfully", "loan": loan}
        ), 201

    @app.get("/loans")
    def list_loans():
        include_archived = request.args.get("archived", "1") != "0"
        loans = loan_store.list_loans(_ensure_owner_id(), include_archived=include_archived)
        return jsonify({"success": True, "message": "Loans fetched successfully", "loans": loans})

    @app.get("/loans/<loan_id>")
    def get_loan(loan_id: str):
        loan = loan_store.get_loan(_ensure_owner_id(), loan_id)
        if loan is None:
            return _failure("Loan not found or not authorized", 404)
        return jsonify({"success": True, "message": "Loan fetched successfully", "loan": loan})

    @app.put("/loans/<loan_id>")
    def update_loan(loan_id: str):
        owner_id = _ensure_owner_id()
        stored = loan_store.get_loan(owner_id, loan_id)
        if stored is None:
            return _failure("Loan not found or not authorized", 404)
        body = _json_body()
        terms = _merge_terms(stored, body)
        result = compute_accrual(terms, datetime.now(timezone.utc))
        loan = loan_store.update_terms(owner_id, loan_id, terms, result)
        if loan is None:
            return _failure("Loan not found or not authorized", 404)
        return jsonify({"success": True, "message": "Loan updated successfully", "loan": loan})

    @app.patch("/loans/<loan_id>/status")
    def update_status(loan_id: str):
        body = _json_body()
        status = body.get("status")
        if status is not None and status not in LOAN_STATUSES:
            return _failure(f"Status must be one of: {', '.join(LOAN_STATUSES)}", 400)
        is_archived = body.get("isArchived")
        if is_archived is not None and not isinstance(is_archived, bool):
            return _failure("isArchived must be a boolean", 400)
        loan = loan_store.set_status(_ensure_owner_id(), loan_id, status=status, is_archived=is_archived)
        if loan is None:
            return _failure("Loan not found or not authorized", 404)
        return jsonify({"success": True, "message": "Loan status updated successfully", "loan": loan})

    @app.delete("/loans/<loan_id>")
    def delete_loan(loan_id: str):
        if not loan_store.delete_loan(_ensure_owner_id(), loan_id):
            return _failure("Loan not found or not authorized", 404)
        return jsonify({"success": True, "message": "Loan deleted successfully"})

    @app.get("/dashboard")
    def dashboard():
        return jsonify({"success": True, "data": loan_store.dashboard(_ensure_owner_id())})

    # Backfills rows of every owner; disable with LOAN_LEDGER_ALLOW_MIGRATIONS=0
    @app.post("/migrate-loans")
    def migrate_loans():
        if not settings.allow_migrations:
            return _failure("Migrations are disabled", 403)
        updated = loan_store.backfill_status()
        return jsonify({"success": True, "message": f"{updated} loans updated."})

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    print("Starting Loan Ledger web app...")
    create_app(settings).run(host=settings.host, port=settings.port, debug=True)
