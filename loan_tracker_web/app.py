import logging
import os

from flask import Flask, abort, jsonify, request

from loan_tracker.engine import (
    calculate_payment,
    calculate_savings,
    convert_term_to_months,
    summarize_schedule,
)
from loan_tracker.loan_record import LoanRecord
from loan_tracker.main import serialize_entry
from loan_tracker.utils import to_cents
from loan_tracker_web.loan_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
loan_store = create_store_from_env(os.environ.get("LOAN_DATABASE_URL"))

SCHEDULE_PREVIEW_ROWS = 120


@app.errorhandler(ValueError)
def handle_value_error(exc):
    logger.info("Rejected request to %s: %s", request.path, exc)
    return jsonify({"error": str(exc)}), 400


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _schedule_payload(record: LoanRecord, show_full_schedule: bool) -> dict:
    terms = record.to_terms()
    schedule = record.schedule()
    summary = summarize_schedule(terms, schedule)
    serialized = [serialize_entry(entry) for entry in schedule]
    if not show_full_schedule and len(serialized) > SCHEDULE_PREVIEW_ROWS:
        summary["truncated"] = len(serialized) - SCHEDULE_PREVIEW_ROWS
        serialized = serialized[:SCHEDULE_PREVIEW_ROWS]
    return {"summary": summary, "schedule": serialized}


def _stored_record(loan_id: str) -> LoanRecord:
    data = loan_store.get_loan(loan_id)
    if data is None:
        abort(404)
    return LoanRecord.from_dict(data)


@app.post("/api/payment")
def payment():
    body = _json_body()
    result = calculate_payment(
        body.get("amount", body.get("principal")),
        body.get("interestRate", body.get("annualRatePercent", 0)),
        convert_term_to_months(body.get("term"), body.get("termUnit", "months")),
    )
    return jsonify(
        {
            "monthlyPayment": float(to_cents(result.monthly_payment)),
            "totalPayment": float(to_cents(result.total_payment)),
            "totalInterest": float(to_cents(result.total_interest)),
        }
    )


@app.post("/api/schedule")
def schedule():
    record = LoanRecord.from_dict(_json_body())
    return jsonify(_schedule_payload(record, request.args.get("full") == "1"))


@app.get("/api/loans")
def list_loans():
    return jsonify(loan_store.list_loans())


@app.post("/api/loans")
def create_loan():
    record = LoanRecord.from_dict(_json_body()).refresh()
    if loan_store.get_loan(record.id) is not None:
        raise ValueError(f"Loan {record.id} already exists")
    data = record.to_dict()
    loan_store.add_loan(data)
    return jsonify(data), 201


@app.delete("/api/loans")
def clear_loans():
    loan_store.clear_loans()
    return "", 204


@app.get("/api/loans/<loan_id>")
def get_loan(loan_id: str):
    data = loan_store.get_loan(loan_id)
    if data is None:
        abort(404)
    return jsonify(data)


@app.put("/api/loans/<loan_id>")
def update_loan(loan_id: str):
    existing = loan_store.get_loan(loan_id)
    if existing is None:
        abort(404)
    body = dict(_json_body(), id=loan_id)
    body.setdefault("createdAt", existing.get("createdAt"))
    data = LoanRecord.from_dict(body).refresh().to_dict()
    loan_store.update_loan(data)
    return jsonify(data)


@app.delete("/api/loans/<loan_id>")
def delete_loan(loan_id: str):
    if not loan_store.delete_loan(loan_id):
        abort(404)
    return "", 204


@app.get("/api/loans/<loan_id>/schedule")
def loan_schedule(loan_id: str):
    record = _stored_record(loan_id)
    return jsonify(_schedule_payload(record, request.args.get("full") == "1"))


@app.get("/api/loans/<loan_id>/savings")
def loan_savings(loan_id: str):
    record = _stored_record(loan_id)
    result = calculate_savings(
        record.to_terms(), record.extra_payments(), record.parsed_rate_adjustments()
    )
    return jsonify(
        {
            "interestSaved": float(to_cents(result.interest_saved)),
            "periodDecrease": result.period_decrease,
            "totalInterest": float(to_cents(result.total_interest)),
            "actualTotalPayment": float(to_cents(result.actual_total_payment)),
            "baselineTotalInterest": float(to_cents(result.baseline_total_interest)),
            "extraPaid": float(to_cents(result.extra_paid)),
        }
    )


if __name__ == "__main__":
    print("Starting Loan Tracker API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
