"""Shared fixtures.

Canonical loan: $100K, 6 %, 30 years, originated 2024-01-01. Its fixed payment
is $599.55 and the first payment splits into $500.00 interest and $99.55
principal.
"""

import os
from datetime import date
from decimal import Decimal

import pytest

# The web app opens its store at import time
os.environ.setdefault("LOAN_DATABASE_URL", "sqlite://")

from loan_tracker.data_models import LoanTerms  # noqa: E402
from loan_tracker_web.loan_store import LoanStore  # noqa: E402


@pytest.fixture
def standard_terms() -> LoanTerms:
    return LoanTerms(
        principal=Decimal("100000"),
        annual_rate_percent=Decimal("6"),
        term_in_months=360,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def zero_rate_terms() -> LoanTerms:
    return LoanTerms(
        principal=Decimal("12000"),
        annual_rate_percent=Decimal("0"),
        term_in_months=12,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def loan_record_data() -> dict:
    """A loan record as the app stores it, with text form fields."""
    return {
        "id": "loan-1",
        "name": "House",
        "amount": 100000,
        "interestRate": 6,
        "term": 30,
        "termUnit": "years",
        "startDate": "2024-01-01",
        "earlyPayments": [
            {"id": "e1", "type": "one-time", "amount": "50000", "month": "1"},
        ],
        "rateAdjustments": [],
    }


@pytest.fixture
def store(tmp_path) -> LoanStore:
    return LoanStore(f"sqlite:///{tmp_path / 'loans.sqlite3'}")


@pytest.fixture
def client(store, monkeypatch):
    from loan_tracker_web import app as web_app

    monkeypatch.setattr(web_app, "loan_store", store)
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as test_client:
        yield test_client
