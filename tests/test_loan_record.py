from datetime import date
from decimal import Decimal

import pytest

from loan_tracker.data_models import RECURRING
from loan_tracker.errors import InvalidInputError
from loan_tracker.loan_record import LoanRecord
from loan_tracker.utils import to_cents


class TestFromDict:
    def test_parses_record(self, loan_record_data):
        record = LoanRecord.from_dict(loan_record_data)
        assert record.amount == Decimal("100000")
        assert record.term_in_months == 360
        assert record.start_date == date(2024, 1, 1)

    def test_text_fields(self, loan_record_data):
        loan_record_data.update(amount="100,000", interestRate="6.5", term="360", termUnit="months")
        record = LoanRecord.from_dict(loan_record_data)
        assert record.amount == Decimal("100000")
        assert record.interest_rate == Decimal("6.5")
        assert record.term_in_months == 360

    def test_missing_id_gets_one(self, loan_record_data):
        del loan_record_data["id"]
        assert LoanRecord.from_dict(loan_record_data).id

    @pytest.mark.parametrize("field, value", [("amount", "abc"), ("term", ""), ("startDate", "soon")])
    def test_invalid_loan_fields(self, loan_record_data, field, value):
        loan_record_data[field] = value
        with pytest.raises(InvalidInputError):
            LoanRecord.from_dict(loan_record_data)


class TestEngineInputs:
    def test_invalid_drafts_are_dropped(self, loan_record_data):
        loan_record_data["earlyPayments"].append({"id": "bad", "type": "one-time", "amount": "", "month": "2"})
        loan_record_data["rateAdjustments"] = [
            {"id": "r2", "month": "120", "newRate": "4"},
            {"id": "r1", "month": "24", "newRate": "5"},
            {"id": "half-typed", "month": "1", "newRate": "4."},
        ]
        record = LoanRecord.from_dict(loan_record_data)
        assert [p.id for p in record.extra_payments()] == ["e1"]
        assert [a.month for a in record.parsed_rate_adjustments()] == [24, 120]

    def test_recurring_draft(self, loan_record_data):
        loan_record_data["earlyPayments"] = [
            {"id": "r", "type": "recurring", "amount": "100", "month": "2", "frequency": "12", "endMonth": "50"}
        ]
        (payment,) = LoanRecord.from_dict(loan_record_data).extra_payments()
        assert payment.type == RECURRING
        assert payment.start_month == 2
        assert payment.frequency_months == 12
        assert payment.end_month == 50

    def test_recurring_draft_camel_case_keys(self, loan_record_data):
        loan_record_data["earlyPayments"] = [
            {"id": "y", "type": "recurring", "amount": "100", "startMonth": "2", "frequencyMonths": "12"}
        ]
        record = LoanRecord.from_dict(loan_record_data)
        (payment,) = record.extra_payments()
        assert payment.start_month == 2
        assert payment.frequency_months == 12
        extra_months = [entry.payment_number for entry in record.schedule() if entry.extra_payment > 0]
        assert extra_months[:3] == [2, 14, 26]

    def test_frequency_months_with_month_key(self, loan_record_data):
        loan_record_data["earlyPayments"] = [
            {"type": "recurring", "amount": "100", "month": "2", "frequencyMonths": "12"}
        ]
        (payment,) = LoanRecord.from_dict(loan_record_data).extra_payments()
        assert payment.first_month == 2
        assert payment.frequency_months == 12

    def test_schedule_uses_extras(self, loan_record_data):
        schedule = LoanRecord.from_dict(loan_record_data).schedule()
        assert len(schedule) < 360
        assert schedule[-1].remaining_balance == 0


class TestRefresh:
    def test_derived_fields(self, loan_record_data):
        record = LoanRecord.from_dict(loan_record_data).refresh(as_of=date(2024, 3, 1))
        schedule = record.schedule()
        assert to_cents(record.current_monthly_payment) == Decimal("599.55")
        assert record.remaining_balance == schedule[1].remaining_balance
        assert record.freedom_date == schedule[-1].date
        assert record.created_at

    def test_before_first_payment(self, loan_record_data):
        loan_record_data["earlyPayments"] = []
        record = LoanRecord.from_dict(loan_record_data).refresh(as_of=date(2024, 1, 10))
        assert to_cents(record.remaining_balance) == Decimal("100000.00")
        assert record.freedom_date == date(2054, 1, 1)

    def test_paid_off(self, loan_record_data):
        record = LoanRecord.from_dict(loan_record_data).refresh(as_of=date(2060, 1, 1))
        assert record.remaining_balance == 0
        assert record.current_monthly_payment == 0

    def test_to_dict(self, loan_record_data):
        data = LoanRecord.from_dict(loan_record_data).refresh(as_of=date(2024, 3, 1)).to_dict()
        assert data["id"] == "loan-1"
        assert data["termUnit"] == "years"
        assert data["currentMonthlyPayment"] == 599.55
        assert data["earlyPayments"][0]["amount"] == "50000"
        assert data["freedomDate"] > "2024-01-01"
        assert LoanRecord.from_dict(data).to_dict()["earlyPayments"] == data["earlyPayments"]
