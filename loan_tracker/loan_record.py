"""Adapter between stored loan records and the amortization engine.

Loan records are kept as JSON with camelCase keys, and the extra payments and
rate adjustments inside them hold the raw text typed into the editing forms.
``LoanRecord`` parses that shape into engine inputs and writes the derived
fields (current payment, remaining balance, payoff date) back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .data_models import ExtraPayment, LoanTerms, RateAdjustment
from .engine import (
    convert_term_to_months,
    generate_payment_schedule,
    payments_made_as_of,
    remaining_balance_after,
)
from .errors import InvalidInputError, ParseError
from .utils import int_from_value, parse_date, to_cents, to_decimal
from .validators import (
    is_valid_extra_payment,
    is_valid_rate_adjustment,
    parse_extra_payment,
    parse_rate_adjustment,
)

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class LoanRecord:
    """A loan as the app stores it.

    ``early_payments`` and ``rate_adjustments`` are the raw form dicts, e.g.
    ``{"id": "a1", "type": "recurring", "amount": "200", "month": "3",
    "frequency": "1"}`` and ``{"id": "r1", "month": "25", "newRate": "4.5"}``.
    """

    id: str
    amount: Decimal
    interest_rate: Decimal
    term: int
    term_unit: str
    start_date: date
    name: str = ""
    early_payments: List[Dict[str, Any]] = field(default_factory=list)
    rate_adjustments: List[Dict[str, Any]] = field(default_factory=list)
    current_monthly_payment: Optional[Decimal] = None
    remaining_balance: Optional[Decimal] = None
    freedom_date: Optional[date] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoanRecord":
        """Build a record from its JSON form.

        Raises ``InvalidInputError`` when the loan fields themselves do not
        parse; malformed adjustment drafts are kept as-is and later ignored by
        the engine.
        """
        try:
            amount = to_decimal(data.get("amount"))
            interest_rate = to_decimal(data.get("interestRate", 0))
            term = int_from_value(data.get("term"))
            start_date = parse_date(data.get("startDate"))
        except ParseError as exc:
            raise InvalidInputError(str(exc)) from exc
        return cls(
            id=data.get("id") or uuid4().hex,
            name=data.get("name") or "",
            amount=amount,
            interest_rate=interest_rate,
            term=term,
            term_unit=data.get("termUnit") or "months",
            start_date=start_date,
            early_payments=[dict(p) for p in data.get("earlyPayments") or []],
            rate_adjustments=[dict(a) for a in data.get("rateAdjustments") or []],
            created_at=data.get("createdAt"),
        )

    @property
    def term_in_months(self) -> int:
        return convert_term_to_months(self.term, self.term_unit)

    def to_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.amount,
            annual_rate_percent=self.interest_rate,
            term_in_months=self.term_in_months,
            start_date=self.start_date,
        )

    def extra_payments(self) -> List[ExtraPayment]:
        """Parse the committed early-payment drafts; invalid drafts are dropped."""
        term = self.term_in_months
        payments: List[ExtraPayment] = []
        for draft in self.early_payments:
            if not is_valid_extra_payment(draft, term):
                logger.warning("Skipping invalid early payment %r on loan %s", draft.get("id"), self.id)
                continue
            payments.append(parse_extra_payment(draft))
        return payments

    def parsed_rate_adjustments(self) -> List[RateAdjustment]:
        """Parse the rate-adjustment drafts, sorted by month; invalid drafts are dropped."""
        term = self.term_in_months
        adjustments: List[RateAdjustment] = []
        for draft in self.rate_adjustments:
            if not is_valid_rate_adjustment(draft, term):
                logger.warning("Skipping invalid rate adjustment %r on loan %s", draft.get("id"), self.id)
                continue
            adjustments.append(parse_rate_adjustment(draft))
        return sorted(adjustments, key=lambda adj: adj.month)

    def schedule(self):
        return generate_payment_schedule(
            self.to_terms(), self.extra_payments(), self.parsed_rate_adjustments()
        )

    def refresh(self, as_of: Optional[date] = None) -> "LoanRecord":
        """Recompute the derived fields from a fresh schedule."""
        as_of = as_of or date.today()
        schedule = self.schedule()
        made = payments_made_as_of(self.start_date, as_of, len(schedule))
        if made < len(schedule):
            upcoming = schedule[made]
            self.current_monthly_payment = upcoming.payment - upcoming.extra_payment
        else:
            self.current_monthly_payment = Decimal("0")
        self.remaining_balance = remaining_balance_after(schedule, made)
        self.freedom_date = schedule[-1].date
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
        return self

    def to_dict(self) -> Dict[str, Any]:
        def money(value: Optional[Decimal]) -> Optional[float]:
            return None if value is None else float(to_cents(value))

        return {
            "id": self.id,
            "name": self.name,
            "amount": float(self.amount),
            "interestRate": float(self.interest_rate),
            "term": self.term,
            "termUnit": self.term_unit,
            "startDate": self.start_date.isoformat(),
            "earlyPayments": [
                {k: _text(v) if k not in ("id", "type", "name") else v for k, v in p.items()}
                for p in self.early_payments
            ],
            "rateAdjustments": [
                {k: _text(v) if k not in ("id", "name") else v for k, v in a.items()}
                for a in self.rate_adjustments
            ],
            "currentMonthlyPayment": money(self.current_monthly_payment),
            "remainingBalance": money(self.remaining_balance),
            "freedomDate": self.freedom_date.isoformat() if self.freedom_date else None,
            "createdAt": self.created_at,
        }
