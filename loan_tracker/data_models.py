"""Data models for the loan tracker.

This module defines dataclasses representing the entities exchanged with the
amortization engine: the loan terms, extra (early) payments, rate
adjustments, individual schedule entries and the aggregate payment and
savings results. Money values are ``Decimal`` and are kept at full precision;
call ``rounded()`` on a result to get the cent-rounded view used for display.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from .utils import to_cents


ONE_TIME = "one-time"
RECURRING = "recurring"
EXTRA_PAYMENT_TYPES = (ONE_TIME, RECURRING)


@dataclass(frozen=True)
class LoanTerms:
    """The immutable inputs of one schedule calculation.

    Attributes
    ----------
    principal: Decimal
        Original borrowed amount.
    annual_rate_percent: Decimal
        Nominal annual interest rate, e.g. ``Decimal("5.5")`` for 5.5 %.
    term_in_months: int
        Total number of scheduled payments.
    start_date: date
        Loan origination date. Payment ``k`` falls ``k`` calendar months later.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    term_in_months: int
    start_date: date


@dataclass(frozen=True)
class ExtraPayment:
    """A payment above the scheduled installment, applied entirely to principal.

    Attributes
    ----------
    amount: Decimal
        Extra amount paid each time the payment applies.
    type: str
        ``"one-time"`` or ``"recurring"``.
    month: Optional[int]
        Payment number a one-time payment applies to (1-indexed).
    start_month: Optional[int]
        First payment number of a recurring payment.
    frequency_months: int
        A recurring payment repeats every ``frequency_months`` payments.
    end_month: Optional[int]
        Last payment number a recurring payment may apply to. ``None`` means
        until the loan is paid off.
    """

    amount: Decimal
    type: str = ONE_TIME
    month: Optional[int] = None
    start_month: Optional[int] = None
    frequency_months: int = 1
    end_month: Optional[int] = None
    id: Optional[str] = None
    name: Optional[str] = None

    @property
    def first_month(self) -> Optional[int]:
        if self.type == RECURRING and self.start_month is not None:
            return self.start_month
        return self.month


@dataclass(frozen=True)
class RateAdjustment:
    """A new annual rate effective from payment ``month`` onward."""

    month: int
    new_annual_rate_percent: Decimal
    id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ScheduleEntry:
    """One payment of the amortization schedule.

    ``payment`` is always ``interest_portion + principal_portion``; the extra
    amount applied this month is already part of ``principal_portion`` and is
    reported separately in ``extra_payment``.
    """

    payment_number: int
    date: date
    payment: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal
    extra_payment: Decimal = Decimal("0")
    annual_rate_percent: Decimal = Decimal("0")

    def rounded(self) -> "ScheduleEntry":
        return replace(
            self,
            payment=to_cents(self.payment),
            principal_portion=to_cents(self.principal_portion),
            interest_portion=to_cents(self.interest_portion),
            remaining_balance=to_cents(self.remaining_balance),
            extra_payment=to_cents(self.extra_payment),
        )


@dataclass(frozen=True)
class PaymentCalculation:
    monthly_payment: Decimal
    total_payment: Decimal
    total_interest: Decimal

    def rounded(self) -> "PaymentCalculation":
        return PaymentCalculation(
            monthly_payment=to_cents(self.monthly_payment),
            total_payment=to_cents(self.total_payment),
            total_interest=to_cents(self.total_interest),
        )


@dataclass(frozen=True)
class SavingsCalculation:
    """Effect of the extra payments compared with paying only the installment.

    Both schedules include the same rate adjustments, so the difference is
    attributable to the extra payments alone.
    """

    interest_saved: Decimal
    period_decrease: int
    total_interest: Decimal
    actual_total_payment: Decimal
    baseline_total_interest: Decimal = Decimal("0")
    baseline_payments: int = 0
    extra_paid: Decimal = field(default=Decimal("0"))
