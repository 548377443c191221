"""Core calculation engine for the loan tracker.

This module implements the financial logic required to build amortization
schedules for fixed-rate annuity loans. It supports one-time and recurring
extra payments applied to principal and mid-term rate adjustments, which
re-amortize the remaining balance over the remaining term so the payoff date
is preserved. Every function is pure: results depend only on the arguments.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .data_models import (
    RECURRING,
    ExtraPayment,
    LoanTerms,
    PaymentCalculation,
    RateAdjustment,
    SavingsCalculation,
    ScheduleEntry,
)
from .errors import InvalidInputError, ParseError
from .utils import Number, add_months, int_from_value, months_between, parse_date, to_cents, to_decimal
from .validators import (
    is_valid_extra_payment,
    is_valid_rate_adjustment,
    parse_extra_payment,
    parse_rate_adjustment,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HALF_CENT = Decimal("0.005")
TERM_UNITS = {"months": 1, "years": 12}


def _monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal(100) / Decimal(12)


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def _validate_loan_numbers(
    principal: Number, annual_rate_percent: Number, term_in_months: Number
) -> Tuple[Decimal, Decimal, int]:
    try:
        principal_value = to_decimal(principal)
        rate_value = to_decimal(annual_rate_percent)
        term_value = int_from_value(term_in_months)
    except ParseError as exc:
        raise InvalidInputError(str(exc)) from exc
    if principal_value <= 0:
        raise InvalidInputError("Principal must be positive")
    if rate_value < 0:
        raise InvalidInputError("Interest rate cannot be negative")
    if term_value <= 0:
        raise InvalidInputError("Term must be positive")
    return principal_value, rate_value, term_value


def _validate_terms(terms: LoanTerms) -> Tuple[Decimal, Decimal, int, date]:
    principal, rate, term = _validate_loan_numbers(
        terms.principal, terms.annual_rate_percent, terms.term_in_months
    )
    if terms.start_date is None:
        raise InvalidInputError("Start date is required")
    try:
        start_date = parse_date(terms.start_date)
    except ParseError as exc:
        raise InvalidInputError(str(exc)) from exc
    return principal, rate, term, start_date


def calculate_payment(
    principal: Number, annual_rate_percent: Number, term_in_months: Number
) -> PaymentCalculation:
    """Return the fixed monthly payment of a standard amortizing loan.

    The values are kept at full precision; use ``PaymentCalculation.rounded()``
    for display. Raises ``InvalidInputError`` for a non-positive principal or
    term, or a negative rate.
    """
    principal_value, rate_value, term_value = _validate_loan_numbers(
        principal, annual_rate_percent, term_in_months
    )
    monthly_payment = _calculate_annuity_payment(
        principal_value, _monthly_rate(rate_value), term_value
    )
    total_payment = monthly_payment * term_value
    return PaymentCalculation(
        monthly_payment=monthly_payment,
        total_payment=total_payment,
        total_interest=total_payment - principal_value,
    )


def convert_term_to_months(term_value: Number, unit: str = "months") -> int:
    """Convert a loan term given in ``"months"`` or ``"years"`` to months."""
    factor = TERM_UNITS.get(str(unit).strip().lower())
    if factor is None:
        raise InvalidInputError(f"Term unit must be 'months' or 'years'; got {unit}")
    try:
        value = int_from_value(term_value)
    except ParseError as exc:
        raise InvalidInputError(str(exc)) from exc
    if value <= 0:
        raise InvalidInputError("Term must be positive")
    return value * factor


def _prepare_rate_adjustments(
    rate_adjustments: Iterable[Any], term: int
) -> Dict[int, Decimal]:
    """Return a month -> new annual rate mapping.

    Accepts ``RateAdjustment`` objects or form dicts. Adjustments outside the
    valid range are skipped. When two adjustments share a month, the first
    one is kept.
    """
    valid: List[RateAdjustment] = []
    for adj in rate_adjustments:
        if not is_valid_rate_adjustment(adj, term):
            logger.warning("Ignoring rate adjustment %r: month or rate out of range", adj)
            continue
        valid.append(parse_rate_adjustment(adj))

    mapping: Dict[int, Decimal] = {}
    # sorted() is stable, so the first adjustment given for a month wins
    for adj in sorted(valid, key=lambda a: a.month):
        if adj.month in mapping:
            logger.warning("Ignoring duplicate rate adjustment for month %s", adj.month)
            continue
        mapping[adj.month] = adj.new_annual_rate_percent
    return mapping


def _prepare_extra_payments(
    extra_payments: Iterable[Any], term: int
) -> Dict[int, Decimal]:
    """Expand one-time and recurring extra payments into a month -> amount map.

    Accepts ``ExtraPayment`` objects or form dicts. Amounts landing on the
    same month accumulate.
    """
    mapping: Dict[int, Decimal] = {}
    for draft in extra_payments:
        if not is_valid_extra_payment(draft, term):
            logger.warning("Ignoring extra payment %r: invalid amount or month", draft)
            continue
        op = parse_extra_payment(draft)
        if op.type == RECURRING:
            month = op.first_month
            last = term if op.end_month is None else min(op.end_month, term)
            while month <= last:
                mapping[month] = mapping.get(month, ZERO) + op.amount
                month += op.frequency_months
        else:
            mapping[op.month] = mapping.get(op.month, ZERO) + op.amount
    return mapping


def generate_payment_schedule(
    terms: LoanTerms,
    extra_payments: Optional[Iterable[ExtraPayment]] = None,
    rate_adjustments: Optional[Iterable[RateAdjustment]] = None,
) -> List[ScheduleEntry]:
    """Compute the month-by-month amortization schedule of a loan.

    Parameters
    ----------
    terms: LoanTerms
        Principal, annual rate, term and origination date.
    extra_payments: Iterable[ExtraPayment]
        Extra principal payments. Invalid entries are ignored.
    rate_adjustments: Iterable[RateAdjustment]
        Rate changes. At each one the remaining balance is re-amortized over
        the remaining months of the original term at the new rate. Invalid
        entries are ignored.

    Returns
    -------
    List[ScheduleEntry]
        One entry per payment, at most ``term_in_months`` long. The list ends
        early when extra payments retire the balance, and the last entry
        always has a remaining balance of exactly zero.
    """
    principal, annual_rate, term, start_date = _validate_terms(terms)

    rate_map = _prepare_rate_adjustments(rate_adjustments or (), term)
    extra_map = _prepare_extra_payments(extra_payments or (), term)

    balance = principal
    current_rate = annual_rate
    monthly_payment = _calculate_annuity_payment(principal, _monthly_rate(current_rate), term)

    schedule: List[ScheduleEntry] = []
    for period in range(1, term + 1):
        if period in rate_map:
            # Re-amortize the remaining balance over the rest of the original term
            current_rate = rate_map[period]
            monthly_payment = _calculate_annuity_payment(
                balance, _monthly_rate(current_rate), term - period + 1
            )

        interest_portion = balance * _monthly_rate(current_rate)
        scheduled_principal = monthly_payment - interest_portion
        extra = extra_map.get(period, ZERO)
        principal_portion = scheduled_principal + extra
        extra_applied = extra

        # The final payment retires whatever is left, including sub-cent drift
        if (
            principal_portion >= balance
            or period == term
            or balance - principal_portion < HALF_CENT
        ):
            principal_portion = balance
            extra_applied = min(extra, max(ZERO, principal_portion - scheduled_principal))
        balance -= principal_portion

        schedule.append(
            ScheduleEntry(
                payment_number=period,
                date=add_months(start_date, period),
                payment=interest_portion + principal_portion,
                principal_portion=principal_portion,
                interest_portion=interest_portion,
                remaining_balance=balance,
                extra_payment=extra_applied,
                annual_rate_percent=current_rate,
            )
        )
        if balance == 0:
            break

    logger.debug(
        "Generated %d of %d payments (%d rate adjustments, %d extra payment months)",
        len(schedule), term, len(rate_map), len(extra_map),
    )
    return schedule


def total_interest(schedule: Iterable[ScheduleEntry]) -> Decimal:
    return sum((entry.interest_portion for entry in schedule), ZERO)


def calculate_savings(
    terms: LoanTerms,
    extra_payments: Optional[Iterable[ExtraPayment]] = None,
    rate_adjustments: Optional[Iterable[RateAdjustment]] = None,
) -> SavingsCalculation:
    """Compare the schedule with extra payments against one without them.

    Both schedules apply the same rate adjustments, so interest saved and
    months saved are attributable to the extra payments only.
    """
    adjustments = list(rate_adjustments or ())
    with_extras = generate_payment_schedule(terms, extra_payments, adjustments)
    baseline = generate_payment_schedule(terms, None, adjustments)

    interest_with = total_interest(with_extras)
    interest_without = total_interest(baseline)
    return SavingsCalculation(
        interest_saved=interest_without - interest_with,
        period_decrease=len(baseline) - len(with_extras),
        total_interest=interest_with,
        actual_total_payment=sum((entry.payment for entry in with_extras), ZERO),
        baseline_total_interest=interest_without,
        baseline_payments=len(baseline),
        extra_paid=sum((entry.extra_payment for entry in with_extras), ZERO),
    )


def remaining_balance_after(schedule: List[ScheduleEntry], payments_made: int) -> Decimal:
    """Balance outstanding once the first ``payments_made`` payments are made."""
    if not schedule:
        return ZERO
    if payments_made <= 0:
        first = schedule[0]
        return first.remaining_balance + first.principal_portion
    if payments_made >= len(schedule):
        return ZERO
    return schedule[payments_made - 1].remaining_balance


def payments_made_as_of(start_date: date, as_of: date, term_in_months: int) -> int:
    """Number of payment dates falling on or before ``as_of``."""
    return max(0, min(term_in_months, months_between(start_date, as_of)))


def summarize_schedule(terms: LoanTerms, schedule: List[ScheduleEntry]) -> Dict[str, object]:
    """Aggregate metrics for a schedule, rounded to cents for display.

    Keys: ``principal``, ``monthly_payment`` (the installment before any rate
    change), ``current_payment`` (the installment after the last rate change),
    ``total_interest``, ``total_extra``, ``total_paid``, ``payments_made``,
    ``term_months``, ``original_end_date``, ``payoff_date`` and
    ``months_saved``.
    """
    principal, annual_rate, term, start_date = _validate_terms(terms)
    base = calculate_payment(principal, annual_rate, term)
    interest = total_interest(schedule)
    extra = sum((entry.extra_payment for entry in schedule), ZERO)
    paid = sum((entry.payment for entry in schedule), ZERO)

    current_payment = base.monthly_payment
    if schedule:
        # Last entry may be a partial payment; the one before shows the installment
        reference = schedule[-2] if len(schedule) > 1 else schedule[-1]
        current_payment = reference.payment - reference.extra_payment

    payoff_date = schedule[-1].date if schedule else add_months(start_date, term)
    return {
        "principal": float(to_cents(principal)),
        "annual_rate_percent": float(annual_rate),
        "monthly_payment": float(to_cents(base.monthly_payment)),
        "current_payment": float(to_cents(current_payment)),
        "total_interest": float(to_cents(interest)),
        "total_extra": float(to_cents(extra)),
        "total_paid": float(to_cents(paid)),
        "payments_made": len(schedule),
        "term_months": term,
        "original_end_date": add_months(start_date, term).isoformat(),
        "payoff_date": payoff_date.isoformat(),
        "months_saved": term - len(schedule) if schedule else 0,
    }
