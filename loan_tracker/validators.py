"""Input validation for rate adjustments and extra payments.

The predicates accept either the engine dataclasses or the plain dicts the
editing forms produce, where every value is still text (``{"month": "13",
"newRate": "4.5"}``). Text that fails to parse makes the draft invalid; it
never raises. ``parse_extra_payment`` and ``parse_rate_adjustment`` read the
fields for the predicates, the loan-record adapter and the schedule
generator alike, so a draft rejected here is also ignored there.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from .data_models import EXTRA_PAYMENT_TYPES, ONE_TIME, RECURRING, ExtraPayment, RateAdjustment
from .errors import DuplicateAdjustmentError, ParseError
from .utils import int_from_value, to_decimal

logger = logging.getLogger(__name__)

MIN_ADJUSTMENT_MONTH = 2
MAX_ADJUSTED_RATE = Decimal("30")


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, dict):
            if obj.get(name) not in (None, ""):
                return obj[name]
        elif getattr(obj, name, None) is not None:
            return getattr(obj, name)
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int_from_value(value)


def parse_rate_adjustment(adjustment: Any) -> RateAdjustment:
    """Read a rate adjustment from a dataclass or a form dict.

    Accepts ``new_annual_rate_percent`` or ``newRate`` for the rate. Raises
    ``ParseError`` when the month or rate is missing or not a number; range
    checks are left to ``is_valid_rate_adjustment``.
    """
    return RateAdjustment(
        id=_field(adjustment, "id"),
        name=_field(adjustment, "name"),
        month=int_from_value(_field(adjustment, "month")),
        new_annual_rate_percent=to_decimal(
            _field(adjustment, "new_annual_rate_percent", "newRate")
        ),
    )


def parse_extra_payment(payment: Any) -> ExtraPayment:
    """Read an extra payment from a dataclass or a form dict.

    Recurring payments take their first month from ``start_month``,
    ``startMonth`` or ``month`` and their spacing from ``frequency_months``,
    ``frequencyMonths`` or ``frequency``. Raises ``ParseError`` for an unknown
    type or a field that does not parse.
    """
    payment_type = _field(payment, "type") or ONE_TIME
    if payment_type not in EXTRA_PAYMENT_TYPES:
        raise ParseError(f"Unknown extra payment type: {payment_type}")
    amount = to_decimal(_field(payment, "amount"))
    if payment_type == RECURRING:
        return ExtraPayment(
            id=_field(payment, "id"),
            name=_field(payment, "name"),
            amount=amount,
            type=RECURRING,
            start_month=int_from_value(_field(payment, "start_month", "startMonth", "month")),
            frequency_months=int_from_value(
                _field(payment, "frequency_months", "frequencyMonths", "frequency")
            ),
            end_month=_optional_int(_field(payment, "end_month", "endMonth")),
        )
    return ExtraPayment(
        id=_field(payment, "id"),
        name=_field(payment, "name"),
        amount=amount,
        type=ONE_TIME,
        month=int_from_value(_field(payment, "month")),
    )


def is_valid_rate_adjustment(adjustment: Any, term_in_months: int) -> bool:
    """Return ``True`` when the new rate is within 0-30 % and the month is
    between 2 and the loan term."""
    try:
        parsed = parse_rate_adjustment(adjustment)
    except ParseError:
        return False
    rate = parsed.new_annual_rate_percent
    if rate < 0 or rate > MAX_ADJUSTED_RATE:
        return False
    return MIN_ADJUSTMENT_MONTH <= parsed.month <= term_in_months


def is_valid_extra_payment(payment: Any, term_in_months: int) -> bool:
    """Return ``True`` when the amount is positive and the payment lands on
    at least one month of the loan.

    One-time payments need ``1 <= month <= term``. Recurring payments need a
    start month in the same range, a frequency of at least one month and, if
    set, an end month no earlier than the start month.
    """
    try:
        parsed = parse_extra_payment(payment)
    except ParseError:
        return False
    if parsed.amount <= 0:
        return False
    if not 1 <= parsed.first_month <= term_in_months:
        return False
    if parsed.frequency_months < 1:
        return False
    if parsed.end_month is not None and parsed.end_month < parsed.first_month:
        return False
    return True


def insert_rate_adjustment(
    adjustments: Sequence[RateAdjustment],
    adjustment: RateAdjustment,
    term_in_months: int,
) -> List[RateAdjustment]:
    """Return a new list with ``adjustment`` added, sorted by month.

    An adjustment carrying the ``id`` of an existing entry replaces it, which
    is how an edit is committed. Any other adjustment for a month that is
    already taken raises ``DuplicateAdjustmentError``; an out-of-range draft
    raises ``ValueError``.
    """
    if not is_valid_rate_adjustment(adjustment, term_in_months):
        raise ValueError(
            f"Rate adjustment must have a rate between 0 and {MAX_ADJUSTED_RATE}% "
            f"and a month between {MIN_ADJUSTMENT_MONTH} and {term_in_months}"
        )
    kept = [
        adj for adj in adjustments
        if adjustment.id is None or adj.id != adjustment.id
    ]
    for adj in kept:
        if adj.month == adjustment.month:
            raise DuplicateAdjustmentError(
                f"A rate adjustment already exists for month {adjustment.month}"
            )
    kept.append(adjustment)
    logger.debug("Rate adjustment at month %s committed", adjustment.month)
    return sorted(kept, key=lambda adj: adj.month)
