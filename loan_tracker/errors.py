"""Exceptions raised by the loan tracker.

All errors derive from ``ValueError`` so callers that only care about "bad
input" can catch a single type, the same way the command-line interface and
the web API do.
"""


class InvalidInputError(ValueError):
    """Loan terms that cannot be amortized (non-positive principal or term,
    negative rate, non-finite numbers, missing start date)."""


class ParseError(ValueError):
    """Text input that does not parse to the expected number or date."""


class DuplicateAdjustmentError(ValueError):
    """A rate adjustment was added for a month that already has one."""
