"""Command-line interface for the loan tracker.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute the fixed monthly payment, full amortization
schedules with extra payments and rate changes, summaries, and the savings
that extra payments produce. Schedules can be printed to the terminal or
exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .data_models import ONE_TIME, RECURRING, ExtraPayment, LoanTerms, RateAdjustment, ScheduleEntry
from .engine import (
    calculate_payment,
    calculate_savings,
    convert_term_to_months,
    generate_payment_schedule,
    summarize_schedule,
)
from .formatter import print_savings, print_schedule, print_summary
from .utils import decimal_from_str, int_from_value, parse_date
from .validators import insert_rate_adjustment, is_valid_extra_payment

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_extra_payment_strings(values: Tuple[str, ...], term: int) -> List[ExtraPayment]:
    """Parse ``MONTH:AMOUNT`` (one-time) and ``START:AMOUNT:FREQ[:END]`` (recurring)."""
    payments: List[ExtraPayment] = []
    for index, item in enumerate(values, start=1):
        parts = item.split(":")
        if len(parts) not in (2, 3, 4):
            raise click.BadParameter(
                f"Extra payment must be MONTH:AMOUNT or START:AMOUNT:FREQ[:END]; got {item}"
            )
        try:
            month = int_from_value(parts[0])
            amount = decimal_from_str(str(parse_amount(parts[1])))
            if len(parts) == 2:
                payment = ExtraPayment(id=f"extra-{index}", amount=amount, type=ONE_TIME, month=month)
            else:
                payment = ExtraPayment(
                    id=f"extra-{index}",
                    amount=amount,
                    type=RECURRING,
                    start_month=month,
                    frequency_months=int_from_value(parts[2]),
                    end_month=int_from_value(parts[3]) if len(parts) == 4 else None,
                )
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        if not is_valid_extra_payment(payment, term):
            raise click.BadParameter(f"Extra payment {item} is out of range for a {term}-month loan")
        payments.append(payment)
    return payments


def parse_rate_change_strings(values: Tuple[str, ...], term: int) -> List[RateAdjustment]:
    """Parse ``MONTH:RATE`` rate changes into a sorted, month-unique list."""
    adjustments: List[RateAdjustment] = []
    for index, item in enumerate(values, start=1):
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Rate change must be in MONTH:RATE format; got {item}")
        try:
            adjustment = RateAdjustment(
                id=f"rate-{index}",
                month=int_from_value(parts[0]),
                new_annual_rate_percent=decimal_from_str(parts[1].rstrip("%")),
            )
            adjustments = insert_rate_adjustment(adjustments, adjustment, term)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    return adjustments


def build_inputs_from_options(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra: Tuple[str, ...] = (),
    rate_change: Tuple[str, ...] = (),
) -> Tuple[LoanTerms, List[ExtraPayment], List[RateAdjustment]]:
    try:
        term_in_months = convert_term_to_months(term, term_unit)
        start_dt = parse_date(start_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    terms = LoanTerms(
        principal=decimal_from_str(str(parse_amount(principal))),
        annual_rate_percent=decimal_from_str(str(rate)),
        term_in_months=term_in_months,
        start_date=start_dt,
    )
    extra_payments = parse_extra_payment_strings(extra, term_in_months) if extra else []
    adjustments = parse_rate_change_strings(rate_change, term_in_months) if rate_change else []
    return terms, extra_payments, adjustments


def serialize_entry(entry: ScheduleEntry) -> Dict[str, Any]:
    rounded = entry.rounded()
    return {
        "payment_number": rounded.payment_number,
        "date": rounded.date.isoformat(),
        "payment": float(rounded.payment),
        "principal": float(rounded.principal_portion),
        "interest": float(rounded.interest_portion),
        "extra": float(rounded.extra_payment),
        "balance": float(rounded.remaining_balance),
        "annual_rate_percent": float(rounded.annual_rate_percent),
    }


def export_to_json(path: Path, schedule: List[ScheduleEntry], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary, "schedule": [serialize_entry(e) for e in schedule]}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = ["Payment_Number", "Date", "Payment", "Principal", "Interest", "Extra", "Balance", "Rate"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            row = serialize_entry(e)
            writer.writerow(
                [
                    row["payment_number"],
                    row["date"],
                    row["payment"],
                    row["principal"],
                    row["interest"],
                    row["extra"],
                    row["balance"],
                    row["annual_rate_percent"],
                ]
            )


def loan_options(func: Callable) -> Callable:
    """Attach the options every loan command shares."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (e.g. 250000 or 250k)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term"),
        click.option(
            "--term-unit", "term_unit", type=click.Choice(["months", "years"]), default="months",
            help="Unit of --term",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def schedule_options(func: Callable) -> Callable:
    """Attach the options of commands that build a full schedule."""
    options = [
        click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)"),
        click.option(
            "--extra", "extra", multiple=True,
            help="Extra payment: MONTH:AMOUNT (one-time) or START:AMOUNT:FREQ[:END] (recurring)",
        ),
        click.option("--rate-change", "rate_change", multiple=True, help="Rate change in MONTH:RATE format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug details")
def cli(verbose: bool) -> None:
    """A command-line loan tracker with extra payments and rate changes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
def payment(principal: str, rate: float, term: int, term_unit: str) -> None:
    """Compute the fixed monthly payment of a standard loan."""
    try:
        result = calculate_payment(
            decimal_from_str(str(parse_amount(principal))),
            decimal_from_str(str(rate)),
            convert_term_to_months(term, term_unit),
        ).rounded()
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Monthly payment    : {result.monthly_payment:.2f}")
    click.echo(f"Total payment      : {result.total_payment:.2f}")
    click.echo(f"Total interest     : {result.total_interest:.2f}")


@cli.command()
@loan_options
@schedule_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra: Tuple[str, ...],
    rate_change: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    terms, extra_payments, adjustments = build_inputs_from_options(
        principal, rate, term, term_unit, start_date, extra, rate_change
    )
    try:
        schedule_entries = generate_payment_schedule(terms, extra_payments, adjustments)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    summary_data = summarize_schedule(terms, schedule_entries)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_entries, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule_entries) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(schedule_entries)} rows; showing first {MAX_PRINTED_ROWS} rows.")
    print_schedule(schedule_entries[:MAX_PRINTED_ROWS], show_rate=bool(adjustments))


@cli.command()
@loan_options
@schedule_options
def summary(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra: Tuple[str, ...],
    rate_change: Tuple[str, ...],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    terms, extra_payments, adjustments = build_inputs_from_options(
        principal, rate, term, term_unit, start_date, extra, rate_change
    )
    try:
        schedule_entries = generate_payment_schedule(terms, extra_payments, adjustments)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    print_summary(summarize_schedule(terms, schedule_entries))


@cli.command()
@loan_options
@schedule_options
def savings(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra: Tuple[str, ...],
    rate_change: Tuple[str, ...],
) -> None:
    """Compare the loan with and without its extra payments."""
    terms, extra_payments, adjustments = build_inputs_from_options(
        principal, rate, term, term_unit, start_date, extra, rate_change
    )
    if not extra_payments:
        raise click.UsageError("Give at least one --extra payment to compare against")
    try:
        result = calculate_savings(terms, extra_payments, adjustments)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    print_savings(result)


if __name__ == "__main__":
    cli()
