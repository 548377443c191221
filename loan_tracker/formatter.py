"""Output helpers for the loan tracker.

This module provides simple functions to render amortization schedules,
summaries and savings in a tabular text format. Amounts are rounded to cents
here and nowhere earlier. Output goes through ``click.echo`` so the command
line tests can capture it.
"""

from __future__ import annotations

from typing import Dict, Iterable

import click

from .data_models import SavingsCalculation, ScheduleEntry
from .utils import to_cents


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Principal          : {summary['principal']:.2f}")
    click.echo(f"Annual rate        : {summary['annual_rate_percent']:.3f}%")
    click.echo(f"Monthly payment    : {summary['monthly_payment']:.2f}")
    if summary.get("current_payment") != summary.get("monthly_payment"):
        click.echo(f"Current payment    : {summary['current_payment']:.2f}")
    click.echo(f"Total interest     : {summary['total_interest']:.2f}")
    if summary.get("total_extra"):
        click.echo(f"Total extra        : {summary['total_extra']:.2f}")
    click.echo(f"Total paid         : {summary['total_paid']:.2f}")
    click.echo(f"Original end date  : {summary['original_end_date']}")
    click.echo(f"Payoff date        : {summary['payoff_date']}")
    click.echo(f"Payments made      : {summary['payments_made']}")
    if summary.get("months_saved"):
        click.echo(f"Term reduction     : {int(summary['months_saved'])} months")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry], show_rate: bool = False) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[ScheduleEntry]
        The schedule entries to print.
    show_rate: bool
        Whether to include the annual rate in force for each payment. Only
        useful when the loan has rate adjustments.
    """
    headers = ["No", "Date", "Payment", "Principal", "Interest", "Extra", "Balance"]
    if show_rate:
        headers.append("Rate")
    click.echo("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.payment_number),
            entry.date.isoformat(),
            f"{to_cents(entry.payment):.2f}",
            f"{to_cents(entry.principal_portion):.2f}",
            f"{to_cents(entry.interest_portion):.2f}",
            f"{to_cents(entry.extra_payment):.2f}",
            f"{to_cents(entry.remaining_balance):.2f}",
        ]
        if show_rate:
            row.append(f"{entry.annual_rate_percent:.3f}")
        click.echo("\t".join(row))


def print_savings(savings: SavingsCalculation) -> None:
    """Print what the extra payments save compared with the installment alone."""
    click.echo("Savings from extra payments")
    click.echo("=" * 72)
    click.echo(f"{'Metric':20s} {'Baseline':>15s} {'With extras':>15s} {'Difference':>15s}")
    baseline_interest = to_cents(savings.baseline_total_interest)
    interest = to_cents(savings.total_interest)
    click.echo(
        f"{'total_interest':20s} {baseline_interest:15.2f} {interest:15.2f} "
        f"{interest - baseline_interest:15.2f}"
    )
    with_extras = savings.baseline_payments - savings.period_decrease
    click.echo(
        f"{'payments':20s} {savings.baseline_payments:15d} {with_extras:15d} "
        f"{-savings.period_decrease:15d}"
    )
    click.echo(f"Extra paid         : {to_cents(savings.extra_paid):.2f}")
    click.echo(f"Total paid         : {to_cents(savings.actual_total_payment):.2f}")
    click.echo(f"Interest saved     : {to_cents(savings.interest_saved):.2f}")
    click.echo("=" * 72)
