import logging

import click
import pandas as pd

from config.constants import FeePolicy, PayoffStrategy
from config.settings import DEFAULT_CHECKPOINT_INTERVAL, PAYOFF_HORIZON_MONTHS
from core.analytics import summarize_portfolio
from core.calculator import amortize, calc_monthly_payment
from core.comparison import compare
from core.errors import LoanEngineError
from core.loan import Loan, loans_from_frame
from core.payoff import plan
from core.red_flags import evaluate
from utils.formatters import fmt_amount, fmt_months, fmt_rate


def _load_loans(loans_file):
    # LoanEngineError and the pandas parser errors are all ValueErrors
    try:
        return loans_from_frame(pd.read_csv(loans_file))
    except ValueError as exc:
        raise click.ClickException(f"Cannot read loans from {loans_file}: {exc}")


def _loan_from_options(principal, annual_rate, term_months, fees=0.0,
                       fee_policy=FeePolicy.PREPAID.value, start_date=None):
    start = start_date.date() if start_date else None
    try:
        return Loan(id='cli', principal=principal, annual_rate_percent=annual_rate,
                    term_months=term_months, fees_upfront=fees,
                    fee_policy=fee_policy, start_date=start)
    except LoanEngineError as exc:
        raise click.ClickException(str(exc))


loan_options = [
    click.option('--principal', type=float, required=True, help='Loan principal'),
    click.option('--annual-rate', type=float, required=True, help='Annual interest rate (%)'),
    click.option('--term-months', type=int, required=True, help='Loan term in months'),
    click.option('--fees', type=float, default=0.0, help='Upfront fees'),
    click.option('--fee-policy', type=click.Choice([p.value for p in FeePolicy]),
                 default=FeePolicy.PREPAID.value, help='How upfront fees are paid'),
]


def with_loan_options(func):
    for option in reversed(loan_options):
        func = option(func)
    return func


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """A CLI for the loan calculation engine."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@cli.command('monthly-payment')
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--annual-rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--term-months', type=int, required=True, help='Loan term in months')
def monthly_payment(principal, annual_rate, term_months):
    """Calculates the standard monthly payment for a loan."""
    try:
        payment = calc_monthly_payment(principal, annual_rate, term_months)
    except LoanEngineError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Monthly payment: {payment:.2f}")


@cli.command('amortize')
@with_loan_options
@click.option('--start-date', type=click.DateTime(formats=['%Y-%m-%d']), help='First payment date (YYYY-MM-DD)')
@click.option('--summary-only', is_flag=True, help='Skip the schedule CSV')
def amortize_command(principal, annual_rate, term_months, fees, fee_policy, start_date, summary_only):
    """Prints loan totals followed by the amortization schedule as CSV."""
    loan = _loan_from_options(principal, annual_rate, term_months, fees, fee_policy, start_date)
    result = amortize(loan)
    click.echo(f"Monthly payment: {result.monthly_payment:.2f}")
    click.echo(f"Total interest: {result.total_interest:.2f}")
    click.echo(f"Total paid: {result.total_paid:.2f}")
    click.echo(f"Effective APR: {result.effective_apr:.4f}%")
    click.echo(f"Payoff period: {result.payoff_period}")
    if result.payoff_date:
        click.echo(f"Payoff date: {result.payoff_date.isoformat()}")
    if not summary_only:
        click.echo(result.schedule.to_csv(index=False))


@cli.command('compare')
@click.argument('loans_file', type=click.Path(exists=True))
@click.option('--interval', type=int, default=DEFAULT_CHECKPOINT_INTERVAL, help='Checkpoint interval in months')
@click.option('--series', is_flag=True, help='Also print the checkpoint series as CSV')
def compare_command(loans_file, interval, series):
    """Compares two or more loans from a CSV file."""
    loans = _load_loans(loans_file)
    try:
        comparison = compare(loans, checkpoint_interval=interval)
    except (LoanEngineError, ValueError) as exc:
        raise click.ClickException(str(exc))

    click.echo("--- Key Metrics Comparison ---")
    click.echo(comparison.summary.to_string(index=False))
    click.echo("\n--- Differences ---")
    for diff in comparison.differences:
        pct = f" ({diff.percent_difference:+.2f}%)" if diff.percent_difference is not None else ""
        higher = diff.higher_id or "tie"
        click.echo(f"{diff.metric}: {diff.second_id} - {diff.first_id} = {diff.difference:+.4f}{pct}, higher: {higher}")
    click.echo("\n--- Best Options ---")
    for key, loan_id in comparison.best_options.items():
        click.echo(f"{key}: {loan_id}")
    click.echo(f"Potential savings: {fmt_amount(comparison.potential_savings)}")
    for loan_id, warnings in comparison.warnings.items():
        for warning in warnings:
            click.echo(f"[{warning.severity.value}] {loan_id}: {warning.message}")
    if series:
        click.echo(comparison.series.to_csv(index=False))


@cli.command('plan')
@click.argument('loans_file', type=click.Path(exists=True))
@click.option('--extra', type=float, default=0.0, help='Monthly extra payment budget')
@click.option('--strategy', type=click.Choice([s.value for s in PayoffStrategy]), default=PayoffStrategy.AVALANCHE.value, help='Payoff strategy')
@click.option('--roll-over', is_flag=True, help='Roll retired minimum payments into the extra budget')
@click.option('--horizon', type=int, default=PAYOFF_HORIZON_MONTHS, help='Give up after this many months')
@click.option('--timeline', is_flag=True, help='Also print the month-by-month timeline as CSV')
def plan_command(loans_file, extra, strategy, roll_over, horizon, timeline):
    """Simulates paying off loans from a CSV file."""
    loans = _load_loans(loans_file)
    try:
        result = plan(loans, extra, strategy, horizon_months=horizon, roll_over_minimums=roll_over)
    except LoanEngineError as exc:
        raise click.ClickException(str(exc))

    summary = result.summary
    click.echo(f"Strategy: {summary.strategy.label}")
    click.echo(f"Months to payoff: {summary.months_to_payoff} ({fmt_months(summary.months_to_payoff)})")
    click.echo(f"Total interest: {fmt_amount(float(summary.total_interest_paid))}")
    if summary.baseline_reachable:
        click.echo(f"Interest saved vs minimum only: {fmt_amount(float(summary.interest_saved_vs_minimum_only))}")
        click.echo(f"Months saved: {summary.months_saved}")
    else:
        click.echo("Interest saved vs minimum only: n/a (minimum payments never retire the loans)")
    click.echo("Payoff order: " + ", ".join(f"{loan_id} (month {month})" for loan_id, month in result.payoff_order))
    if timeline:
        click.echo(result.timeline.to_csv(index=False))


@cli.command('red-flags')
@with_loan_options
def red_flags_command(principal, annual_rate, term_months, fees, fee_policy):
    """Lists red flags for a single loan."""
    loan = _loan_from_options(principal, annual_rate, term_months, fees, fee_policy)
    warnings = evaluate(loan)
    if not warnings:
        click.echo("No red flags found.")
        return
    for warning in warnings:
        click.echo(f"[{warning.severity.value}] {warning.kind.label}: {warning.message}")


@cli.command('analytics')
@click.argument('loans_file', type=click.Path(exists=True))
def analytics_command(loans_file):
    """Summarizes a set of loans from a CSV file."""
    loans = _load_loans(loans_file)
    try:
        stats = summarize_portfolio(loans)
    except LoanEngineError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Loans: {stats.loan_count}")
    click.echo(f"Total loan value: {fmt_amount(stats.total_loan_value)}")
    click.echo(f"Average rate: {fmt_rate(stats.average_rate)}")
    click.echo(f"Weighted average rate: {fmt_rate(stats.weighted_average_rate)}")
    click.echo(f"Total monthly payments: {fmt_amount(stats.total_monthly_payments)}")
    click.echo(f"Red flags: {stats.potential_red_flags}")
    for loan_type, group in stats.loans_by_type.items():
        click.echo(f"  {loan_type}: {group['count']} loan(s), {fmt_amount(group['total_value'])}")
    click.echo("Recommendations:")
    for rec in stats.recommendations:
        click.echo(f"  - {rec}")


if __name__ == "__main__":
    cli()
