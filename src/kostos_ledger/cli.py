"""CLI for Kostos Ledger using Typer."""

import logging
import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import InputShapeError, KostosLedgerError
from .models import Project, SplitType
from .service import LedgerService
from .simplifier import apply_transfers
from .splitter import compute_splits, to_decimal
from .stats import GroupTotal

app = typer.Typer(
    name="kostos-ledger",
    help="Split shared expenses and work out who pays whom",
)

console = Console()

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "RON": "R",
    "JPY": "¥",
    "CNY": "¥",
    "RUB": "₽",
    "INR": "₹",
    "BRL": "R$",
    "CAD": "C$",
    "AUD": "A$",
    "DKK": "kr",
    "CHF": "CHF",
    "SEK": "kr",
    "NOK": "kr",
    "KRW": "₩",
    "MXN": "$",
    "SGD": "$",
    "HKD": "$",
    "NZD": "$",
    "ZAR": "R",
}


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def currency_symbol(code: str) -> str:
    """Symbol for a currency code, or the code itself if unknown."""
    return CURRENCY_SYMBOLS.get(code.upper(), code)


def format_money(amount: Decimal, symbol: str = "$", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    The spaces ensure decimal points align in tables.
    """
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"({symbol}[red]{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def _parse_assignments(pairs: list[str]) -> dict[str, Decimal]:
    """Parse repeated ID=VALUE options."""
    values = {}
    for pair in pairs:
        member_id, sep, raw = pair.partition("=")
        if not sep or not member_id:
            raise InputShapeError(f"Expected ID=VALUE, got {pair!r}")
        values[member_id.strip()] = to_decimal(raw.strip())
    return values


def _load(project_file: Path | None) -> tuple[Settings, LedgerService, Project]:
    settings = load_settings()
    path = project_file or settings.project_path
    if path is None:
        raise InputShapeError(
            "No project file given and KOSTOS_PROJECT_PATH is not set"
        )
    service = LedgerService(settings)
    return settings, service, service.load_project(path)


def _fail(error: Exception, verbose: bool):
    console.print(f"\n[bold red]Error:[/bold red] {error}")
    if verbose:
        raise error
    sys.exit(1)


@app.command()
def split(
    amount: str = typer.Argument(..., help="Expense total, e.g. 10.00"),
    member: list[str] = typer.Option(
        ..., "--member", "-m", help="Participant id (repeat, in order)"
    ),
    policy: SplitType = typer.Option(
        SplitType.EVEN, "--policy", "-p", help="Split policy"
    ),
    weight: Optional[list[str]] = typer.Option(
        None,
        "--weight",
        "-w",
        help="ID=VALUE share weight (shares) or fixed amount (amount)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Compute owed amounts for a single expense.

    Prints each participant's share; the shares always add up to the total.
    """
    setup_logging(verbose)

    try:
        total = to_decimal(amount)
        values = _parse_assignments(weight or [])
        splits = compute_splits(
            total,
            member,
            policy,
            weights=values if policy is SplitType.SHARES else None,
            amounts=values if policy is SplitType.AMOUNT else None,
        )
    except KostosLedgerError as e:
        _fail(e, verbose)
        return

    table = Table(
        title=f"{policy.value.capitalize()} split of {total:,.2f}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Member", style="cyan")
    if policy is SplitType.SHARES:
        table.add_column("Shares", justify="right", style="dim")
    table.add_column("Owes", justify="right")

    for line in splits:
        row = [line.member_id]
        if policy is SplitType.SHARES:
            row.append(f"{line.shares}")
        row.append(format_money(line.owed_amount))
        table.add_row(*row)

    console.print(table)

    owed_total = sum((line.owed_amount for line in splits), Decimal("0"))
    if owed_total == total:
        console.print("  [green]✓ Shares add up to the total[/green]")
    else:
        console.print(
            f"  [yellow]⚠️  Shares add up to {owed_total:,.2f}, "
            f"not {total:,.2f}[/yellow]"
        )


@app.command()
def balances(
    project_file: Optional[Path] = typer.Argument(
        None, help="Project JSON snapshot (defaults to KOSTOS_PROJECT_PATH)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show each member's balance and who they pay or get paid by."""
    setup_logging(verbose)

    try:
        _, service, project = _load(project_file)
        member_balances = service.member_balances(project)
    except KostosLedgerError as e:
        _fail(e, verbose)
        return

    symbol = currency_symbol(project.currency)
    table = Table(
        title=f"Balances: {project.name}", show_header=True, header_style="bold magenta"
    )
    table.add_column("Member", style="cyan")
    table.add_column("Balance", justify="right")
    table.add_column("Settlement", no_wrap=False)

    for entry in member_balances:
        details = [
            f"pays {project.member_name(t.to_member_id)} "
            f"{format_money(t.amount, symbol, use_color=False).strip()}"
            for t in entry.owes
        ] + [
            f"gets {format_money(t.amount, symbol, use_color=False).strip()} "
            f"from {project.member_name(t.from_member_id)}"
            for t in entry.is_owed
        ]
        table.add_row(
            entry.name,
            format_money(entry.balance, symbol),
            "\n".join(details) or "[dim]All settled up[/dim]",
        )

    console.print(table)


@app.command()
def settle(
    project_file: Optional[Path] = typer.Argument(
        None, help="Project JSON snapshot (defaults to KOSTOS_PROJECT_PATH)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the transfers that settle every balance in the project."""
    setup_logging(verbose)

    try:
        settings, service, project = _load(project_file)
        project_balances = service.balances(project)
        transfers = service.settle(project)
    except KostosLedgerError as e:
        _fail(e, verbose)
        return

    if not transfers:
        console.print("[green]Everyone is settled up.[/green]")
        return

    symbol = currency_symbol(project.currency)
    table = Table(
        title=f"Settle up: {project.name}", show_header=True, header_style="bold magenta"
    )
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Amount", justify="right")

    for transfer in transfers:
        table.add_row(
            project.member_name(transfer.from_member_id),
            project.member_name(transfer.to_member_id),
            format_money(transfer.amount, symbol),
        )

    console.print(table)

    remaining = apply_transfers(project_balances, transfers)
    unsettled = {k: v for k, v in remaining.items() if abs(v) > settings.tolerance}
    if unsettled:
        console.print(
            f"  [red]✗ {len(unsettled)} balances remain open; "
            f"run 'kostos-ledger check' to find expenses that do not add up[/red]"
        )
    else:
        count = len(transfers)
        noun = "transfer settles" if count == 1 else "transfers settle"
        console.print(f"  [green]✓ {count} {noun} everyone[/green]")


@app.command()
def check(
    project_file: Optional[Path] = typer.Argument(
        None, help="Project JSON snapshot (defaults to KOSTOS_PROJECT_PATH)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Report expenses whose payments or splits do not add up."""
    setup_logging(verbose)

    try:
        _, service, project = _load(project_file)
        problems = service.check_project(project)
    except KostosLedgerError as e:
        _fail(e, verbose)
        return

    if not problems:
        console.print(
            f"[green]✓ All {len(project.expenses)} expenses add up[/green]"
        )
        return

    symbol = currency_symbol(project.currency)
    descriptions = {expense.id: expense.description for expense in project.expenses}

    table = Table(title="Mismatches", show_header=True, header_style="bold magenta")
    table.add_column("Expense", style="cyan")
    table.add_column("Check", style="yellow")
    table.add_column("Expected", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Hint")

    for expense_id, mismatches in problems.items():
        for mismatch in mismatches:
            table.add_row(
                descriptions.get(expense_id) or expense_id,
                mismatch.kind.value,
                format_money(mismatch.expected, symbol),
                format_money(mismatch.actual, symbol),
                mismatch.describe(symbol),
            )

    console.print(table)
    sys.exit(1)


def _group_table(title: str, groups: list[GroupTotal], symbol: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Expenses", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Share", justify="right", style="dim")
    table.add_column("Average", justify="right")

    for group in groups:
        table.add_row(
            group.key,
            str(group.expense_count),
            format_money(group.total_amount, symbol),
            f"{group.percentage}%",
            format_money(group.average_amount, symbol),
        )
    return table


@app.command()
def stats(
    project_file: Optional[Path] = typer.Argument(
        None, help="Project JSON snapshot (defaults to KOSTOS_PROJECT_PATH)"
    ),
    since: Optional[datetime] = typer.Option(
        None, "--since", formats=["%Y-%m-%d"], help="First day to include"
    ),
    until: Optional[datetime] = typer.Option(
        None, "--until", formats=["%Y-%m-%d"], help="Last day to include"
    ),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Only expenses in this category"
    ),
    payment_method: Optional[str] = typer.Option(
        None, "--payment-method", help="Only expenses paid with this method"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spending by category, payment method, month and member."""
    setup_logging(verbose)

    try:
        _, service, project = _load(project_file)
        summary = service.stats(
            project,
            since=since.date() if since else None,
            until=until.date() if until else None,
            category_id=category,
            payment_method_id=payment_method,
        )
    except KostosLedgerError as e:
        _fail(e, verbose)
        return

    if summary.expense_count == 0:
        console.print("[yellow]No expenses match.[/yellow]")
        return

    symbol = currency_symbol(project.currency)
    descriptions = {expense.id: expense.description for expense in project.expenses}
    largest = descriptions.get(summary.largest_expense_id) or summary.largest_expense_id

    console.print(f"\n[bold]{project.name}[/bold]")
    console.print(
        f"  {summary.expense_count} expenses, total "
        f"{format_money(summary.total_amount, symbol).strip()}, average "
        f"{format_money(summary.average_amount, symbol).strip()}, largest: {largest}\n"
    )

    console.print(_group_table("By category", summary.by_category, symbol))
    console.print(_group_table("By payment method", summary.by_payment_method, symbol))

    if summary.by_month:
        months = Table(title="By month", show_header=True, header_style="bold magenta")
        months.add_column("Month", style="cyan")
        months.add_column("Total", justify="right")
        months.add_column("Change", justify="right", style="dim")
        for month in summary.by_month:
            months.add_row(
                month.month,
                format_money(month.amount, symbol),
                f"{month.change_percent:+}%",
            )
        console.print(months)

    split_types = Table(
        title="By split type", show_header=True, header_style="bold magenta"
    )
    split_types.add_column("Policy", style="cyan")
    split_types.add_column("Expenses", justify="right")
    split_types.add_column("Total", justify="right")
    for policy, entry in summary.by_split_type.items():
        split_types.add_row(policy, str(entry.count), format_money(entry.amount, symbol))
    console.print(split_types)

    members = Table(title="By member", show_header=True, header_style="bold magenta")
    members.add_column("Member", style="cyan")
    members.add_column("Paid", justify="right")
    members.add_column("Owes", justify="right")
    members.add_column("Balance", justify="right")
    for row in summary.member_spending:
        members.add_row(
            row.name,
            format_money(row.paid, symbol),
            format_money(row.owed, symbol),
            format_money(row.balance, symbol),
        )
    console.print(members)


if __name__ == "__main__":
    app()
