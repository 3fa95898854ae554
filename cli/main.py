import datetime
from typing import Optional

import pandas as pd
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.progress_bar import ProgressBar
from rich.table import Table

from fintrack.config import RECENT_LIMIT
from fintrack.data_loader import load_csv, to_transactions
from fintrack.goals import GoalCadence, IncomeGoal, carried_rollover, goal_progress, period_history
from fintrack.ledger import (
    available_months,
    compute_balances,
    daily_expenses,
    format_currency,
    monthly_summary,
    recent_transactions,
)
from fintrack.models import TransactionSource, TransactionType, error_messages, new_transaction
from fintrack.store import SheetConnection, get_store, save_connection

app = typer.Typer(help="Track income, expenses and transfers across the general and provision balances.")
console = Console()

BACKEND_HELP = "Storage backend: 'local' (JSON file) or 'sheets' (Google Sheets). Defaults to config."


def open_store(backend: Optional[str]):
    try:
        return get_store(backend)
    except Exception as e:
        console.print(f"[bold red]Error: could not open the '{backend or 'configured'}' store: {e}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def add(
    description: str = typer.Option(..., "--description", "-m", help="What the transaction was for."),
    amount: float = typer.Option(..., "--amount", "-a", help="Positive amount in VND."),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Date as YYYY-MM-DD. Defaults to today."),
    tx_type: TransactionType = typer.Option(TransactionType.EXPENSE, "--type", "-t", help="income, expense or transfer."),
    source: TransactionSource = typer.Option(TransactionSource.GENERAL, "--source", "-s", help="Bucket an expense is paid from or a transfer moves out of. Income always lands in general."),
    destination: Optional[TransactionSource] = typer.Option(None, "--destination", help="Target bucket for transfers."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Record a new transaction.
    """
    try:
        tx_date = datetime.date.fromisoformat(date) if date else datetime.date.today()
    except ValueError:
        console.print(f"[bold red]Invalid date: '{date}'. Use YYYY-MM-DD.[/bold red]")
        raise typer.Exit(code=1)

    try:
        tx = new_transaction(description, amount, tx_date, tx_type, source, destination)
    except ValidationError as e:
        console.print("[bold red]Please fill in all fields correctly.[/bold red]")
        for message in error_messages(e):
            console.print(f"[red]  - {message}[/red]")
        raise typer.Exit(code=1)

    store = open_store(backend)
    store.add_transaction(tx)
    console.print(f"[bold green]Added {tx.type.value} '{tx.description}' of {format_currency(tx.amount)} ({tx.id})[/bold green]")


@app.command()
def delete(
    tx_id: str = typer.Argument(..., help="Id of the transaction to remove."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Delete a transaction by id.
    """
    if not yes and not typer.confirm(f"Are you sure you want to delete transaction {tx_id}?", default=False):
        console.print("[yellow]Cancelled.[/yellow]")
        return

    store = open_store(backend)
    if store.delete_transaction(tx_id):
        console.print(f"[bold green]Deleted {tx_id}[/bold green]")
    else:
        console.print(f"[bold red]Transaction not found: {tx_id}[/bold red]")
        raise typer.Exit(code=1)


@app.command("list")
def list_transactions(
    limit: int = typer.Option(RECENT_LIMIT, "--limit", "-n", min=0, help="How many recent transactions to show."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Show the most recent transactions.
    """
    transactions = open_store(backend).load_transactions()
    if not transactions:
        console.print("[yellow]No transactions.[/yellow]")
        return

    table = Table(title="Recent Transactions")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Route", style="dim")
    table.add_column("ID", style="dim")

    for tx in recent_transactions(transactions, limit):
        if tx.type == TransactionType.INCOME:
            amount = f"[green]+{format_currency(tx.amount)}[/green]"
        elif tx.type == TransactionType.EXPENSE:
            amount = f"[red]-{format_currency(tx.amount)}[/red]"
        else:
            amount = f"[yellow]-{format_currency(tx.amount)}[/yellow]"
        route = tx.source.value if tx.destination is None else f"{tx.source.value} -> {tx.destination.value}"
        table.add_row(tx.date.strftime('%d/%m/%Y'), tx.description, amount, route, tx.id)

    console.print(table)


@app.command()
def balances(
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Show the general and provision balances.
    """
    store = open_store(backend)
    settings = store.load_settings()
    transactions = store.load_transactions()
    result = compute_balances(transactions, settings.opening_balance)
    result.rollover = carried_rollover(transactions, settings)

    table = Table(title="Balances")
    table.add_column("Bucket", style="cyan")
    table.add_column("Balance", justify="right")
    table.add_row("General", f"[green]{format_currency(result.general)}[/green]")
    table.add_row("Provision", f"[yellow]{format_currency(result.provision)}[/yellow]")
    table.add_row("Total", f"[bold]{format_currency(result.total)}[/bold]")
    if settings.rollover_start:
        table.add_row("Rollover (carried into this period)", f"[cyan]{format_currency(result.rollover)}[/cyan]")
    console.print(table)


@app.command()
def monthly(
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Compare income and expenses month by month.
    """
    df = monthly_summary(open_store(backend).load_transactions())
    print_frame(df, "Monthly Income vs Expense", key_col="Month")


@app.command()
def daily(
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Month as YYYY-MM. Defaults to the latest month with data."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Show daily expenses for one month.
    """
    transactions = open_store(backend).load_transactions()
    months = available_months(transactions)
    if month is None:
        if not months:
            console.print("[yellow]No data to display.[/yellow]")
            return
        month = months[0]
    elif month not in months:
        console.print(f"[yellow]No transactions in {month}. Available: {', '.join(months) or 'none'}[/yellow]")

    df = daily_expenses(transactions, month)
    print_frame(df, f"Daily Expenses ({month})", key_col="Day")


@app.command()
def goal(
    amount: Optional[float] = typer.Option(None, "--amount", "-a", help="Set the income goal per period."),
    cadence: Optional[GoalCadence] = typer.Option(None, "--cadence", "-c", help="monthly or semi-monthly."),
    rollover_start: Optional[str] = typer.Option(None, "--rollover-start", help="Carry unspent budget forward from this date (YYYY-MM-DD). Use 'off' to disable."),
    history: bool = typer.Option(False, "--history", help="Show every period since the rollover start."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Show (or update) income goal progress for the current period.
    """
    store = open_store(backend)
    settings = store.load_settings()

    if amount is not None or cadence is not None or rollover_start is not None:
        try:
            settings.goal = IncomeGoal(
                amount=settings.goal.amount if amount is None else amount,
                cadence=cadence or settings.goal.cadence,
            )
            if rollover_start is not None:
                settings.rollover_start = None if rollover_start == "off" else datetime.date.fromisoformat(rollover_start)
        except ValueError as e:
            console.print(f"[bold red]Invalid goal settings: {e}[/bold red]")
            raise typer.Exit(code=1)
        store.save_settings(settings)
        console.print("[bold green]Goal updated.[/bold green]")

    transactions = store.load_transactions()
    today = datetime.date.today()

    if history and settings.rollover_start:
        periods = period_history(transactions, settings.goal, settings.rollover_start, today)
    else:
        periods = [goal_progress(transactions, settings.goal, today, settings.rollover_start)]

    table = Table(title=f"Income Goal ({settings.goal.cadence.value})")
    table.add_column("Period", style="cyan", no_wrap=True)
    for col in ("Goal", "Earned", "Remaining", "Carried In", "Spent", "Unspent"):
        table.add_column(col, justify="right")
    table.add_column("Progress")

    for p in periods:
        table.add_row(
            f"{p.start:%d/%m} - {p.end:%d/%m/%Y}",
            format_currency(p.goal),
            format_currency(p.earned),
            format_currency(p.remaining),
            format_currency(p.carried_in),
            format_currency(p.spent),
            format_currency(p.unspent),
            ProgressBar(total=100, completed=p.percent, width=20),
        )
    console.print(table)
    console.print(f"[bold]{periods[-1].percent:.0f}% of goal reached[/bold]")


@app.command()
def connect(
    spreadsheet_id: str = typer.Option(..., "--spreadsheet-id", help="Id from the spreadsheet URL."),
    credentials_path: str = typer.Option("resources/credentials.json", "--creds", help="Service account key or OAuth client secrets file."),
    auth_mode: str = typer.Option("service_account", "--auth-mode", help="service_account or oauth."),
    check: bool = typer.Option(True, "--check/--no-check", help="Open the spreadsheet once to verify access."),
):
    """
    Connect to a Google Spreadsheet and make it the default backend.
    """
    try:
        connection = SheetConnection(spreadsheet_id=spreadsheet_id, credentials_path=credentials_path, auth_mode=auth_mode)
    except ValidationError as e:
        for message in error_messages(e):
            console.print(f"[bold red]{message}[/bold red]")
        raise typer.Exit(code=1)

    path = save_connection(connection)
    console.print(f"[green]Saved connection to {path}[/green]")

    if check:
        store = open_store("sheets")
        try:
            count = len(store.load_transactions())
        except Exception as e:
            console.print(f"[bold red]Connected, but reading the spreadsheet failed: {e}[/bold red]")
            raise typer.Exit(code=1)
        console.print(f"[bold green]Connected! Found {count} transactions in the spreadsheet.[/bold green]")


@app.command("import")
def import_csv(
    csv_path: str = typer.Argument(..., help="CSV with DATE, DESCRIPTION, AMOUNT (and optional TYPE, SOURCE, DESTINATION)."),
    dry_run: bool = typer.Option(False, "--dry-run", "--shadow-mode", help="Preview without saving."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
):
    """
    Import transactions from a CSV file.
    """
    try:
        df = load_csv(csv_path)
        transactions = to_transactions(df)
    except ValueError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"Loaded {len(transactions)} transactions.")
    preview = monthly_summary(transactions)
    print_frame(preview, "Imported Income vs Expense", key_col="Month")

    if dry_run:
        console.print("[bold yellow]SHADOW MODE: Nothing saved[/bold yellow]")
        return

    store = open_store(backend)
    store.add_transactions(transactions)
    console.print(f"[bold green]Imported {len(transactions)} transactions.[/bold green]")


def print_frame(df: pd.DataFrame, title: str, key_col: str):
    """Prints a rich table of an aggregated frame, amounts formatted as VND."""
    if df.empty:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(title=title)
    table.add_column(key_col, style="cyan", no_wrap=True)
    value_cols = [col for col in df.columns if col != key_col]
    for col in value_cols:
        table.add_column(col, justify="right", style="green" if col == "Income" else "red")

    for _, row in df.iterrows():
        table.add_row(str(row[key_col]), *[format_currency(row[col]) for col in value_cols])

    console.print(table)


if __name__ == "__main__":
    app()
