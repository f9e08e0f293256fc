"""
CashWatch CLI — command-line interface.

Usage:
    cashwatch forecast --csv ledger.csv --balance 500000
    cashwatch forecast --config cashwatch.yaml --account 1 --horizon 18
    cashwatch daily --csv planned.csv --balance 820000 --start 2025-04-01
    cashwatch scenario add "Hire one" --income 900000 --expense 1050000
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cashwatch import __version__
from cashwatch.errors import CashWatchError

app = typer.Typer(
    name="cashwatch",
    help="CashWatch — cash-flow projection and shortfall warnings",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
scenario_app = typer.Typer(help="Manage named what-if scenarios", no_args_is_help=True)
app.add_typer(scenario_app, name="scenario")
console = Console()

_LEVEL_COLORS = {"safe": "green", "warn": "yellow", "danger": "red"}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]CashWatch[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
    ),
) -> None:
    """CashWatch — see the shortfall before it happens."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def forecast(
    csv: str = typer.Option(None, "--csv", help="Ledger CSV file"),
    zengin: str = typer.Option(None, "--zengin", help="Zengin-format bank statement file"),
    config: str = typer.Option("cashwatch.yaml", "--config", "-c", help="Path to config file"),
    account: str = typer.Option("all", "--account", "-a", help="Account id, or 'all'"),
    balance: float = typer.Option(None, "--balance", "-b", help="Current balance (overrides the account's)"),
    as_of: str = typer.Option(None, "--as-of", help="Evaluation date YYYY-MM-DD (default: today)"),
    window: int = typer.Option(None, "--window", "-w", help="Months averaged"),
    horizon: int = typer.Option(None, "--horizon", "-h", help="Months projected"),
    delta_income: float = typer.Option(0.0, "--delta-income", help="What-if monthly income change"),
    delta_expense: float = typer.Option(0.0, "--delta-expense", help="What-if monthly expense change"),
    scenario: str = typer.Option(None, "--scenario", "-s", help="Use a stored scenario by name"),
    skip_invalid: bool = typer.Option(False, "--skip-invalid", help="Skip malformed ledger rows instead of failing"),
    output: str = typer.Option(None, "--output", "-o", help="Write a Markdown report to this file"),
) -> None:
    """Project the cash balance and classify the shortfall risk."""
    from cashwatch.analyzers.cashflow import CashFlowForecaster
    from cashwatch.analyzers.scenarios import ScenarioBook
    from cashwatch.models.financial import WhatIf
    from cashwatch.pilot import CashWatch

    console.print(Panel.fit("[bold blue]CashWatch[/bold blue] — Forecast", subtitle=f"v{__version__}"))

    cfg = _load_config(config, skip_invalid)
    try:
        connector = _file_connector(csv, zengin)
        watch = CashWatch(config=cfg, connector=connector)
        evaluation_date = date.fromisoformat(as_of) if as_of else date.today()

        chosen = ScenarioBook.load(cfg.scenarios_path).get(scenario) if scenario else None
        what_if = None
        if chosen is None and (delta_income or delta_expense):
            what_if = WhatIf(delta_income=Decimal(str(delta_income)), delta_expense=Decimal(str(delta_expense)))

        with console.status("[bold green]Forecasting...[/bold green]"):
            if balance is None:
                result = asyncio.run(
                    watch.forecast(
                        account,
                        as_of=evaluation_date,
                        window_months=window,
                        horizon_months=horizon,
                        what_if=what_if,
                        scenario=chosen,
                    )
                )
            else:
                records = asyncio.run(watch._source().fetch_transactions(account))
                result = CashFlowForecaster.analyze(
                    records,
                    Decimal(str(balance)),
                    as_of=evaluation_date,
                    window_months=cfg.forecast.window_months if window is None else window,
                    horizon_months=cfg.forecast.horizon_months if horizon is None else horizon,
                    what_if=what_if,
                    scenario=chosen,
                    policy=cfg.risk,
                    on_error=cfg.ledger.on_invalid,
                    opening_categories=cfg.ledger.opening_categories,
                )
    except (CashWatchError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    _display_forecast(result, cfg.currency)
    if output:
        _save_report(result, output, cfg.currency)


@app.command()
def daily(
    csv: str = typer.Option(..., "--csv", help="CSV of planned entries"),
    balance: float = typer.Option(..., "--balance", "-b", help="Balance at the start date"),
    start: str = typer.Option(None, "--start", help="First day YYYY-MM-DD (default: today)"),
    days: int = typer.Option(30, "--days", "-d", help="Number of days"),
    config: str = typer.Option("cashwatch.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """Day-by-day balance over planned entries."""
    from cashwatch.analyzers.normalizer import normalize_all
    from cashwatch.analyzers.projector import project_daily
    from cashwatch.connectors.csv_connector import CSVConnector

    cfg = _load_config(config)
    first = date.fromisoformat(start) if start else date.today()
    try:
        connector = CSVConnector(file_path=csv)
        records = asyncio.run(connector.fetch_transactions())
        ledger = normalize_all(
            records,
            on_error=cfg.ledger.on_invalid,
            opening_categories=cfg.ledger.opening_categories,
        )
        result = project_daily(Decimal(str(balance)), ledger.transactions, first, days)
    except (CashWatchError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    table = Table(title=f"Daily projection from {first.isoformat()}")
    table.add_column("Day", style="bold")
    table.add_column("Income", justify="right")
    table.add_column("Expense", justify="right")
    table.add_column("Balance", justify="right")
    for row in result.rows:
        if not row.income and not row.expense and row.day != result.short_date:
            continue
        style = "red" if row.balance < 0 else None
        table.add_row(row.day.isoformat(), f"{row.income:,.0f}", f"{row.expense:,.0f}", f"{row.balance:,.0f}", style=style)
    console.print(table)
    if result.short_date:
        console.print(f"[red]Balance goes negative on {result.short_date.isoformat()}[/red]")
    else:
        console.print(f"[green]No shortfall in the next {days} days[/green]")


@scenario_app.command("add")
def scenario_add(
    name: str = typer.Argument(..., help="Scenario name"),
    income: float = typer.Option(0.0, "--income", help="Assumed monthly income"),
    expense: float = typer.Option(0.0, "--expense", help="Assumed monthly expense"),
    horizon: int = typer.Option(12, "--horizon", help="Months projected"),
    config: str = typer.Option("cashwatch.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """Store a named what-if scenario."""
    from pydantic import ValidationError as PydanticValidationError

    from cashwatch.analyzers.scenarios import ScenarioBook
    from cashwatch.models.financial import Scenario

    cfg = _load_config(config)
    book = ScenarioBook.load(cfg.scenarios_path)
    try:
        book.add(
            Scenario(
                name=name,
                assumed_income=Decimal(str(income)),
                assumed_expense=Decimal(str(expense)),
                horizon_months=horizon,
            )
        )
    except (CashWatchError, PydanticValidationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    path = book.save()
    console.print(f"[green]✓[/green] Scenario [bold]{name}[/bold] saved to {path}")


@scenario_app.command("list")
def scenario_list(
    config: str = typer.Option("cashwatch.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """List stored scenarios."""
    from cashwatch.analyzers.scenarios import ScenarioBook

    cfg = _load_config(config)
    book = ScenarioBook.load(cfg.scenarios_path)

    table = Table(title="Scenarios")
    table.add_column("Name", style="bold cyan")
    table.add_column("Income", justify="right")
    table.add_column("Expense", justify="right")
    table.add_column("Horizon", justify="right")
    for s in book.scenarios():
        table.add_row(s.name, f"{s.assumed_income:,.0f}", f"{s.assumed_expense:,.0f}", str(s.horizon_months))
    console.print(table)


@scenario_app.command("remove")
def scenario_remove(
    name: str = typer.Argument(..., help="Scenario name"),
    config: str = typer.Option("cashwatch.yaml", "--config", "-c", help="Path to config file"),
) -> None:
    """Delete a stored scenario."""
    from cashwatch.analyzers.scenarios import ScenarioBook

    cfg = _load_config(config)
    book = ScenarioBook.load(cfg.scenarios_path)
    try:
        book.remove(name)
    except CashWatchError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None
    book.save()
    console.print(f"[green]✓[/green] Removed scenario [bold]{name}[/bold]")


@app.command()
def connectors() -> None:
    """List all available connectors."""
    from cashwatch.connectors.registry import _BUILTIN_CONNECTORS

    table = Table(title="Available Connectors")
    table.add_column("Type", style="bold cyan")
    table.add_column("Class")
    for name, path in _BUILTIN_CONNECTORS.items():
        table.add_row(name, path)
    console.print(table)


def _load_config(config_path: str, skip_invalid: bool = False):  # noqa: ANN202
    from cashwatch.config import CashWatchConfig

    cfg = CashWatchConfig.load(config_path if Path(config_path).exists() else None)
    if skip_invalid:
        cfg.ledger.on_invalid = "skip"
    return cfg


def _file_connector(csv: str | None, zengin: str | None):  # noqa: ANN202
    """Connector for a file given on the command line, or None to use the config."""
    if csv:
        from cashwatch.connectors.csv_connector import CSVConnector

        return CSVConnector(file_path=csv)
    if zengin:
        from cashwatch.connectors.zengin_connector import ZenginConnector

        return ZenginConnector(file_path=zengin)
    return None


def _display_forecast(result, currency: str) -> None:  # noqa: ANN001
    """Display the forecast in the terminal."""
    projection = result.projection
    model = result.model
    level = projection.level.value if projection.level else "?"
    color = _LEVEL_COLORS.get(level, "white")

    console.print()
    table = Table(title="Forecast Summary", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Risk", f"[{color}]{level.upper()}[/{color}]")
    table.add_row("Current balance", f"{projection.current_balance:,.0f} {currency}")
    table.add_row(f"Avg income ({model.months_used} mo)", f"{model.avg_income:,.0f}")
    table.add_row(f"Avg expense ({model.months_used} mo)", f"{model.avg_expense:,.0f}")
    table.add_row("Assumed monthly net", f"{projection.assumed_net:,.0f}")
    if projection.runway_months is not None:
        table.add_row("Runway", f"{projection.runway_months:.1f} months")
    if projection.shortfall_month:
        table.add_row("Shortfall month", projection.shortfall_month.strftime("%Y-%m"))
    if result.ledger.rejected:
        table.add_row("Skipped records", str(len(result.ledger.rejected)))
    console.print(table)
    console.print(f"[{color}]{projection.message}[/{color}]")
    console.print()

    rows = Table(title="Projection")
    rows.add_column("#", justify="right")
    rows.add_column("Month")
    rows.add_column("Projected balance", justify="right")
    for row in projection.rows:
        style = "red" if row.projected_balance < 0 else None
        rows.add_row(str(row.index), row.month.strftime("%Y-%m"), f"{row.projected_balance:,.0f}", style=style)
    console.print(rows)


def _save_report(result, output: str, currency: str) -> None:  # noqa: ANN001
    """Save the forecast to a Markdown file."""
    from cashwatch.exporters.markdown import render_markdown

    path = Path(output)
    path.write_text(render_markdown(result, currency=currency), encoding="utf-8")
    console.print(f"[green]✓[/green] Report saved to [bold]{path}[/bold]")


if __name__ == "__main__":
    app()
