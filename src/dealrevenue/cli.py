"""Command-line interface for deal revenue schedules."""

import json
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, audit
from .config import Config, ensure_directories, load_config
from .db.repository import Database, Deal
from .errors import RevenueError
from .logging import configure_logging
from .revenue import actions
from .revenue.months import format_month
from .revenue.service import RevenueService

app = typer.Typer(
    name="deal-revenue",
    help="Monthly revenue schedules for CRM deals.",
    no_args_is_help=True,
)

deals_app = typer.Typer(help="Manage deals and their revenue fields.")
revenue_app = typer.Typer(help="View schedules and amend individual months.")
report_app = typer.Typer(help="Portfolio revenue reports.")

app.add_typer(deals_app, name="deals")
app.add_typer(revenue_app, name="revenue")
app.add_typer(report_app, name="report")

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file"),
]


def get_config(config_path: Path | None) -> Config:
    """Load configuration and set up logging."""
    config = load_config(config_path)
    audit.configure(enabled=config.logging.enabled)
    if config.logging.enabled:
        configure_logging(config)
    return config


def get_db(config: Config) -> Database:
    """Get database connection and ensure it's initialized."""
    ensure_directories(config)
    db = Database(config.database.path)
    db.initialize()
    return db


@contextmanager
def open_service(config_path: Path | None) -> Iterator[RevenueService]:
    """Yield a revenue service, reporting domain errors and closing the database."""
    config = get_config(config_path)
    db = get_db(config)
    try:
        yield RevenueService(db, default_currency=config.revenue.default_currency)
    except RevenueError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from e
    finally:
        db.close()


def _money(value: Decimal | float) -> str:
    return f"{value:,.2f}"


def _deal_table(title: str, deal_list: list[Deal]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Status", style="white")
    table.add_column("Retainer/mo", style="green", justify="right")
    table.add_column("Audit", style="green", justify="right")
    table.add_column("Custom Dev", style="green", justify="right")
    table.add_column("Start", style="white")
    table.add_column("End", style="white")

    status_styles = {"open": "yellow", "won": "green", "lost": "red"}
    for deal in deal_list:
        style = status_styles.get(deal.status, "white")
        table.add_row(
            deal.id,
            deal.title,
            f"[{style}]{deal.status}[/{style}]",
            _money(deal.retainer_monthly),
            _money(deal.audit_fee),
            _money(deal.custom_dev_fee),
            deal.revenue_start_date.isoformat() if deal.revenue_start_date else "",
            deal.revenue_end_date.isoformat() if deal.revenue_end_date else "ongoing",
        )
    return table


@app.command()
def version():
    """Show version information."""
    console.print(f"deal-revenue version {__version__}")


@app.command("init-db")
def init_db(config_path: ConfigOption = None):
    """Create database tables if they don't exist."""
    config = get_config(config_path)
    db = get_db(config)
    db.close()
    console.print(f"[green]Database initialized: {config.database.path}[/green]")


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Enable auto-reload for development"),
    ] = False,
    config_path: ConfigOption = None,
):
    """Start the web API server."""
    import uvicorn

    from .web import create_app

    config = get_config(config_path)
    server_host = host or config.web.host
    server_port = port or config.web.port

    console.print("[cyan]Starting deal revenue API...[/cyan]")
    console.print(f"  Host: {server_host}")
    console.print(f"  Port: {server_port}")

    uvicorn.run(
        create_app(config=config),
        host=server_host,
        port=server_port,
        reload=reload,
    )


# Deals subcommands


@deals_app.command("create")
def deals_create(
    title: Annotated[str, typer.Argument(help="Deal title")],
    retainer: Annotated[str, typer.Option("--retainer", help="Monthly retainer")] = "0",
    audit_fee: Annotated[str, typer.Option("--audit-fee", help="One-time audit fee")] = "0",
    custom_dev: Annotated[
        str, typer.Option("--custom-dev", help="One-time custom development fee")
    ] = "0",
    start: Annotated[
        Optional[str], typer.Option("--start", help="Revenue start date (YYYY-MM-DD)")
    ] = None,
    end: Annotated[
        Optional[str], typer.Option("--end", help="Revenue end date (YYYY-MM-DD)")
    ] = None,
    status: Annotated[str, typer.Option("--status", help="open, won or lost")] = "open",
    currency: Annotated[Optional[str], typer.Option("--currency", help="ISO currency")] = None,
    config_path: ConfigOption = None,
):
    """Create a deal."""
    with open_service(config_path) as service:
        fields = {
            "retainer_monthly": retainer,
            "audit_fee": audit_fee,
            "custom_dev_fee": custom_dev,
            "revenue_start_date": start,
            "revenue_end_date": end,
            "status": status,
        }
        if currency:
            fields["currency"] = currency
        deal = service.create_deal(title, **fields)
        console.print(f"[green]Deal '{deal.title}' created (id={deal.id})[/green]")


@deals_app.command("list")
def deals_list(
    status: Annotated[Optional[str], typer.Option("--status", help="Filter by status")] = None,
    config_path: ConfigOption = None,
):
    """List deals."""
    with open_service(config_path) as service:
        deal_list = service.list_deals(status=status)
        if not deal_list:
            console.print("[yellow]No deals found[/yellow]")
            raise typer.Exit(0)
        console.print(_deal_table("Deals", deal_list))


@deals_app.command("show")
def deals_show(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    config_path: ConfigOption = None,
):
    """Show a single deal."""
    with open_service(config_path) as service:
        deal = service.get_deal(deal_id)
        console.print(_deal_table(deal.title, [deal]))


@deals_app.command("update")
def deals_update(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    title: Annotated[Optional[str], typer.Option("--title")] = None,
    retainer: Annotated[Optional[str], typer.Option("--retainer")] = None,
    audit_fee: Annotated[Optional[str], typer.Option("--audit-fee")] = None,
    custom_dev: Annotated[Optional[str], typer.Option("--custom-dev")] = None,
    start: Annotated[Optional[str], typer.Option("--start")] = None,
    end: Annotated[Optional[str], typer.Option("--end")] = None,
    ongoing: Annotated[
        bool, typer.Option("--ongoing", help="Clear the end date")
    ] = False,
    status: Annotated[Optional[str], typer.Option("--status")] = None,
    config_path: ConfigOption = None,
):
    """Update a deal's revenue fields."""
    options = {
        "title": title,
        "retainer_monthly": retainer,
        "audit_fee": audit_fee,
        "custom_dev_fee": custom_dev,
        "revenue_start_date": start,
        "revenue_end_date": end,
        "status": status,
    }
    fields = {k: v for k, v in options.items() if v is not None}
    if ongoing:
        fields["revenue_end_date"] = None

    if not fields:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(0)

    with open_service(config_path) as service:
        deal = service.update_deal(deal_id, **fields)
        console.print(f"[green]Deal {deal.id} updated[/green]")


@deals_app.command("delete")
def deals_delete(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    config_path: ConfigOption = None,
):
    """Delete a deal and all of its revenue amendments."""
    if not yes:
        typer.confirm(f"Delete deal {deal_id} and its revenue amendments?", abort=True)

    with open_service(config_path) as service:
        service.delete_deal(deal_id)
        console.print(f"[green]Deal {deal_id} deleted[/green]")


# Revenue subcommands


@revenue_app.command("show")
def revenue_show(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON")] = False,
    config_path: ConfigOption = None,
):
    """Show a deal's monthly revenue schedule. Amended cells are marked with *."""
    with open_service(config_path) as service:
        result = actions.get_deal_revenue_schedule(service, deal_id)
        if not result.success:
            console.print(f"[red]{result.error}[/red]")
            raise typer.Exit(1)

        schedule = result.data
        if as_json:
            console.print_json(json.dumps(schedule))
            return

        if not schedule["months"]:
            console.print("[yellow]No revenue schedule (no start date set)[/yellow]")
            raise typer.Exit(0)

        table = Table(title=f"Revenue Schedule ({schedule['currency']})")
        table.add_column("Month", style="cyan")
        table.add_column("Retainer", style="green", justify="right")
        table.add_column("Audit", style="green", justify="right")
        table.add_column("Custom Dev", style="green", justify="right")
        table.add_column("Total", style="bold", justify="right")

        def cell(value: float, amended: bool) -> str:
            text = _money(value)
            return f"[yellow]{text}*[/yellow]" if amended else text

        for row in schedule["months"]:
            table.add_row(
                row["label"],
                cell(row["retainer"], row["is_retainer_amended"]),
                cell(row["audit_fee"], row["is_audit_amended"]),
                cell(row["custom_dev_fee"], row["is_custom_dev_amended"]),
                _money(row["total"]),
            )

        totals = schedule["totals"]
        table.add_row("", "", "", "", "", end_section=True)
        table.add_row(
            "[bold]Total[/bold]",
            _money(totals["retainer"]),
            _money(totals["audit_fee"]),
            _money(totals["custom_dev_fee"]),
            f"[bold]{_money(totals['total'])}[/bold]",
        )
        console.print(table)


@revenue_app.command("set")
def revenue_set(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    month: Annotated[str, typer.Argument(help="Month (YYYY-MM or YYYY-MM-01)")],
    item_type: Annotated[str, typer.Argument(help="retainer, audit_fee or custom_dev_fee")],
    amount: Annotated[str, typer.Argument(help="Override amount")],
    notes: Annotated[Optional[str], typer.Option("--notes", "-n", help="Notes")] = None,
    user: Annotated[Optional[str], typer.Option("--user", "-u", help="Acting user")] = None,
    config_path: ConfigOption = None,
):
    """Override one month's value for a line item."""
    with open_service(config_path) as service:
        result = actions.upsert_revenue_item(
            service, deal_id, month, item_type, amount, notes=notes, created_by=user
        )
        if not result.success:
            console.print(f"[red]{result.error}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]{item_type} for {month} set to {amount}[/green]")


@revenue_app.command("reset")
def revenue_reset(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    month: Annotated[str, typer.Argument(help="Month (YYYY-MM or YYYY-MM-01)")],
    item_type: Annotated[str, typer.Argument(help="retainer, audit_fee or custom_dev_fee")],
    user: Annotated[Optional[str], typer.Option("--user", "-u", help="Acting user")] = None,
    config_path: ConfigOption = None,
):
    """Reset one month's line item to its default value."""
    with open_service(config_path) as service:
        result = actions.delete_revenue_item(service, deal_id, month, item_type, user=user)
        if not result.success:
            console.print(f"[red]{result.error}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]{item_type} for {month} reset to default[/green]")


@revenue_app.command("items")
def revenue_items(
    deal_id: Annotated[str, typer.Argument(help="Deal ID")],
    config_path: ConfigOption = None,
):
    """List stored amendments, including any outside the deal's window."""
    with open_service(config_path) as service:
        items = service.list_revenue_items(deal_id)
        if not items:
            console.print("[yellow]No amendments[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Revenue Amendments")
        table.add_column("Month", style="cyan")
        table.add_column("Item", style="white")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("By", style="white")
        table.add_column("Notes", style="white")
        for item in items:
            table.add_row(
                item.month,
                item.item_type,
                _money(item.amount),
                item.created_by or "",
                item.notes or "",
            )
        console.print(table)


# Report subcommands


@report_app.command("monthly")
def report_monthly(
    months: Annotated[
        Optional[int], typer.Option("--months", "-m", help="Months to include", min=1)
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON")] = False,
    config_path: ConfigOption = None,
):
    """Revenue recognized per month across won deals."""
    from .revenue.reports import monthly_revenue

    config = get_config(config_path)
    db = get_db(config)
    try:
        data = monthly_revenue(
            db,
            months=months or config.revenue.report_months,
            today=date.today(),
            statuses=config.revenue.report_statuses,
        )
    except RevenueError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from e
    finally:
        db.close()

    if as_json:
        console.print_json(json.dumps([entry.to_dict() for entry in data]))
        return

    table = Table(title="Monthly Revenue")
    table.add_column("Month", style="cyan")
    table.add_column("Deals", style="white", justify="right")
    table.add_column("Retainer", style="green", justify="right")
    table.add_column("Audit", style="green", justify="right")
    table.add_column("Custom Dev", style="green", justify="right")
    table.add_column("Total", style="bold", justify="right")
    for entry in data:
        table.add_row(
            format_month(entry.month),
            str(entry.deal_count),
            _money(entry.retainer),
            _money(entry.audit_fee),
            _money(entry.custom_dev_fee),
            _money(entry.total),
        )
    console.print(table)


if __name__ == "__main__":
    app()
