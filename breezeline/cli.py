"""Breezeline CLI.

Commands:
- init: Create database tables and seed the admin account
- prices: Show the rate table
- quote: Price a project from the command line
- leads: Show recent estimation leads and stats (database backend)
- serve: Run the API server
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from breezeline.config import get_config
from breezeline.db.connection import close_db, get_session, init_db
from breezeline.errors import ValidationError
from breezeline.leads.store import SqlLeadStore
from breezeline.pricing import format_currency, price_list, quote as price_quote
from breezeline.web.auth import AdminDirectory, MemorySessionStore

app = typer.Typer(
    name="breezeline",
    help="Breezeline Interiors - estimates, leads and portfolio backend",
    no_args_is_help=True,
)

console = Console()


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema and seed the admin account."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init() -> bool:
        if drop:
            console.print("[yellow]Dropping existing tables...[/yellow]")
        console.print("[green]Creating tables...[/green]")
        await init_db(drop=drop)
        directory = AdminDirectory(
            get_session, MemorySessionStore(config.auth.session_ttl_seconds), config.auth
        )
        try:
            return await directory.bootstrap()
        finally:
            await close_db()

    seeded = asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")
    if seeded:
        console.print(f"[bold green]✓[/bold green] Admin account '{config.auth.admin_username}' created")


@app.command()
def prices():
    """Show the rate table (price per sqm)."""
    currency = get_config().pricing.currency
    table = Table(title=f"Rate table ({currency} per sqm)")
    table.add_column("Project type")
    table.add_column("Standard", justify="right")
    table.add_column("Premium", justify="right")

    for ptype, classes in price_list().items():
        table.add_row(
            ptype,
            format_currency(classes.get("Standard"), currency),
            format_currency(classes.get("Premium"), currency),
        )

    console.print(table)


@app.command()
def quote(
    project_type: str = typer.Argument(..., help='Project type, e.g. "2BHK"'),
    service_class: str = typer.Argument(..., help="Standard or Premium"),
    area: str = typer.Argument(..., help="Area in sqm"),
):
    """Price a project type / class / area combination."""
    pricing = get_config().pricing
    try:
        result = price_quote(
            project_type,
            service_class,
            area,
            min_area=pricing.min_area,
            max_area=pricing.max_area,
            currency=pricing.currency,
        )
    except ValidationError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[bold]{result.project_type.value} / {result.service_class.value}[/bold], "
        f"{result.area} sqm at {format_currency(result.unit_price, result.currency)} per sqm"
    )
    console.print(f"[bold green]Total: {format_currency(result.total_price, result.currency)}[/bold green]")


@app.command()
def leads(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of leads to show"),
):
    """Show recent estimation leads stored in the database."""
    currency = get_config().pricing.currency

    async def _leads():
        store = SqlLeadStore(get_session)
        try:
            return await store.recent(limit), await store.stats()
        finally:
            await close_db()

    recent, stats = asyncio.run(_leads())

    table = Table(title="Recent estimation leads")
    table.add_column("ID", justify="right")
    table.add_column("Created")
    table.add_column("Project")
    table.add_column("Class")
    table.add_column("Area", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Contact")

    for lead in recent:
        contact = ", ".join(v for v in (lead.contact_name, lead.email, lead.phone) if v)
        table.add_row(
            str(lead.id),
            lead.created_at.strftime("%Y-%m-%d %H:%M"),
            lead.project_type.value,
            lead.service_class.value,
            f"{lead.area}",
            format_currency(lead.total_price, currency),
            contact or "-",
        )

    console.print(table)
    console.print(
        f"Total leads: {stats.total}  |  This month: {stats.this_month}  |  "
        f"Pipeline value: {format_currency(stats.total_value, currency)}"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(3000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the API server."""
    import uvicorn

    typer.echo(f"Starting Breezeline API on http://{host}:{port}")
    uvicorn.run(
        "breezeline.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


if __name__ == "__main__":
    app()
