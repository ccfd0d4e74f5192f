"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, load_config
from ..domain.business_hours import WEEKDAY_NAMES, weekday_of
from ..domain.exceptions import BookingError, SlotConflictError
from ..domain.models import (
    BookingRequest,
    CustomerDetails,
    Slot,
    TimeOfDay,
    parse_calendar_date,
)
from ..wiring import build_calendar_client, build_resolver

app = typer.Typer(
    name="ragebooking",
    help="Check availability and book rage room sessions on the Google Calendar",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use mock calendar data and skip authentication."),
]


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show log output.")] = False,
):
    """
    Rage room booking backend.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def availability(
    date: Annotated[str, typer.Argument(help="Date to check (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the free slots of a day.

    Examples:

        ragebooking availability 2024-11-30
        ragebooking availability 2024-11-30 --mock
    """
    config = _load(config_file)

    try:
        day = parse_calendar_date(date)
        resolver = build_resolver(config, build_calendar_client(config, mock=mock))
        slots = asyncio.run(resolver.available_slots(day))
    except BookingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if mock:
        console.print("[yellow]⚠  MOCK MODE: using test data[/yellow]\n")

    weekday = WEEKDAY_NAMES[weekday_of(day)].capitalize()
    if not slots:
        console.print(f"[yellow]⚠ No free slots on {weekday}, {date}.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(slots)} free slot(s) on {weekday}, {date}:[/bold green]\n")
    console.print("  " + "  ".join(str(slot.time) for slot in slots))
    console.print()


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time_slot: Annotated[str, typer.Argument(help="Start time (HH:MM, 24-hour)")],
    party_size: Annotated[int, typer.Option("--party-size", "-p", help="Number of people")] = 1,
    first_name: Annotated[str, typer.Option("--first-name", help="Customer first name")] = "Guest",
    last_name: Annotated[str, typer.Option("--last-name", help="Customer last name")] = "",
    phone: Annotated[str, typer.Option("--phone", help="Customer phone number")] = "",
    email: Annotated[str, typer.Option("--email", help="Customer email")] = "",
    requests: Annotated[str, typer.Option("--requests", help="Special requests")] = "",
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book a slot after re-checking it is still free.
    """
    config = _load(config_file)

    try:
        booking = BookingRequest(
            slot=Slot(date=parse_calendar_date(date), time=TimeOfDay.parse(time_slot)),
            party_size=party_size,
            customer=CustomerDetails(
                first_name=first_name,
                last_name=last_name,
                phone_number=phone,
                email=email,
                special_requests=requests,
            ),
        )
        resolver = build_resolver(config, build_calendar_client(config, mock=mock))
        reservation = asyncio.run(resolver.guard_and_reserve(booking))
    except SlotConflictError as e:
        console.print(f"[yellow]⚠ {e}. Please choose another slot.[/yellow]")
        raise typer.Exit(2)
    except BookingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    details = reservation.to_dict()
    console.print(Panel.fit(
        f"[bold green]✓ Booking created[/bold green]\n\n"
        f"[bold]Event:[/bold] {details['id']}\n"
        f"[bold]When:[/bold] {reservation.time_range}\n"
        f"[bold]Group size:[/bold] {details['groupSize']}\n"
        f"[bold]Link:[/bold] {details['eventLink'] or 'N/A'}",
        title="✓ Booking"
    ))


@app.command()
def hours(config_file: ConfigOption = None):
    """
    Show the configured weekly opening hours.
    """
    config = _load(config_file)

    table = Table(
        title=f"{config.business_name} opening hours ({config.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")

    for weekday, window in config.weekly_schedule().items():
        table.add_row(
            WEEKDAY_NAMES[weekday].capitalize(),
            str(window) if window else "[dim]closed[/dim]",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_connection(config_file: ConfigOption = None):
    """
    Test Google Calendar credentials and access.
    """
    config = _load(config_file)

    console.print("\n[bold]Testing Google Calendar access...[/bold]\n")

    try:
        client = build_calendar_client(config)
        calendar = client.test_connection()
    except BookingError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Connection successful![/bold green]\n\n"
        f"[bold]Calendar:[/bold] {calendar.get('summary', 'N/A')}\n"
        f"[bold]Timezone:[/bold] {calendar.get('timeZone', 'N/A')}",
        title="✓ Connection test"
    ))
    console.print()


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", help="Port to listen on")] = 3001,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..api.app import configure_logging, create_app

    config = _load(config_file)
    configure_logging(config.log_level)

    try:
        api = create_app(config=config, mock=mock)
    except BookingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{config.business_name} API[/bold cyan] running on port {port}")
    uvicorn.run(api, host=host, port=port, log_config=None)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]ragebooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
