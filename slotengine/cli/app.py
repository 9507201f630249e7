"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.memory_repository import InMemoryRepository
from ..adapters.rest_repository import RestRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..domain.models import parse_clock, parse_date
from ..services.availability import AvailabilityService
from ..services.booking import BookingService
from ..services.repository import SchedulingRepositoryProtocol
from ..services.schedule_exceptions import ScheduleExceptionService

app = typer.Typer(
    name="slotengine",
    help="Compute bookable appointment slots and manage schedule exceptions",
    add_completion=False
)

console = Console()

EXCEPTION_TYPE_LABELS = {
    "unavailable": "Abwesend",
    "modified_hours": "Geänderte Zeiten",
    "holiday": "Feiertag",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Debug-Logging aktivieren."),
]


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    """Route log records through rich at the configured level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool = False) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    _configure_logging(config, verbose)
    return config


def _build_repository(config: AppConfig) -> SchedulingRepositoryProtocol:
    """Use the snapshot file when configured, otherwise the REST API."""
    if config.data_file is not None:
        return InMemoryRepository.load_from_file(config.data_file)

    return RestRepository(
        base_url=config.rest.base_url,
        api_key=config.rest.api_key,
        timeout_seconds=config.rest.timeout_seconds,
    )


def _parse_date_option(value: Optional[str], tz: str, label: str):
    """Parse a YYYY-MM-DD option; defaults to today in the business timezone."""
    if not value:
        return pendulum.now(tz).date()
    try:
        return parse_date(value)
    except Exception as e:
        console.print(f"[red]Fehler beim Parsen des {label}: {e}[/red]")
        raise typer.Exit(1)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Fehler:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    business: Annotated[str, typer.Argument(help="Business-ID")],
    service: Annotated[str, typer.Argument(help="Service-ID")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Datum (YYYY-MM-DD), Standard: heute")] = None,
    employee: Annotated[Optional[str], typer.Option("--employee", "-e", help="Nur diese Mitarbeiter-ID prüfen")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the bookable slots of a service on one date.

    Examples:

        slotengine slots biz-1 svc-haircut --date 2026-10-19
        slotengine slots biz-1 svc-haircut --date 2026-10-19 --employee emp-anna
    """
    try:
        config = _load_config(config_file, verbose)
        day = _parse_date_option(date, config.timezone, "Datums")

        service_layer = AvailabilityService(
            repository=_build_repository(config),
            slot_generator=config.booking.build_slot_generator(),
        )
        found = asyncio.run(
            service_layer.compute_available_slots(business, service, day, employee)
        )
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        _fail(e)

    console.print()
    if not found:
        console.print(
            f"[yellow]⚠ Keine freien Termine am {day.format('DD.MM.YYYY')}.[/yellow]\n"
            "Versuchen Sie ein anderes Datum oder eine andere Mitarbeiterin."
        )
        return

    table = Table(
        title=f"Freie Termine am {day.format('DD.MM.YYYY')}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Zeit", style="bold yellow")
    table.add_column("Mitarbeitende")
    table.add_column("Anzahl", justify="right", style="dim")

    for slot in found:
        table.add_row(
            slot.time.format("HH:mm"),
            ", ".join(e.name for e in slot.available_employees),
            str(slot.available_employee_count),
        )

    console.print(table)
    console.print()


@app.command()
def dates(
    business: Annotated[str, typer.Argument(help="Business-ID")],
    service: Annotated[str, typer.Argument(help="Service-ID")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    employee: Annotated[Optional[str], typer.Option("--employee", "-e", help="Nur diese Mitarbeiter-ID prüfen")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show which dates of a range still have free slots.
    """
    try:
        config = _load_config(config_file, verbose)
        start_date = _parse_date_option(start, config.timezone, "Startdatums")
        end_date = parse_date(end) if end else start_date.add(days=6)

        service_layer = AvailabilityService(
            repository=_build_repository(config),
            slot_generator=config.booking.build_slot_generator(),
        )
        calendar = asyncio.run(
            service_layer.get_available_dates(business, service, start_date, end_date, employee)
        )
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        _fail(e)

    console.print()
    for entry in calendar:
        marker = "[green]✓ frei[/green]" if entry.has_availability else "[dim]– ausgebucht/geschlossen[/dim]"
        console.print(f"  {entry.date.format('dd, DD.MM.YYYY', locale='de')}  {marker}")
    console.print()


@app.command()
def exceptions(
    business: Annotated[str, typer.Argument(help="Business-ID")],
    date_from: Annotated[Optional[str], typer.Option("--from", help="Start date (YYYY-MM-DD)")] = None,
    date_to: Annotated[Optional[str], typer.Option("--to", help="End date (YYYY-MM-DD)")] = None,
    ranges: Annotated[bool, typer.Option("--ranges", help="Aufeinanderfolgende Tage zu Zeiträumen zusammenfassen.")] = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List schedule exceptions grouped by date, type and reason.
    """
    try:
        config = _load_config(config_file, verbose)
        start_date = _parse_date_option(date_from, config.timezone, "Startdatums")
        end_date = parse_date(date_to) if date_to else start_date.add(months=1)

        service_layer = ScheduleExceptionService(repository=_build_repository(config))
        if ranges:
            merged = asyncio.run(
                service_layer.consolidate_ranges(business, start_date, end_date)
            )
        else:
            groups = asyncio.run(
                service_layer.consolidate_exceptions(business, start_date, end_date)
            )
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        _fail(e)

    console.print()

    if ranges:
        if not merged:
            console.print("[yellow]Keine Ausnahmen gefunden.[/yellow]\n")
            return
        table = Table(title="Ausnahmen (Zeiträume)", show_header=True, header_style="bold cyan")
        table.add_column("Zeitraum", style="bold yellow")
        table.add_column("Typ")
        table.add_column("Grund")
        table.add_column("Mitarbeitende", style="dim")
        table.add_column("Tage", justify="right")
        for entry in merged:
            period = entry.format_display().split(" | ")[0]
            table.add_row(
                period,
                EXCEPTION_TYPE_LABELS.get(entry.type.value, entry.type.value),
                entry.reason or "-",
                ", ".join(entry.employee_names),
                str(entry.day_count),
            )
    else:
        if not groups:
            console.print("[yellow]Keine Ausnahmen gefunden.[/yellow]\n")
            return
        table = Table(title="Ausnahmen", show_header=True, header_style="bold cyan")
        table.add_column("Datum", style="bold yellow")
        table.add_column("Typ")
        table.add_column("Grund")
        table.add_column("Mitarbeitende", style="dim")
        table.add_column("Anzahl", justify="right")
        for group in groups:
            table.add_row(
                group.date.format("DD.MM.YYYY"),
                EXCEPTION_TYPE_LABELS.get(group.type.value, group.type.value),
                group.reason or "-",
                ", ".join(group.employee_names),
                str(len(group.source_exception_ids)),
            )

    console.print(table)
    console.print()


@app.command()
def book(
    business: Annotated[str, typer.Argument(help="Business-ID")],
    service: Annotated[str, typer.Argument(help="Service-ID")],
    date: Annotated[str, typer.Option("--date", "-d", help="Datum (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", "-t", help="Startzeit (HH:MM)")],
    employee: Annotated[Optional[str], typer.Option("--employee", "-e", help="Mitarbeiter-ID; ohne Angabe automatisch zugewiesen")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Book a slot against the configured data source.

    Without --employee the least busy available employee is assigned.
    With a snapshot file the booking only lives for this run.
    """
    try:
        config = _load_config(config_file, verbose)
        day = parse_date(date)
        start_time = parse_clock(time)

        availability = AvailabilityService(
            repository=_build_repository(config),
            slot_generator=config.booking.build_slot_generator(),
        )
        appointment = asyncio.run(
            BookingService(availability).commit_booking(
                business, service, employee, day, start_time
            )
        )
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        _fail(e)

    assigned = "(automatisch zugewiesen)" if employee is None else ""
    console.print(Panel.fit(
        f"[bold green]✓ Termin gebucht![/bold green]\n\n"
        f"[bold]Termin:[/bold] {appointment.time_range}\n"
        f"[bold]Mitarbeiter:[/bold] {appointment.employee_id} {assigned}\n"
        f"[bold]Status:[/bold] {appointment.status.value}",
        title="✓ Buchung"
    ))
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotengine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
