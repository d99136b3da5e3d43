"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.memory_repository import InMemoryRepository, JsonFileRepository
from ..adapters.mock_payment_processor import MockPaymentProcessor
from ..adapters.static_identity import StaticIdentity
from ..config import AppConfig, load_config
from ..domain.booking import BookingRequest
from ..domain.earnings import RECENT_PAYMENTS_LIMIT, EarningsPeriod, settled_at
from ..domain.enums import DayOfWeek, DeliveryMode, PaymentStatus, SessionDuration, UserType
from ..domain.exceptions import TutorbookError
from ..domain.pricing import quote, round2
from ..domain.search import TutorSearchFilter
from ..domain.subjects import subject_names, subjects_by_category
from ..services.marketplace import MarketplaceService

app = typer.Typer(
    name="tutorbook",
    help="Search HSC tutors, manage availability and book sessions",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


def configure_logging(level: str = "INFO") -> None:
    """Route log records through rich, replacing any earlier handler."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=False, show_path=False)],
        force=True,
    )


_state = {"verbose": False}


def _load(config_file: Optional[Path]) -> AppConfig:
    """Load config and apply its log level unless --verbose asked for debug."""
    config = load_config(config_file)
    configure_logging("DEBUG" if _state["verbose"] else config.log_level)
    return config


def _build_service(
    config: AppConfig,
    identity: Optional[StaticIdentity] = None,
) -> MarketplaceService:
    """Wire the service to the local stand-in collaborators."""
    if config.data_file is not None:
        repository = JsonFileRepository(config.data_file, seed_if_missing=True)
    else:
        repository = InMemoryRepository.from_seed()

    return MarketplaceService(
        repository=repository,
        payment_processor=MockPaymentProcessor(config.payment.fail_references),
        identity=identity or StaticIdentity(
            current_user_id=config.identity.user_id,
            current_user_type=config.identity.user_type,
        ),
        config=config,
    )


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _money(amount) -> str:
    return f"${round2(amount)}"


def _parse_duration(minutes: int) -> SessionDuration:
    try:
        return SessionDuration(minutes)
    except ValueError:
        allowed = ", ".join(str(int(d)) for d in SessionDuration)
        raise ValueError(f"Duration must be one of {allowed} minutes, got {minutes}")


def _parse_coordinates(value: str) -> Tuple[float, float]:
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError:
        raise ValueError(f"Expected coordinates as 'LAT,LON', got '{value}'")
    return lat, lon


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Tutoring marketplace tools running against local demo data.
    """
    _state["verbose"] = verbose
    configure_logging("DEBUG" if verbose else "WARNING")


@app.command()
def subjects():
    """
    List the HSC subject catalog.
    """
    table = Table(title="HSC Subjects", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Subject", style="bold yellow")
    table.add_column("Category")

    for category, entries in subjects_by_category().items():
        for subject in entries:
            table.add_row(subject.id, subject.name, category)

    console.print()
    console.print(table)
    console.print()


@app.command()
def search(
    query: Annotated[str, typer.Option("--query", "-q", help="Text matched against subjects and suburb")] = "",
    subject: Annotated[Optional[List[str]], typer.Option("--subject", "-s", help="Subject id (repeatable)")] = None,
    max_rate: Annotated[Optional[float], typer.Option("--max-rate", help="Highest hourly rate")] = None,
    min_rating: Annotated[Optional[float], typer.Option("--min-rating", help="Lowest rating")] = None,
    mode: Annotated[Optional[DeliveryMode], typer.Option("--mode", help="Delivery mode", case_sensitive=False)] = None,
    today: Annotated[bool, typer.Option("--today", help="Only tutors with slots today")] = False,
    this_week: Annotated[bool, typer.Option("--this-week", help="Only tutors with slots for the rest of this week")] = False,
    near: Annotated[Optional[str], typer.Option("--near", help="Only tutors near 'LAT,LON'")] = None,
    radius: Annotated[Optional[float], typer.Option("--radius", help="Search radius in km for --near")] = None,
    config_file: ConfigOption = None,
):
    """
    Find tutors matching a query and filters.

    Examples:

        tutorbook search --subject physics --max-rate 50

        tutorbook search -q bondi --mode online --this-week
    """
    try:
        config = _load(config_file)
        service = _build_service(config)

        search_filter = TutorSearchFilter(
            subjects=frozenset(subject or []),
            min_rating=min_rating,
            max_hourly_rate=max_rate,
            delivery_mode=mode,
            available_today=today,
            available_this_week=this_week,
            nearby_only=near is not None,
            max_distance=radius,
        )
        origin = _parse_coordinates(near) if near else None

        tutors = service.search(search_filter, query, origin=origin)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not tutors:
        console.print("[yellow]No tutors match your search.[/yellow]")
        return

    table = Table(title=f"{len(tutors)} tutor(s) found", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Suburb")
    table.add_column("Subjects")
    table.add_column("Rate", justify="right")
    table.add_column("Mode")
    table.add_column("Rating", justify="right")

    for tutor in tutors:
        table.add_row(
            tutor.id,
            tutor.suburb,
            ", ".join(subject_names(tutor.subjects)),
            f"{_money(tutor.hourly_rate)}/hr",
            tutor.delivery_mode.value,
            f"{tutor.rating:.1f}",
        )

    console.print()
    console.print(table)
    console.print()


@app.command("quote")
def quote_command(
    rate: Annotated[float, typer.Argument(help="Hourly rate")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Session length in minutes (30, 60 or 120)")] = 60,
    config_file: ConfigOption = None,
):
    """
    Price a session from an hourly rate.
    """
    try:
        config = _load(config_file)
        price = quote(rate, _parse_duration(duration), config.platform_fee_rate)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold]Session:[/bold] {price.duration.display_name} at {_money(price.hourly_rate)}/hr\n"
        f"[bold]Total:[/bold] {_money(price.total)} {config.currency}\n"
        f"[bold]Platform fee:[/bold] {_money(price.platform_fee)}\n"
        f"[bold]Tutor earnings:[/bold] {_money(price.tutor_earnings)}",
        title="Quote"
    ))


@app.command()
def availability(
    tutor_id: Annotated[str, typer.Argument(help="Tutor id")],
    config_file: ConfigOption = None,
):
    """
    Show a tutor's weekly availability.
    """
    try:
        config = _load(config_file)
        tutor = _build_service(config).get_tutor(tutor_id)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if tutor.availability.is_empty():
        console.print(f"[yellow]Tutor {tutor_id} has not set any availability.[/yellow]")
        return

    table = Table(title=f"Availability for {tutor_id}", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Slots")
    for day in tutor.availability.days_with_slots():
        slots = tutor.availability.slots_for_day(day)
        table.add_row(day.display_name, ", ".join(f"{s.start}-{s.end}" for s in slots))

    console.print()
    console.print(table)
    console.print(f"Total: {tutor.availability.weekly_minutes() / 60:.1f} hours per week\n")


@app.command("add-slot")
def add_slot(
    tutor_id: Annotated[str, typer.Argument(help="Tutor id")],
    day: Annotated[str, typer.Argument(help="Day of week, e.g. monday or mon")],
    start: Annotated[str, typer.Argument(help="Start time HH:mm")],
    end: Annotated[str, typer.Argument(help="End time HH:mm")],
    user_id: Annotated[Optional[str], typer.Option("--user-id", help="Act as this tutor user")] = None,
    config_file: ConfigOption = None,
):
    """
    Add a weekly availability slot for a tutor.
    """
    try:
        config = _load(config_file)
        identity = None
        if user_id:
            identity = StaticIdentity(current_user_id=user_id, current_user_type=UserType.TUTOR)
        service = _build_service(config, identity)
        slot = service.add_availability_slot(tutor_id, DayOfWeek.parse(day), start, end)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Added {DayOfWeek.parse(day).display_name} {slot.start}-{slot.end}[/green] (slot {slot.id})")
    if config.data_file is None:
        console.print("[dim]No data_file configured; the change was not persisted.[/dim]")


@app.command()
def book(
    tutor_id: Annotated[str, typer.Argument(help="Tutor id")],
    subject: Annotated[str, typer.Option("--subject", "-s", help="Subject id")],
    date: Annotated[str, typer.Option("--date", help="Session date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", help="Start time (HH:mm)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Session length in minutes")] = 60,
    mode: Annotated[DeliveryMode, typer.Option("--mode", help="inPerson or online", case_sensitive=False)] = DeliveryMode.ONLINE,
    location: Annotated[Optional[str], typer.Option("--location", help="Address for in-person sessions")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the tutor")] = None,
    pay: Annotated[bool, typer.Option("--pay", help="Charge immediately with the mock processor")] = False,
    config_file: ConfigOption = None,
):
    """
    Book a session with a tutor as the configured student.

    Example:

        tutorbook book tutor1 -s math-advanced --date 2026-11-09 --time 15:00 --pay
    """
    try:
        config = _load(config_file)
        service = _build_service(config)

        try:
            scheduled_at = pendulum.from_format(f"{date} {time}", "YYYY-MM-DD HH:mm", tz=config.timezone)
        except ValueError as e:
            raise ValueError(f"Could not parse date/time '{date} {time}': {e}")

        request = BookingRequest(
            student_id=config.identity.user_id,
            subject_id=subject,
            duration=_parse_duration(duration),
            scheduled_at=scheduled_at,
            delivery_mode=mode,
            location=location,
            notes=notes,
        )
        session = service.book_session(tutor_id, request)
        payment = service.checkout(session) if pay else None
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    lines = [
        f"[bold]Session:[/bold] {session.id}",
        f"[bold]When:[/bold] {scheduled_at.format('dddd D MMMM YYYY, HH:mm')} ({session.duration.display_name})",
        f"[bold]Total:[/bold] {_money(session.total_amount)} {config.currency}",
    ]
    if payment is None:
        lines.append("[bold]Status:[/bold] pending (not yet paid)")
    elif payment.status is PaymentStatus.SUCCEEDED:
        lines.append(f"[bold]Status:[/bold] [green]confirmed[/green], payment {payment.payment_intent_id}")
    else:
        lines.append(f"[bold]Status:[/bold] [red]payment {payment.status.value}[/red], session still pending")

    console.print(Panel.fit("\n".join(lines), title="✓ Booking"))


@app.command()
def sessions(
    config_file: ConfigOption = None,
):
    """
    List the configured user's sessions.
    """
    try:
        config = _load(config_file)
        booked = _build_service(config).my_sessions()
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not booked:
        console.print("[yellow]No sessions booked.[/yellow]")
        return

    table = Table(title="Your sessions", show_header=True, header_style="bold cyan")
    table.add_column("When", style="bold yellow")
    table.add_column("Tutor")
    table.add_column("Subject")
    table.add_column("Length")
    table.add_column("Total", justify="right")
    table.add_column("Status")
    for session in booked:
        when = pendulum.instance(session.scheduled_date_time).in_timezone(config.timezone)
        table.add_row(
            when.format("ddd D MMM, HH:mm"),
            session.tutor_id,
            ", ".join(subject_names([session.subject_id])) or session.subject_id,
            session.duration.display_name,
            _money(session.total_amount),
            session.status.value,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def earnings(
    tutor_id: Annotated[str, typer.Argument(help="Tutor id")],
    period: Annotated[Optional[EarningsPeriod], typer.Option("--period", "-p", help="thisWeek, thisMonth, lastMonth or thisYear", case_sensitive=False)] = None,
    recent: Annotated[int, typer.Option("--recent", help="How many recent payments to list")] = RECENT_PAYMENTS_LIMIT,
    config_file: ConfigOption = None,
):
    """
    Summarize a tutor's earnings, optionally for one period.

    Example:

        tutorbook earnings tutor1 --period thisMonth
    """
    try:
        config = _load(config_file)
        service = _build_service(config)
        summary = service.earnings(tutor_id, period)
        latest = service.recent_payments(tutor_id, recent)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold]Sessions paid:[/bold] {summary.session_count}\n"
        f"[bold]Gross:[/bold] {_money(summary.gross_amount)}\n"
        f"[bold]Platform fees:[/bold] {_money(summary.platform_fees)}\n"
        f"[bold]Earnings:[/bold] {_money(summary.total_earnings)}\n"
        f"[bold]Pending:[/bold] {_money(summary.pending_amount)}\n"
        f"[bold]Average per session:[/bold] {_money(summary.average_per_session)}",
        title=f"Earnings for {tutor_id} ({summary.period.display_name if summary.period else 'All Time'})"
    ))

    if not latest:
        return

    table = Table(title="Recent payments", show_header=True, header_style="bold cyan")
    table.add_column("Processed", style="bold yellow")
    table.add_column("Session")
    table.add_column("Amount", justify="right")
    table.add_column("Earnings", justify="right")
    for payment in latest:
        when = pendulum.instance(settled_at(payment)).in_timezone(config.timezone)
        table.add_row(
            when.format("D MMM YYYY"),
            payment.session_id,
            _money(payment.amount),
            _money(payment.tutor_earnings),
        )

    console.print(table)
    console.print()


@app.command()
def send(
    recipient_id: Annotated[str, typer.Argument(help="User id of the recipient")],
    content: Annotated[str, typer.Argument(help="Message text")],
    config_file: ConfigOption = None,
):
    """
    Send a message as the configured user.
    """
    try:
        config = _load(config_file)
        message = _build_service(config).send_message(recipient_id, content)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓ Sent to {recipient_id}[/green] (conversation {message.conversation_id})")


@app.command()
def messages(
    other_user_id: Annotated[str, typer.Argument(help="User id of the other participant")],
    config_file: ConfigOption = None,
):
    """
    Show the conversation with another user.
    """
    try:
        config = _load(config_file)
        conversation, thread = _build_service(config).conversation_with(other_user_id)
    except (TutorbookError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if conversation is None or not thread:
        console.print(f"[yellow]No messages with {other_user_id} yet.[/yellow]")
        return

    console.print()
    for message in thread:
        when = pendulum.instance(message.timestamp).in_timezone(config.timezone)
        speaker = "You" if message.sender_id == config.identity.user_id else message.sender_id
        console.print(f"[dim]{when.format('D MMM HH:mm')}[/dim] [bold]{speaker}:[/bold] {message.content}")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]tutorbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
