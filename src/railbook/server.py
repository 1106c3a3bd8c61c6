"""
Railway Ticket Reservation MCP Server.

Exposes the demo booking workflow (search, class selection, passengers,
simulated payment, booking management) as MCP tools that return readable
text. This is the main entry point for the server.
"""

import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from railbook.booking_flow import BookingFlow, PassengerForm, TrainSelection, validate_journey_date
from railbook.booking_service import BookingService
from railbook.config import AppConfig, get_config
from railbook.exceptions import NavigationStateError, ValidationError
from railbook.logging import get_logger, initialize_logging
from railbook.models import Booking, BookingStatus
from railbook.payment import PaymentDetails, PaymentMethod, PaymentSimulator
from railbook.session_service import SessionService
from railbook.station_service import ALL_CLASSES, StationService, get_station_service
from railbook.storage import FileStore, KeyValueStore

logger = get_logger(__name__)

RULE = "===================================\n"
DIVIDER = "---------------------------------\n"

# ============================================================================
# 1. Configuration & Setup
# ============================================================================

mcp = FastMCP("Railway Ticket Reservation")


@dataclass
class Services:
    """Service handles shared by every tool."""
    config: AppConfig
    session: SessionService
    bookings: BookingService
    stations: StationService
    flow: BookingFlow
    sleep: Callable[[float], None] = time.sleep

    def new_payment(self) -> PaymentSimulator:
        return PaymentSimulator(
            self.bookings,
            delay_seconds=self.config.payment_delay_seconds,
            sleep=self.sleep,
        )


def build_services(
    config: Optional[AppConfig] = None,
    store: Optional[KeyValueStore] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Services:
    """
    Wire up the services from configuration.

    Args:
        config: Configuration (defaults to the cached environment config)
        store: Blob store (defaults to a FileStore under config.storage_dir)
        sleep: Sleep function used for every simulated delay
    """
    config = config or get_config()
    store = store if store is not None else FileStore(config.storage_dir)

    session = SessionService(
        store,
        key=config.session_key,
        delay_seconds=config.auth_delay_seconds,
        sleep=sleep,
    )
    bookings = BookingService(store, key=config.bookings_key)
    stations = get_station_service()
    flow = BookingFlow(
        bookings,
        stations,
        search_delay_seconds=config.search_delay_seconds,
        max_passengers=config.max_passengers,
        sleep=sleep,
    )
    return Services(
        config=config,
        session=session,
        bookings=bookings,
        stations=stations,
        flow=flow,
        sleep=sleep,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    """Get or create the process-wide Services instance."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


# ============================================================================
# 2. Formatting Helpers
# ============================================================================


def format_currency(amount: int) -> str:
    """Format rupees with Indian digit grouping and no decimals: 123456 -> '₹1,23,456'."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(round(amount))))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"


def format_date(date_string: str) -> str:
    """'2025-01-15' -> 'Wed, 15 Jan 2025'. Unparseable input is returned as is."""
    try:
        d = date.fromisoformat(date_string[:10])
    except ValueError:
        return date_string
    return f"{d:%a}, {d.day} {d:%b} {d.year}"


def format_validation_error(error: ValidationError) -> str:
    text = f"{error.message}\n"
    for field_name, message in error.field_errors.items():
        text += f"  - {field_name}: {message}\n"
    return text


def is_past_journey(booking: Booking, today: date) -> bool:
    try:
        return date.fromisoformat(booking.journey_date[:10]) < today
    except ValueError:
        return False


def format_booking(booking: Booking, services: Services) -> str:
    stations = services.stations
    text = f"  {booking.train_name} (#{booking.train_number}) | PNR: {booking.pnr}\n"
    text += (
        f"     {stations.get_station_name(booking.source)} ({booking.source}) -> "
        f"{stations.get_station_name(booking.destination)} ({booking.destination})\n"
    )
    text += f"     Journey: {format_date(booking.journey_date)} | Class: {booking.class_name} ({booking.class_code})\n"
    text += f"     Status: {booking.status.value.upper()} | Fare: {format_currency(booking.total_fare)}\n"
    text += f"     Booking ID: {booking.id}\n"
    for passenger, seat in zip(booking.passengers, booking.seat_numbers):
        text += f"       - {passenger.name}, {passenger.age}, {passenger.gender.value} | Seat {seat}\n"
    return text


# ============================================================================
# 3. Stories (tool bodies, callable with explicit services)
# ============================================================================


def search_trains_story(
    services: Services,
    source: str,
    destination: str,
    journey_date: str,
    travel_class: str = ALL_CLASSES,
    today: Optional[date] = None,
) -> str:
    story = RULE
    story += "    TRAIN SEARCH\n"
    story += RULE + "\n"

    try:
        result = services.flow.search(source, destination, journey_date, travel_class, today=today)
    except ValidationError as e:
        story += format_validation_error(e)
        story += "\n" + RULE
        return story

    story += f"Searching for trains on: {format_date(result.journey_date)}\n\n"
    story += DIVIDER
    story += "AVAILABLE TRAINS\n"
    story += DIVIDER + "\n"

    if not result.trains:
        story += "No trains found. Try different stations or dates.\n"
    else:
        story += f"Found {len(result.trains)} train(s)\n\n"
        for i, train in enumerate(result.trains, 1):
            story += f"  {i}. {train.name} (#{train.number}, id {train.id})\n"
            story += (
                f"     {services.stations.get_station_name(train.source)} ({train.source}) -> "
                f"{services.stations.get_station_name(train.destination)} ({train.destination})\n"
            )
            story += f"     Departs: {train.departure_time} | Arrives: {train.arrival_time} | {train.duration}\n"
            story += f"     Runs: {', '.join(train.days_of_operation)}\n"
            classes = ", ".join(f"{c.code} {format_currency(c.fare)}" for c in train.classes)
            story += f"     Classes: {classes}\n\n"
        story += "Select a train to proceed with booking.\n"

    story += "\n" + RULE
    return story


def find_station_story(services: Services, query: str) -> str:
    story = RULE
    story += "    STATION SEARCH\n"
    story += RULE + "\n"

    stations = services.stations.find_stations(query)
    if not stations:
        story += f"No stations found for '{query}'. Please check the spelling.\n"
    else:
        story += f"Found {len(stations)} station(s) for '{query}':\n"
        for i, station in enumerate(stations, 1):
            story += f"  {i}. {station.name.strip()} ({station.code}) - {station.city}\n"

    story += "\n" + RULE
    return story


def seat_availability_story(services: Services, train_id: str, journey_date: str) -> str:
    story = RULE
    story += "    SEAT AVAILABILITY\n"
    story += RULE + "\n"

    train = services.stations.get_train(train_id)
    if train is None:
        story += f"Unknown train id '{train_id}'. Search for trains first.\n"
        story += "\n" + RULE
        return story

    story += f"{train.name} (#{train.number}) on {format_date(journey_date)}\n\n"
    for availability in services.stations.seat_availability(train):
        c = availability.train_class
        story += f"  {c.code} - {c.name}: {format_currency(c.fare)} per seat\n"
        story += f"     {c.available_seats}/{c.total_seats} seats | {availability.label}\n"

    story += "\n" + RULE
    return story


def book_ticket_story(
    services: Services,
    train_id: str,
    journey_date: str,
    passengers: list[dict],
    class_code: Optional[str] = None,
    payment_method: str = PaymentMethod.upi.value,
    upi_id: str = "",
    card_number: str = "",
    card_expiry: str = "",
    card_cvv: str = "",
    today: Optional[date] = None,
) -> str:
    story = RULE
    story += "    TICKET BOOKING\n"
    story += RULE + "\n"

    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        story += f"Unknown payment method '{payment_method}'. Use upi, debit or credit.\n"
        story += "\n" + RULE
        return story

    flow = services.flow
    try:
        journey_date = validate_journey_date(journey_date, today=today)
        selection = flow.select_class(
            TrainSelection(train=services.stations.get_train(train_id), journey_date=journey_date),
            class_code,
        )
        if selection is None:
            story += f"Train {train_id} has no class '{class_code}'.\n"
            story += "\n" + RULE
            return story

        form = PassengerForm.from_rows(passengers, max_passengers=flow.max_passengers)
        payment_state = flow.submit_passengers(selection, form)

        story += f"{selection.train.name} (#{selection.train.number}) | {selection.selected_class.name}\n"
        story += f"Passengers: {len(payment_state.passengers)} | Total fare: {format_currency(payment_state.total_fare)}\n"
        story += "(Taxes and reservation charges included)\n\n"

        details = PaymentDetails(
            method=method,
            upi_id=upi_id,
            card_number=card_number,
            card_expiry=card_expiry,
            card_cvv=card_cvv,
        )
        confirmation = services.new_payment().pay(payment_state, details)
    except NavigationStateError:
        story += "Booking details are missing. Please start again from train search.\n"
        story += "\n" + RULE
        return story
    except ValidationError as e:
        story += format_validation_error(e)
        story += "\n" + RULE
        return story

    story += DIVIDER
    story += "BOOKING CONFIRMED\n"
    story += DIVIDER + "\n"
    story += format_booking(confirmation.booking, services)
    story += "\n" + RULE
    return story


def my_bookings_story(services: Services) -> str:
    story = RULE
    story += "    MY BOOKINGS\n"
    story += RULE + "\n"

    bookings = services.bookings
    if not bookings.bookings:
        story += "No bookings yet. Start by searching for trains.\n"
        story += "\n" + RULE
        return story

    active = bookings.active_bookings()
    cancelled = bookings.cancelled_bookings()
    if active:
        story += f"Active Bookings ({len(active)})\n\n"
        for booking in active:
            story += format_booking(booking, services) + "\n"
    if cancelled:
        story += f"Cancelled Bookings ({len(cancelled)})\n\n"
        for booking in cancelled:
            story += format_booking(booking, services) + "\n"

    story += RULE
    return story


def lookup_pnr_story(services: Services, pnr: str) -> str:
    story = RULE
    story += "    PNR STATUS\n"
    story += RULE + "\n"

    booking = services.bookings.get_booking_by_pnr(pnr)
    if booking is None:
        story += f"No booking found for PNR {pnr}.\n"
    else:
        story += format_booking(booking, services)

    story += "\n" + RULE
    return story


def cancel_booking_story(
    services: Services,
    booking_id: str,
    today: Optional[date] = None,
) -> str:
    story = RULE
    story += "    CANCEL BOOKING\n"
    story += RULE + "\n"

    today = today or date.today()
    booking = services.bookings.get_booking(booking_id)
    if booking is None:
        story += f"No booking found with id {booking_id}.\n"
    elif booking.status == BookingStatus.cancelled:
        story += f"PNR {booking.pnr} is already cancelled.\n"
    elif is_past_journey(booking, today):
        story += f"PNR {booking.pnr} cannot be cancelled: the journey date has passed.\n"
    else:
        services.bookings.cancel_booking(booking_id)
        story += f"PNR {booking.pnr} has been cancelled.\n"

    story += "\n" + RULE
    return story


def admin_dashboard_story(services: Services) -> str:
    story = RULE
    story += "    ADMIN PANEL\n"
    story += RULE + "\n"

    if not services.session.is_admin:
        story += "Admin mode is off. Log in and toggle admin mode to view this panel.\n"
        story += "\n" + RULE
        return story

    stats = services.bookings.get_statistics()
    story += f"Total Bookings:   {stats.total_bookings}\n"
    story += f"Active Trains:    {len(services.stations.trains)}\n"
    story += f"Total Passengers: {stats.total_passengers}\n"
    story += f"Total Revenue:    {format_currency(stats.total_revenue)}\n\n"

    story += DIVIDER
    story += "ALL BOOKINGS\n"
    story += DIVIDER
    for b in services.bookings.bookings:
        story += (
            f"  {b.pnr} | {b.train_name} #{b.train_number} | {b.source} -> {b.destination} | "
            f"{format_date(b.journey_date)} | {len(b.passengers)} pax | "
            f"{format_currency(b.total_fare)} | {b.status.value}\n"
        )

    story += "\n" + DIVIDER
    story += "TRAIN LIST\n"
    story += DIVIDER
    for t in services.stations.trains:
        story += (
            f"  {t.number} | {t.name} | {t.source} -> {t.destination} | {t.duration} | "
            f"{', '.join(c.code for c in t.classes)}\n"
        )

    story += "\n" + RULE
    return story


def session_story(services: Services, message: str) -> str:
    user = services.session.user
    story = message + "\n"
    if user is not None:
        story += f"Logged in as {user.full_name} <{user.email}>"
        story += " [admin mode]\n" if services.session.is_admin else "\n"
    else:
        story += "Not logged in.\n"
    return story


# ============================================================================
# 4. MCP Tools
# ============================================================================


@mcp.tool()
def search_trains(source: str, destination: str, journey_date: str, travel_class: str = ALL_CLASSES) -> str:
    """
    Search for trains between two stations.

    Args:
        source: Source station code or name (e.g., "ILKL", "Bengaluru")
        destination: Destination station code or name (e.g., "SBC")
        journey_date: Travel date, today or later. Accepts "2025-11-28",
                      "28/11/2025" or "November 28, 2025"
        travel_class: Class code to filter on (1A, 2A, 3A, SL) or "all"

    Returns:
        Formatted list of matching trains with their classes and fares.
    """
    return search_trains_story(get_services(), source, destination, journey_date, travel_class)


@mcp.tool()
def find_station(query: str) -> str:
    """Find stations by code, name or city."""
    return find_station_story(get_services(), query)


@mcp.tool()
def seat_availability(train_id: str, journey_date: str) -> str:
    """Show fares and displayed seat availability for every class of a train."""
    return seat_availability_story(get_services(), train_id, journey_date)


@mcp.tool()
def book_ticket(
    train_id: str,
    journey_date: str,
    passengers: list[dict],
    class_code: Optional[str] = None,
    payment_method: str = "upi",
    upi_id: str = "",
    card_number: str = "",
    card_expiry: str = "",
    card_cvv: str = "",
) -> str:
    """
    Book a ticket: select a class, enter passengers and pay.

    Args:
        train_id: Train id from search results
        journey_date: Journey date, today or later (same formats as search_trains)
        passengers: 1 to 6 entries of {"name": str, "age": int, "gender": "male"|"female"|"other"}
        class_code: Class code (defaults to the train's first class)
        payment_method: "upi", "debit" or "credit"
        upi_id: Required for UPI
        card_number: Required for cards
        card_expiry: Required for cards
        card_cvv: Required for cards

    Returns:
        Booking confirmation with PNR and seat numbers, or what needs fixing.
    """
    return book_ticket_story(
        get_services(), train_id, journey_date, passengers, class_code,
        payment_method, upi_id, card_number, card_expiry, card_cvv,
    )


@mcp.tool()
def my_bookings() -> str:
    """List active and cancelled bookings, most recent first."""
    return my_bookings_story(get_services())


@mcp.tool()
def lookup_pnr(pnr: str) -> str:
    """Check a booking by PNR (case-insensitive)."""
    return lookup_pnr_story(get_services(), pnr)


@mcp.tool()
def cancel_booking(booking_id: str) -> str:
    """
    Cancel a booking by its booking id. Cancellation cannot be undone.

    Bookings already cancelled or whose journey date has passed are refused.
    """
    return cancel_booking_story(get_services(), booking_id)


@mcp.tool()
def login(email: str, password: str) -> str:
    """Log in with any valid email address and any password (demo only)."""
    services = get_services()
    if services.session.login(email, password):
        return session_story(services, "Login successful.")
    return session_story(services, "Login failed: enter a valid email and a password.")


@mcp.tool()
def register(full_name: str, email: str, mobile: str, password: str) -> str:
    """Create an account and log in (demo only)."""
    services = get_services()
    services.session.register(full_name, email, mobile, password)
    return session_story(services, "Registration successful.")


@mcp.tool()
def logout() -> str:
    """Log out of the current session."""
    services = get_services()
    services.session.logout()
    return session_story(services, "Logged out.")


@mcp.tool()
def toggle_admin_mode() -> str:
    """Switch admin mode on or off for the logged-in user."""
    services = get_services()
    if not services.session.is_authenticated:
        return session_story(services, "Log in first to use admin mode.")
    enabled = services.session.toggle_admin_mode()
    return session_story(services, f"Admin mode {'enabled' if enabled else 'disabled'}.")


@mcp.tool()
def admin_dashboard() -> str:
    """Booking statistics, all bookings and the train list (admin mode only)."""
    return admin_dashboard_story(get_services())


# ============================================================================
# 5. Server Startup
# ============================================================================


def main() -> None:
    load_dotenv()
    initialize_logging()

    config = get_config()
    _, warnings = config.validate_config()
    for warning in warnings:
        logger.warning(warning)

    get_services()
    mcp.run()


if __name__ == "__main__":
    main()
