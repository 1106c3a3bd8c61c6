"""
Search -> class selection -> passenger entry.

Each step receives the navigation state produced by the step before it and
returns the state for the next one. Entering a step without its precursor
state raises NavigationStateError, whose ``redirect_to`` points back at the
search entry point. The draft slot of the booking store is replaced at class
selection and again at passenger submission.
"""

import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional, Union

from dateutil import parser as date_parser

from railbook.booking_service import BookingService
from railbook.exceptions import NavigationStateError, ValidationError
from railbook.logging import get_logger
from railbook.models import BookingDraft, Gender, Passenger, Train, TrainClass
from railbook.station_service import ALL_CLASSES, StationService

logger = get_logger(__name__)

MAX_PASSENGERS = 6
MIN_NAME_LENGTH = 3
MIN_AGE = 1
MAX_AGE = 120
GENDERS = {g.value for g in Gender}


# ============================================================================
# Navigation state
# ============================================================================


@dataclass
class SearchResult:
    trains: list[Train]
    journey_date: str


@dataclass
class TrainSelection:
    """State handed from search results to class selection."""
    train: Optional[Train]
    journey_date: Optional[str]
    selected_class: Optional[str] = None


@dataclass
class ClassSelection:
    """State handed from class selection to passenger entry."""
    train: Optional[Train]
    journey_date: Optional[str]
    selected_class: Optional[TrainClass]


@dataclass
class PaymentState:
    """State handed from passenger entry to payment."""
    train: Optional[Train]
    journey_date: Optional[str]
    selected_class: Optional[TrainClass]
    passengers: list[Passenger] = field(default_factory=list)
    total_fare: int = 0

    def to_draft(self) -> BookingDraft:
        return draft_for(
            self.train, self.journey_date, self.selected_class,
            passengers=self.passengers, total_fare=self.total_fare,
        )


def draft_for(
    train: Train,
    journey_date: str,
    selected_class: TrainClass,
    passengers: Optional[list[Passenger]] = None,
    total_fare: Optional[int] = None,
) -> BookingDraft:
    return BookingDraft(
        train_id=train.id,
        train_number=train.number,
        train_name=train.name,
        source=train.source,
        destination=train.destination,
        journey_date=journey_date,
        class_code=selected_class.code,
        class_name=selected_class.name,
        passengers=list(passengers or []),
        total_fare=total_fare,
    )


# ============================================================================
# Pure rules
# ============================================================================


def parse_journey_date(date_str: str) -> date:
    """
    Parse a journey date in ISO, European (day-first) or written form.

    Raises:
        ValueError: If the string cannot be parsed
    """
    try:
        if "/" in date_str:
            return date_parser.parse(date_str, dayfirst=True).date()
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError, date_parser.ParserError) as e:
        raise ValueError(
            f"Could not parse date '{date_str}'. "
            f"Use '2025-11-28', '28/11/2025' or 'November 28, 2025'."
        ) from e


def validate_search(
    source: str,
    destination: str,
    journey_date: str,
    today: Optional[date] = None,
) -> str:
    """
    Check search input before running a search.

    Returns:
        The journey date as YYYY-MM-DD

    Raises:
        ValidationError: On missing fields, identical stations or a past date
    """
    missing = {
        name: "This field is required"
        for name, value in (
            ("source", source),
            ("destination", destination),
            ("journey_date", journey_date),
        )
        if not value or not value.strip()
    }
    if missing:
        raise ValidationError("Please fill in all required fields.", missing)

    if source.strip() == destination.strip():
        raise ValidationError(
            "Source and destination cannot be the same.",
            {"destination": "Must differ from source"},
        )

    return validate_journey_date(journey_date, today=today)


def validate_journey_date(journey_date: str, today: Optional[date] = None) -> str:
    """
    Check that a journey date parses and is not before today.

    Returns:
        The journey date as YYYY-MM-DD

    Raises:
        ValidationError: On an unparseable or past date
    """
    try:
        parsed = parse_journey_date(journey_date)
    except ValueError as e:
        raise ValidationError(str(e), {"journey_date": "Invalid date"}) from e

    today = today or datetime.now().date()
    if parsed < today:
        raise ValidationError(
            "Journey date cannot be in the past.",
            {"journey_date": f"Choose {today.isoformat()} or later"},
        )
    return parsed.isoformat()


def validate_passenger(
    name: str,
    age: Union[str, int, None],
    gender: Optional[str],
) -> dict[str, str]:
    """
    Validate one passenger's fields.

    Returns:
        Mapping of field name to error message; empty when valid
    """
    errors: dict[str, str] = {}

    name = (name or "").strip()
    if not name:
        errors["name"] = "Name is required"
    elif len(name) < MIN_NAME_LENGTH:
        errors["name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"

    if age is None or (isinstance(age, str) and not age.strip()):
        errors["age"] = "Age is required"
    else:
        try:
            parsed_age = int(age)
        except (TypeError, ValueError):
            parsed_age = None
        if parsed_age is None or not MIN_AGE <= parsed_age <= MAX_AGE:
            errors["age"] = f"Enter valid age ({MIN_AGE}-{MAX_AGE})"

    if gender not in GENDERS:
        errors["gender"] = "Gender is required"

    return errors


def calculate_fare(train_class: TrainClass, passenger_count: int) -> int:
    """Flat per-seat pricing; taxes and charges are included in the fare."""
    return train_class.fare * passenger_count


# ============================================================================
# Passenger form
# ============================================================================


@dataclass
class PassengerEntry:
    name: str = ""
    age: str = ""
    gender: str = ""
    errors: dict[str, str] = field(default_factory=dict)


class PassengerForm:
    """
    Passenger entry rows, between one and ``max_passengers``.

    Starts with a single empty row.
    """

    FIELDS = ("name", "age", "gender")

    def __init__(self, max_passengers: int = MAX_PASSENGERS):
        self.max_passengers = max_passengers
        self.entries: list[PassengerEntry] = [PassengerEntry()]

    def __len__(self) -> int:
        return len(self.entries)

    def add_passenger(self) -> PassengerEntry:
        if len(self.entries) >= self.max_passengers:
            raise ValidationError(
                f"You can book for up to {self.max_passengers} passengers at a time.",
                {"passengers": "Maximum passengers reached"},
            )
        entry = PassengerEntry()
        self.entries.append(entry)
        return entry

    def remove_passenger(self, index: int) -> None:
        if len(self.entries) == 1:
            raise ValidationError(
                "At least one passenger is required.",
                {"passengers": "Cannot remove the last passenger"},
            )
        del self.entries[index]

    def update_passenger(self, index: int, field_name: str, value: Union[str, int]) -> None:
        """Set a field and clear any error recorded against it."""
        if field_name not in self.FIELDS:
            raise ValueError(f"Unknown passenger field: {field_name}")
        entry = self.entries[index]
        setattr(entry, field_name, str(value))
        entry.errors.pop(field_name, None)

    def validate(self) -> bool:
        """Validate every row, replacing each row's errors. True if all valid."""
        is_valid = True
        for entry in self.entries:
            entry.errors = validate_passenger(entry.name, entry.age, entry.gender)
            if entry.errors:
                is_valid = False
        return is_valid

    def field_errors(self) -> dict[str, str]:
        return {
            f"passengers[{i}].{name}": message
            for i, entry in enumerate(self.entries)
            for name, message in entry.errors.items()
        }

    def to_passengers(self) -> list[Passenger]:
        return [
            Passenger(name=e.name.strip(), age=int(e.age), gender=Gender(e.gender))
            for e in self.entries
        ]

    @classmethod
    def from_rows(cls, rows: list[dict], max_passengers: int = MAX_PASSENGERS) -> "PassengerForm":
        """
        Build a form from row dicts with name/age/gender keys.

        Raises:
            ValidationError: If there are no rows or more than the maximum
        """
        form = cls(max_passengers=max_passengers)
        if not rows:
            raise ValidationError(
                "At least one passenger is required.",
                {"passengers": "No passengers given"},
            )
        for index, row in enumerate(rows):
            if index > 0:
                form.add_passenger()
            for name in cls.FIELDS:
                value = row.get(name)
                if value is not None:
                    form.update_passenger(index, name, value)
        return form


# ============================================================================
# Flow
# ============================================================================


class BookingFlow:
    """
    Drives search, class selection and passenger entry.

    Args:
        bookings: Booking store whose draft slot is staged
        stations: Station and train lookups
        search_delay_seconds: Simulated search latency
        max_passengers: Passenger limit per booking
        sleep: Sleep function (tests pass a no-op)
    """

    def __init__(
        self,
        bookings: BookingService,
        stations: StationService,
        search_delay_seconds: float = 1.5,
        max_passengers: int = MAX_PASSENGERS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.bookings = bookings
        self.stations = stations
        self.search_delay_seconds = search_delay_seconds
        self.max_passengers = max_passengers
        self.sleep = sleep

    def search(
        self,
        source: str,
        destination: str,
        journey_date: str,
        class_code: str = ALL_CLASSES,
        today: Optional[date] = None,
    ) -> SearchResult:
        """
        Validate input, wait out the simulated latency and search.

        Raises:
            ValidationError: On bad search input
        """
        formatted_date = validate_search(source, destination, journey_date, today=today)
        self.sleep(self.search_delay_seconds)
        trains = self.stations.search_trains(source.strip(), destination.strip(), class_code)
        logger.info(
            f"Search {source} -> {destination} on {formatted_date} "
            f"(class={class_code}): {len(trains)} train(s)"
        )
        return SearchResult(trains=trains, journey_date=formatted_date)

    def new_passenger_form(self) -> PassengerForm:
        return PassengerForm(max_passengers=self.max_passengers)

    def select_class(
        self,
        selection: Optional[TrainSelection],
        class_code: Optional[str] = None,
    ) -> Optional[ClassSelection]:
        """
        Pick a fare class and stage the draft.

        Defaults to the pre-selected class, then to the train's first class.

        Returns:
            State for passenger entry, or None if the class code is unknown

        Raises:
            NavigationStateError: If no train or journey date was carried over
            ValidationError: If the class has no seats left
        """
        if selection is None or selection.train is None or not selection.journey_date:
            raise NavigationStateError("No train selected")

        train = selection.train
        code = class_code or selection.selected_class or train.classes[0].code
        selected = train.get_class(code)
        if selected is None:
            return None
        if selected.available_seats == 0:
            raise ValidationError(
                f"{selected.name} is sold out on this train.",
                {"class_code": "No seats available"},
            )

        self.bookings.set_current_booking(draft_for(train, selection.journey_date, selected))
        return ClassSelection(train=train, journey_date=selection.journey_date, selected_class=selected)

    def submit_passengers(
        self,
        selection: Optional[ClassSelection],
        form: PassengerForm,
    ) -> PaymentState:
        """
        Validate all passengers, compute the fare and stage the full draft.

        Raises:
            NavigationStateError: If the class selection state is missing
            ValidationError: If any passenger field is invalid
        """
        if (
            selection is None
            or selection.train is None
            or not selection.journey_date
            or selection.selected_class is None
        ):
            raise NavigationStateError("No class selected")

        if not form.validate():
            raise ValidationError(
                "Please fill in all passenger details correctly.",
                form.field_errors(),
            )

        passengers = form.to_passengers()
        total_fare = calculate_fare(selection.selected_class, len(passengers))
        state = PaymentState(
            train=selection.train,
            journey_date=selection.journey_date,
            selected_class=selection.selected_class,
            passengers=passengers,
            total_fare=total_fare,
        )
        self.bookings.set_current_booking(state.to_draft())
        logger.info(
            f"Staged {len(passengers)} passenger(s) on train {selection.train.number} "
            f"class {selection.selected_class.code}: fare {total_fare}"
        )
        return state
